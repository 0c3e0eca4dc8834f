"""
Apps package - FastAPI services.

- alert_bridge: TradingView webhook alerts to Bybit v5 spot orders
"""
