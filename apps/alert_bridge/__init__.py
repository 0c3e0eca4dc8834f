"""
Alert Bridge

FastAPI service that turns TradingView webhook alerts into signed Bybit v5
spot orders.

Provides:
- POST /webhook: alert -> order -> exchange reply
- GET /test-connection: Bybit server time passthrough
- GET /health, GET /metrics

Usage:
    uvicorn apps.alert_bridge.main:app --port 3000
    python -m apps.alert_bridge
"""
