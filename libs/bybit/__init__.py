"""
Bybit v5 spot order bridge.

Normalizes charting-platform alerts into Bybit order bodies, signs them with
HMAC-SHA256 and submits them over the v5 REST API.

Usage:
    from libs.bybit import Alert, BybitOrderClient, ExchangeCredentials, relay_alert

    credentials = ExchangeCredentials.for_network(key, secret, testnet=True)
    async with BybitOrderClient(credentials) as client:
        result = await relay_alert(Alert(symbol="BTC/USD", action="buy", quantity=0.01), client)
"""

from libs.bybit.client import (
    DEFAULT_TIMEOUT_SECONDS,
    MAINNET_BASE_URL,
    TESTNET_BASE_URL,
    BybitOrderClient,
    Clock,
    ExchangeCredentials,
    epoch_ms,
)
from libs.bybit.exceptions import (
    AlertValidationError,
    DispatchError,
    InvalidActionError,
    InvalidNumberError,
    InvalidOrderTypeError,
    MissingPriceError,
    MissingQuantityError,
    MissingSymbolError,
)
from libs.bybit.normalizer import build_order_request, normalize_symbol, to_decimal_string
from libs.bybit.relay import OrderSubmitter, RelayResult, RelayStatus, relay_alert
from libs.bybit.schemas import Alert, ExchangeResponse, OrderRequest, OrderType, Side
from libs.bybit.signing import (
    DEFAULT_RECV_WINDOW_MS,
    SignedEnvelope,
    build_envelope,
    sign_order,
    sign_payload,
)

__all__ = [
    # Client
    "BybitOrderClient",
    "Clock",
    "ExchangeCredentials",
    "epoch_ms",
    "DEFAULT_TIMEOUT_SECONDS",
    "MAINNET_BASE_URL",
    "TESTNET_BASE_URL",
    # Schemas
    "Alert",
    "ExchangeResponse",
    "OrderRequest",
    "OrderType",
    "Side",
    # Normalization
    "build_order_request",
    "normalize_symbol",
    "to_decimal_string",
    # Signing
    "DEFAULT_RECV_WINDOW_MS",
    "SignedEnvelope",
    "build_envelope",
    "sign_order",
    "sign_payload",
    # Relay
    "OrderSubmitter",
    "RelayResult",
    "RelayStatus",
    "relay_alert",
    # Errors
    "AlertValidationError",
    "DispatchError",
    "InvalidActionError",
    "InvalidNumberError",
    "InvalidOrderTypeError",
    "MissingPriceError",
    "MissingQuantityError",
    "MissingSymbolError",
]
