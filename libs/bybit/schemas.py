"""
Pydantic schemas for the Bybit order bridge.

Defines:
- Alert: the decoded inbound alert (TradingView webhook body)
- OrderRequest: the canonical Bybit v5 spot order body
- ExchangeResponse: the decoded Bybit reply
"""

import json
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

CATEGORY_SPOT = "spot"
TIME_IN_FORCE_GTC = "GTC"
RET_CODE_OK = 0


class Side(str, Enum):
    """Order side as spelled by Bybit."""

    BUY = "Buy"
    SELL = "Sell"


class OrderType(str, Enum):
    """Order type as spelled by Bybit."""

    MARKET = "Market"
    LIMIT = "Limit"


# ==============================================================================
# Inbound Alert
# ==============================================================================


class Alert(BaseModel):
    """Alert payload as sent by the alerting platform.

    Numeric fields are typed Any on purpose: the alert template decides whether
    they arrive as JSON numbers or strings, and normalizer.to_decimal_string is
    the single place that converts (or rejects) them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    symbol: str | None = Field(None, description="Ticker, e.g. 'BTC/USD' or 'BTCUSDT'")
    action: str | None = Field(None, description="'buy' or 'sell' (case-insensitive)")
    quantity: Any = Field(None, description="Order size, number or numeric string")
    price: Any = Field(None, description="Limit price (limit orders only)")
    take_profit: Any = Field(None, alias="takeProfit", description="Accepted, not forwarded")
    stop_loss: Any = Field(None, alias="stopLoss", description="Accepted, not forwarded")
    order_type: str | None = Field(
        None, alias="orderType", description="'market' (default) or 'limit'"
    )


# ==============================================================================
# Exchange Order
# ==============================================================================


class OrderRequest(BaseModel):
    """Bybit v5 /v5/order/create body.

    Field definition order is the wire order; the signature is computed over
    serialize() so it must stay stable.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    category: Literal["spot"] = CATEGORY_SPOT
    symbol: str
    side: Side
    order_type: OrderType = Field(alias="orderType")
    qty: str
    time_in_force: Literal["GTC"] = Field(TIME_IN_FORCE_GTC, alias="timeInForce")
    price: str | None = None

    @model_validator(mode="after")
    def _price_matches_order_type(self) -> "OrderRequest":
        if self.order_type is OrderType.MARKET and self.price is not None:
            raise ValueError("Market orders must not carry a price")
        if self.order_type is OrderType.LIMIT and self.price is None:
            raise ValueError("Limit orders require a price")
        return self

    def to_payload(self) -> dict[str, str]:
        """Wire dict; price is omitted entirely when unset."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def serialize(self) -> str:
        """Compact JSON body, identical bytes are signed and sent."""
        return json.dumps(self.to_payload(), separators=(",", ":"))


# ==============================================================================
# Exchange Response
# ==============================================================================


class ExchangeResponse(BaseModel):
    """Decoded Bybit reply.

    retCode 0 is success; anything else is a logical trading failure (bad
    symbol, insufficient balance, ...) reported verbatim, not an exception.
    """

    model_config = ConfigDict(populate_by_name=True)

    ret_code: int = Field(alias="retCode")
    ret_msg: str = Field("", alias="retMsg")
    result: Any = None
    raw: dict[str, Any] = Field(default_factory=dict, description="Whole decoded body")
    http_status: int = 200

    @property
    def success(self) -> bool:
        return self.ret_code == RET_CODE_OK

    @classmethod
    def from_body(cls, body: dict[str, Any], http_status: int = 200) -> "ExchangeResponse":
        """Build from a decoded body.

        Raises:
            pydantic.ValidationError: If the body has no integer retCode
        """
        return cls(
            ret_code=body.get("retCode"),
            ret_msg=body.get("retMsg") or "",
            result=body.get("result"),
            raw=body,
            http_status=http_status,
        )
