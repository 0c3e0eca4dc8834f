"""
Alert relay: normalize, sign, submit, and fold the outcome into one result.

relay_alert never raises for the three expected failure categories. Callers
branch on RelayResult.status instead of parsing exception messages:

    ACCEPTED         exchange retCode == 0
    REJECTED         exchange answered with retCode != 0 (logical failure)
    INVALID_ALERT    alert failed validation, nothing was sent
    DISPATCH_FAILED  no usable exchange answer (timeout, network, HTTP error)
"""

import logging
from enum import Enum
from typing import Any, Protocol

from pydantic import BaseModel, Field

from libs.bybit.exceptions import AlertValidationError, DispatchError
from libs.bybit.normalizer import build_order_request
from libs.bybit.schemas import Alert, ExchangeResponse, OrderRequest

logger = logging.getLogger(__name__)


class OrderSubmitter(Protocol):
    """Anything that can submit a signed order (BybitOrderClient in production)."""

    async def submit(self, order: OrderRequest) -> ExchangeResponse: ...


class RelayStatus(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    INVALID_ALERT = "invalid_alert"
    DISPATCH_FAILED = "dispatch_failed"


class RelayResult(BaseModel):
    """Outcome of relaying one alert."""

    status: RelayStatus
    success: bool
    message: str
    data: Any = Field(None, description="Exchange 'result' payload, verbatim")
    ret_code: int | None = Field(None, description="Exchange retCode, when it answered")
    error: str | None = Field(None, description="Validation or transport error text")
    details: Any = Field(None, description="Exchange body kept from a failed dispatch")
    order: OrderRequest | None = Field(None, description="Order that was built, if any")
    timed_out: bool = False
    dispatch_reason: str | None = Field(None, description="DispatchError.reason on failure")

    @classmethod
    def from_exchange(cls, order: OrderRequest, response: ExchangeResponse) -> "RelayResult":
        return cls(
            status=RelayStatus.ACCEPTED if response.success else RelayStatus.REJECTED,
            success=response.success,
            message=response.ret_msg,
            data=response.result,
            ret_code=response.ret_code,
            order=order,
        )

    @classmethod
    def from_validation_error(cls, exc: AlertValidationError) -> "RelayResult":
        return cls(
            status=RelayStatus.INVALID_ALERT,
            success=False,
            message="Invalid alert",
            error=str(exc),
        )

    @classmethod
    def from_dispatch_error(cls, order: OrderRequest, exc: DispatchError) -> "RelayResult":
        return cls(
            status=RelayStatus.DISPATCH_FAILED,
            success=False,
            message="Error processing trade",
            error=str(exc),
            details=exc.response_body,
            order=order,
            timed_out=exc.timed_out,
            dispatch_reason=exc.reason,
        )


async def relay_alert(alert: Alert, submitter: OrderSubmitter) -> RelayResult:
    """
    Turn one alert into one exchange order and report what happened.

    Args:
        alert: Decoded inbound alert
        submitter: Order client (BybitOrderClient)

    Returns:
        RelayResult for every validation, dispatch and exchange outcome.
        Anything else (programming errors) propagates.
    """
    try:
        order = build_order_request(alert)
    except AlertValidationError as exc:
        logger.warning(
            f"Rejected invalid alert: {exc}",
            extra={
                "context": {
                    "field": exc.field,
                    "symbol": alert.symbol,
                    "action": alert.action,
                    "order_type": alert.order_type,
                }
            },
        )
        return RelayResult.from_validation_error(exc)

    try:
        response = await submitter.submit(order)
    except DispatchError as exc:
        logger.error(
            f"Order dispatch failed: {exc}",
            extra={
                "context": {
                    "symbol": order.symbol,
                    "side": order.side.value,
                    "reason": exc.reason,
                    "status_code": exc.status_code,
                    "response": exc.response_body,
                }
            },
        )
        return RelayResult.from_dispatch_error(order, exc)

    if not response.success:
        logger.warning(
            f"Order rejected by Bybit: {response.ret_msg}",
            extra={
                "context": {
                    "symbol": order.symbol,
                    "side": order.side.value,
                    "ret_code": response.ret_code,
                    "ret_msg": response.ret_msg,
                }
            },
        )

    return RelayResult.from_exchange(order, response)
