"""
Alert-time exceptions for the Bybit order bridge.

Two categories, mirroring how a caller should react:

- AlertValidationError: the alert itself is wrong. Raised before any network
  call, reported to the sender as a client error, never retried.
- DispatchError: the signed request never produced a usable exchange reply
  (timeout, connection failure, DNS failure, non-2xx status, garbled body).
  Transient from the caller's point of view; retry policy belongs upstream.

Logical trading failures (exchange replied with a non-zero retCode) are NOT
exceptions; they come back as ExchangeResponse(success=False).
"""

from typing import Any

from libs.common.exceptions import AlertBridgeError


class AlertValidationError(AlertBridgeError):
    """Base class for bad or missing alert fields."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class MissingSymbolError(AlertValidationError):
    """Alert has no symbol (or an empty one)."""

    def __init__(self) -> None:
        super().__init__("Alert is missing 'symbol'", field="symbol")


class InvalidActionError(AlertValidationError):
    """Alert action is absent or is neither buy nor sell."""

    def __init__(self, action: object) -> None:
        super().__init__(f"Invalid action {action!r}: expected 'buy' or 'sell'", field="action")
        self.action = action


class InvalidOrderTypeError(AlertValidationError):
    """Alert orderType does not resolve to Market or Limit."""

    def __init__(self, order_type: object) -> None:
        super().__init__(
            f"Invalid orderType {order_type!r}: expected 'market' or 'limit'", field="orderType"
        )
        self.order_type = order_type


class MissingQuantityError(AlertValidationError):
    """Alert has no quantity."""

    def __init__(self) -> None:
        super().__init__("Alert is missing 'quantity'", field="quantity")


class MissingPriceError(AlertValidationError):
    """Limit alert without a price."""

    def __init__(self) -> None:
        super().__init__("Limit orders require 'price'", field="price")


class InvalidNumberError(AlertValidationError):
    """A numeric alert field is not a finite, positive decimal number."""

    def __init__(self, field: str, value: object, reason: str = "not a number") -> None:
        super().__init__(f"Invalid {field} {value!r}: {reason}", field=field)
        self.value = value


class DispatchError(AlertBridgeError):
    """
    The order request could not be completed at the transport/HTTP level.

    Attributes:
        cause: Underlying exception (also chained as __cause__ when raised
            with ``raise ... from``)
        status_code: HTTP status, when the exchange did answer
        response_body: Decoded exchange body (dict if JSON, else text) kept
            for diagnostics
        timed_out: True when the fixed request timeout elapsed
    """

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        status_code: int | None = None,
        response_body: Any = None,
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.status_code = status_code
        self.response_body = response_body
        self.timed_out = timed_out

    @property
    def reason(self) -> str:
        """Short machine-readable category, used for metrics labels."""
        if self.timed_out:
            return "timeout"
        if self.status_code is None:
            return "transport"
        if 200 <= self.status_code < 300:
            return "malformed_response"
        return "http_status"
