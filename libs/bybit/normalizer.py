"""
Alert normalization: TradingView alert -> Bybit v5 spot order body.

Pure functions, no I/O. Every rejection is an AlertValidationError subclass and
happens before anything is signed or sent.

Example:
    >>> alert = Alert(symbol="BTC/USD", action="buy", quantity=0.01)
    >>> build_order_request(alert).serialize()
    '{"category":"spot","symbol":"BTCUSDT","side":"Buy","orderType":"Market","qty":"0.01","timeInForce":"GTC"}'
"""

import logging
import math
import re
from decimal import Decimal, InvalidOperation

from libs.bybit.exceptions import (
    InvalidActionError,
    InvalidNumberError,
    InvalidOrderTypeError,
    MissingPriceError,
    MissingQuantityError,
    MissingSymbolError,
)
from libs.bybit.schemas import Alert, OrderRequest, OrderType, Side

logger = logging.getLogger(__name__)

SYMBOL_SEPARATOR = "/"
USD_SUFFIX = "USD"
USDT_SUFFIX = "USDT"

_SIDES = {"buy": Side.BUY, "sell": Side.SELL}
_ORDER_TYPES = {OrderType.MARKET.value: OrderType.MARKET, OrderType.LIMIT.value: OrderType.LIMIT}
DEFAULT_ORDER_TYPE = "market"

# Plain decimal literal: optional sign, digits, optional fraction and exponent.
# Rejects "1_000", "NaN", "Infinity" and non-ASCII digits that Decimal accepts.
_DECIMAL_LITERAL = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

# Bounds on alert numbers; "1e999999999" must not expand into a gigabyte qty
MAX_EXPONENT = 30
MAX_SIGNIFICANT_DIGITS = 40


def normalize_symbol(raw: str | None) -> str:
    """
    Convert a charting-platform ticker to a Bybit spot symbol.

    Steps, in order:
    1. Strip every "/" separator and surrounding whitespace
    2. Uppercase
    3. If the result ends in "USD" but not "USDT", rewrite that suffix to "USDT"

    Args:
        raw: Ticker as sent by the alert, e.g. "BTC/USD", "ethusdt"

    Returns:
        Bybit symbol, e.g. "BTCUSDT"

    Raises:
        MissingSymbolError: If raw is None or empty after stripping

    Examples:
        >>> normalize_symbol("BTC/USD")
        'BTCUSDT'
        >>> normalize_symbol("ETHUSDT")
        'ETHUSDT'
        >>> normalize_symbol(normalize_symbol("sol/usd"))
        'SOLUSDT'
    """
    if raw is None:
        raise MissingSymbolError()

    symbol = raw.replace(SYMBOL_SEPARATOR, "").strip().upper()
    if not symbol:
        raise MissingSymbolError()

    if symbol.endswith(USD_SUFFIX) and not symbol.endswith(USDT_SUFFIX):
        symbol = symbol[: -len(USD_SUFFIX)] + USDT_SUFFIX

    return symbol


def to_decimal_string(value: object, field: str) -> str:
    """
    Convert an alert number to the exact decimal string Bybit expects.

    Conversion rules:
    - int: its digits ("5")
    - float: shortest round-trip repr, in fixed-point (0.01 -> "0.01",
      1e-07 -> "0.0000001")
    - Decimal / numeric str: parsed as written, fixed-point, digits kept
      ("0.010" -> "0.010")

    Args:
        value: Raw alert value
        field: Alert field name, used in the error message

    Returns:
        Fixed-point decimal string, never scientific notation

    Raises:
        InvalidNumberError: For bool, strings that are not plain decimal
            literals (digit grouping with "_" included), NaN/Infinity,
            unsupported types, values <= 0, adjusted exponents outside
            +/-MAX_EXPONENT and more than MAX_SIGNIFICANT_DIGITS digits
    """
    # bool is an int subclass; "quantity": true is a template bug, not 1
    if isinstance(value, bool):
        raise InvalidNumberError(field, value)

    if isinstance(value, int):
        number = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidNumberError(field, value, "must be finite")
        number = Decimal(repr(value))
    elif isinstance(value, Decimal):
        number = value
    elif isinstance(value, str):
        literal = value.strip()
        if not _DECIMAL_LITERAL.fullmatch(literal):
            raise InvalidNumberError(field, value)
        try:
            number = Decimal(literal)
        except InvalidOperation as exc:
            raise InvalidNumberError(field, value) from exc
    else:
        raise InvalidNumberError(field, value, f"unsupported type {type(value).__name__}")

    if not number.is_finite():
        raise InvalidNumberError(field, value, "must be finite")
    if number <= 0:
        raise InvalidNumberError(field, value, "must be greater than zero")
    if not -MAX_EXPONENT <= number.adjusted() <= MAX_EXPONENT:
        raise InvalidNumberError(field, value, "magnitude out of range")
    if len(number.as_tuple().digits) > MAX_SIGNIFICANT_DIGITS:
        raise InvalidNumberError(field, value, "too many digits")

    return format(number, "f")


def resolve_side(action: str | None) -> Side:
    """Map an alert action to a Bybit side, case-insensitively.

    Raises:
        InvalidActionError: If action is missing or not buy/sell
    """
    if not isinstance(action, str):
        raise InvalidActionError(action)
    side = _SIDES.get(action.lower())
    if side is None:
        raise InvalidActionError(action)
    return side


def resolve_order_type(order_type: str | None) -> OrderType:
    """Title-case the alert orderType and check it is Market or Limit.

    A missing orderType means market.

    Raises:
        InvalidOrderTypeError: If the title-cased value is not Market/Limit
    """
    if order_type is None:
        order_type = DEFAULT_ORDER_TYPE
    capitalized = order_type[:1].upper() + order_type[1:].lower()
    resolved = _ORDER_TYPES.get(capitalized)
    if resolved is None:
        raise InvalidOrderTypeError(order_type)
    return resolved


def build_order_request(alert: Alert) -> OrderRequest:
    """
    Build the canonical Bybit order body from an alert.

    Args:
        alert: Decoded inbound alert

    Returns:
        OrderRequest; price is set only for limit orders

    Raises:
        MissingSymbolError: No symbol
        InvalidActionError: action not buy/sell
        InvalidOrderTypeError: orderType not market/limit
        MissingQuantityError: No quantity
        MissingPriceError: Limit order without price
        InvalidNumberError: quantity/price not a positive finite number

    Examples:
        >>> order = build_order_request(
        ...     Alert(symbol="ETH/USD", action="SELL", quantity="1.5", price=2500, orderType="LIMIT")
        ... )
        >>> order.to_payload()["price"]
        '2500'
    """
    symbol = normalize_symbol(alert.symbol)
    side = resolve_side(alert.action)
    order_type = resolve_order_type(alert.order_type)

    if alert.quantity is None or (isinstance(alert.quantity, str) and not alert.quantity.strip()):
        raise MissingQuantityError()
    qty = to_decimal_string(alert.quantity, "quantity")

    price: str | None = None
    if order_type is OrderType.LIMIT:
        if alert.price is None or (isinstance(alert.price, str) and not alert.price.strip()):
            raise MissingPriceError()
        price = to_decimal_string(alert.price, "price")
    elif alert.price is not None:
        logger.debug(
            "Dropping price from market order",
            extra={"context": {"symbol": symbol, "price": alert.price}},
        )

    # takeProfit/stopLoss are accepted but not forwarded (no bracket orders yet)
    if alert.take_profit is not None or alert.stop_loss is not None:
        logger.info(
            "Alert carries takeProfit/stopLoss; not forwarded to the exchange",
            extra={
                "context": {
                    "symbol": symbol,
                    "take_profit": alert.take_profit,
                    "stop_loss": alert.stop_loss,
                }
            },
        )

    order = OrderRequest(
        symbol=symbol,
        side=side,
        order_type=order_type,
        qty=qty,
        price=price,
    )
    logger.debug("Built order", extra={"context": order.to_payload()})
    return order
