"""
Bybit v5 HMAC-SHA256 request signing.

Bybit signs POST requests as:

    HMAC_SHA256(secret, timestamp + api_key + recv_window + body).hexdigest()

where body is the exact JSON string sent on the wire. Any deviation in field
order, whitespace or concatenation order makes every request fail
authentication, so the body is serialized once (OrderRequest.serialize) and the
same string is signed and sent.

See: https://bybit-exchange.github.io/docs/v5/guide#create-a-request
"""

import hashlib
import hmac
from dataclasses import dataclass

from libs.bybit.schemas import OrderRequest

SIGN_TYPE_HMAC_SHA256 = "2"
DEFAULT_RECV_WINDOW_MS = 5000

HEADER_API_KEY = "X-BAPI-API-KEY"
HEADER_SIGN = "X-BAPI-SIGN"
HEADER_SIGN_TYPE = "X-BAPI-SIGN-TYPE"
HEADER_TIMESTAMP = "X-BAPI-TIMESTAMP"
HEADER_RECV_WINDOW = "X-BAPI-RECV-WINDOW"


def sign_payload(
    timestamp: int | str,
    recv_window: int | str,
    payload: str,
    api_key: str,
    api_secret: str,
) -> str:
    """
    Compute the Bybit v5 signature for a request body.

    Args:
        timestamp: Epoch milliseconds, as sent in X-BAPI-TIMESTAMP
        recv_window: Validity window in ms, as sent in X-BAPI-RECV-WINDOW
        payload: Exact request body string
        api_key: Bybit API key
        api_secret: Bybit API secret (HMAC key)

    Returns:
        Lowercase hex HMAC-SHA256 digest (64 chars)

    Examples:
        >>> sig = sign_payload(1700000000000, 5000, '{"a":"b"}', "K", "S")
        >>> len(sig)
        64
    """
    message = f"{timestamp}{api_key}{recv_window}{payload}"
    return hmac.new(
        api_secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def sign_order(
    timestamp: int | str,
    recv_window: int | str,
    order: OrderRequest,
    api_key: str,
    api_secret: str,
) -> str:
    """Sign an order using its canonical serialization."""
    return sign_payload(timestamp, recv_window, order.serialize(), api_key, api_secret)


@dataclass(frozen=True)
class SignedEnvelope:
    """Single-use authentication metadata for one request.

    Attributes:
        api_key: Key the signature was made for
        timestamp: Epoch ms at signing time
        recv_window: Validity window in ms
        signature: Lowercase hex HMAC-SHA256
    """

    api_key: str
    timestamp: int
    recv_window: int
    signature: str

    def headers(self) -> dict[str, str]:
        """Authentication headers required by Bybit v5."""
        return {
            HEADER_API_KEY: self.api_key,
            HEADER_SIGN: self.signature,
            HEADER_SIGN_TYPE: SIGN_TYPE_HMAC_SHA256,
            HEADER_TIMESTAMP: str(self.timestamp),
            HEADER_RECV_WINDOW: str(self.recv_window),
        }


def build_envelope(
    payload: str,
    api_key: str,
    api_secret: str,
    timestamp: int,
    recv_window: int = DEFAULT_RECV_WINDOW_MS,
) -> SignedEnvelope:
    """Sign payload and bundle the result with its request metadata."""
    return SignedEnvelope(
        api_key=api_key,
        timestamp=timestamp,
        recv_window=recv_window,
        signature=sign_payload(timestamp, recv_window, payload, api_key, api_secret),
    )
