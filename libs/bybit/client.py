"""
Async Bybit v5 REST client for signed order submission.

Handles exactly one concern: turn an OrderRequest into one signed POST to
/v5/order/create and hand back the exchange's answer. There is deliberately no
retry loop here: a re-sent order is a second order, so retry decisions belong
to whoever sent the alert.

Outcomes:
- ExchangeResponse(success=True): retCode 0
- ExchangeResponse(success=False): exchange rejected the order (retCode != 0)
- DispatchError: timeout, connection/DNS failure, non-2xx status, garbled body

Example:
    >>> credentials = ExchangeCredentials.for_network("key", "secret", testnet=True)
    >>> async with BybitOrderClient(credentials) as client:
    ...     response = await client.submit(order)
    ...     response.success
    True
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import ValidationError

from libs.bybit.exceptions import DispatchError
from libs.bybit.schemas import ExchangeResponse, OrderRequest
from libs.bybit.signing import DEFAULT_RECV_WINDOW_MS, SignedEnvelope, build_envelope
from libs.common.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

MAINNET_BASE_URL = "https://api.bybit.com"
TESTNET_BASE_URL = "https://api-testnet.bybit.com"

ORDER_CREATE_PATH = "/v5/order/create"
SERVER_TIME_PATH = "/v5/market/time"

DEFAULT_TIMEOUT_SECONDS = 10.0

# Zero-argument callable returning epoch milliseconds
Clock = Callable[[], int]


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ExchangeCredentials:
    """Immutable Bybit credentials plus the network they belong to.

    Built once at startup and shared read-only by every request. The secret
    is excluded from repr() so it cannot leak through logging of the object.

    Raises:
        ConfigurationError: If api_key, api_secret or base_url is empty
    """

    api_key: str
    api_secret: str = field(repr=False)
    base_url: str = MAINNET_BASE_URL

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigurationError("Bybit API key is not configured")
        if not self.api_secret:
            raise ConfigurationError("Bybit API secret is not configured")
        if not self.base_url:
            raise ConfigurationError("Bybit base URL is not configured")
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def for_network(cls, api_key: str, api_secret: str, testnet: bool) -> "ExchangeCredentials":
        """Credentials pointed at Bybit testnet or mainnet."""
        return cls(
            api_key=api_key,
            api_secret=api_secret,
            base_url=TESTNET_BASE_URL if testnet else MAINNET_BASE_URL,
        )

    @property
    def is_testnet(self) -> bool:
        return self.base_url == TESTNET_BASE_URL

    @property
    def masked_key(self) -> str:
        """API key prefix safe for logs."""
        return f"{self.api_key[:4]}***"


class BybitOrderClient:
    """
    Signed order dispatcher for the Bybit v5 REST API.

    Safe to share across concurrent alerts: it holds only immutable
    credentials and a pooled httpx.AsyncClient.

    Attributes:
        credentials: API key/secret and base URL
        timeout: Upper bound in seconds for one exchange call
        recv_window_ms: Value sent in X-BAPI-RECV-WINDOW
    """

    def __init__(
        self,
        credentials: ExchangeCredentials,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        recv_window_ms: int = DEFAULT_RECV_WINDOW_MS,
        clock: Clock | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            credentials: Immutable exchange credentials
            timeout: Request timeout in seconds (default: 10.0)
            recv_window_ms: Signature validity window in ms (default: 5000)
            clock: Epoch-ms source; inject a fixed clock for deterministic
                signatures in tests
            http_client: Pre-built httpx client (tests inject one backed by
                httpx.MockTransport). Created and owned here when omitted.
        """
        self.credentials = credentials
        self.timeout = timeout
        self.recv_window_ms = recv_window_ms
        self._clock = clock or epoch_ms
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def base_url(self) -> str:
        return self.credentials.base_url

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "BybitOrderClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def sign(self, payload: str) -> SignedEnvelope:
        """Sign a request body with a fresh timestamp from the clock."""
        return build_envelope(
            payload,
            api_key=self.credentials.api_key,
            api_secret=self.credentials.api_secret,
            timestamp=self._clock(),
            recv_window=self.recv_window_ms,
        )

    async def submit(self, order: OrderRequest) -> ExchangeResponse:
        """
        Submit one order. Exactly one POST, no retry.

        Args:
            order: Canonical order body

        Returns:
            ExchangeResponse; check .success for the exchange verdict

        Raises:
            DispatchError: Timeout, transport failure, non-2xx status or a
                body without retCode
        """
        body = order.serialize()
        envelope = self.sign(body)
        headers = {"Content-Type": "application/json", **envelope.headers()}

        logger.info(
            f"Submitting order: {order.side.value} {order.qty} {order.symbol}",
            extra={
                "context": {
                    "symbol": order.symbol,
                    "side": order.side.value,
                    "order_type": order.order_type.value,
                    "qty": order.qty,
                    "price": order.price,
                    "api_key": self.credentials.masked_key,
                    "timestamp": envelope.timestamp,
                }
            },
        )

        started = time.perf_counter()
        response = await self._send(
            "POST", ORDER_CREATE_PATH, content=body.encode("utf-8"), headers=headers
        )
        exchange_response = self._parse_order_response(response)

        logger.info(
            f"Bybit replied retCode={exchange_response.ret_code}",
            extra={
                "context": {
                    "symbol": order.symbol,
                    "ret_code": exchange_response.ret_code,
                    "ret_msg": exchange_response.ret_msg,
                    "http_status": exchange_response.http_status,
                    "elapsed_ms": round((time.perf_counter() - started) * 1000, 1),
                }
            },
        )
        return exchange_response

    async def server_time(self) -> dict[str, Any]:
        """
        Fetch /v5/market/time (public, unsigned) as a connectivity probe.

        Returns:
            Decoded exchange body, verbatim

        Raises:
            DispatchError: On transport failure, non-2xx or non-JSON reply
        """
        response = await self._send("GET", SERVER_TIME_PATH)
        body = _decode_body(response)
        if not response.is_success:
            raise DispatchError(
                f"Bybit returned HTTP {response.status_code}",
                status_code=response.status_code,
                response_body=body,
            )
        if not isinstance(body, dict):
            raise DispatchError(
                "Bybit returned a non-JSON body",
                status_code=response.status_code,
                response_body=body,
            )
        return body

    async def _send(
        self,
        method: str,
        path: str,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Issue one request bounded by self.timeout, mapping failures to DispatchError."""
        url = f"{self.base_url}{path}"
        try:
            # httpx timeouts apply per phase; wait_for bounds the whole exchange
            return await asyncio.wait_for(
                self.client.request(
                    method, url, content=content, headers=headers, timeout=self.timeout
                ),
                timeout=self.timeout,
            )
        except (httpx.TimeoutException, TimeoutError) as exc:
            logger.error(
                f"Bybit request timed out after {self.timeout}s",
                extra={"context": {"method": method, "path": path}},
            )
            raise DispatchError(
                f"Bybit request timed out after {self.timeout}s", cause=exc, timed_out=True
            ) from exc
        except httpx.TransportError as exc:
            logger.error(
                f"Bybit request failed: {exc}",
                extra={
                    "context": {
                        "method": method,
                        "path": path,
                        "error_type": type(exc).__name__,
                    }
                },
            )
            raise DispatchError(f"Bybit request failed: {exc}", cause=exc) from exc

    def _parse_order_response(self, response: httpx.Response) -> ExchangeResponse:
        body = _decode_body(response)

        if not response.is_success:
            logger.error(
                f"Bybit returned HTTP {response.status_code}",
                extra={"context": {"status_code": response.status_code, "response": body}},
            )
            raise DispatchError(
                f"Bybit returned HTTP {response.status_code}",
                status_code=response.status_code,
                response_body=body,
            )

        if not isinstance(body, dict):
            logger.error(
                "Bybit returned a non-JSON order response",
                extra={"context": {"status_code": response.status_code, "response": body}},
            )
            raise DispatchError(
                "Bybit returned a non-JSON body",
                status_code=response.status_code,
                response_body=body,
            )

        try:
            return ExchangeResponse.from_body(body, http_status=response.status_code)
        except ValidationError as exc:
            logger.error(
                "Bybit order response has no valid retCode",
                extra={"context": {"status_code": response.status_code, "response": body}},
            )
            raise DispatchError(
                "Bybit response is missing retCode",
                cause=exc,
                status_code=response.status_code,
                response_body=body,
            ) from exc


def _decode_body(response: httpx.Response) -> Any:
    """JSON-decode a response, falling back to its text."""
    try:
        return response.json()
    except ValueError:
        return response.text
