"""Shared fixtures for Alert Bridge API tests."""

from collections.abc import Callable, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from apps.alert_bridge.config import get_settings
from apps.alert_bridge.main import app, get_order_client
from libs.bybit import TESTNET_BASE_URL, BybitOrderClient, ExchangeCredentials

FIXED_TS = 1700000000000

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture()
def bridge_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Minimal environment for Settings, with the settings cache reset around the test."""
    monkeypatch.setenv("BYBIT_API_KEY", "test-key")
    monkeypatch.setenv("BYBIT_API_SECRET", "test-secret")
    monkeypatch.setenv("USE_TESTNET", "true")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def exchange_requests() -> list[httpx.Request]:
    """Requests seen by the mocked exchange."""
    return []


@pytest.fixture()
def exchange_reply() -> dict[str, Handler]:
    """Mutable holder for the mocked exchange behaviour; tests swap ["handler"]."""
    return {
        "handler": lambda request: httpx.Response(
            200,
            json={"retCode": 0, "retMsg": "OK", "result": {"orderId": "1", "orderLinkId": ""}},
        )
    }


@pytest.fixture()
def test_client(
    bridge_env: None,
    exchange_requests: list[httpx.Request],
    exchange_reply: dict[str, Handler],
) -> Iterator[TestClient]:
    """TestClient wired to a real BybitOrderClient over httpx.MockTransport.

    The lifespan is not entered; the order client dependency is overridden.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        exchange_requests.append(request)
        return exchange_reply["handler"](request)

    order_client = BybitOrderClient(
        ExchangeCredentials(
            api_key="test-key", api_secret="test-secret", base_url=TESTNET_BASE_URL
        ),
        clock=lambda: FIXED_TS,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    app.dependency_overrides[get_order_client] = lambda: order_client
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()
