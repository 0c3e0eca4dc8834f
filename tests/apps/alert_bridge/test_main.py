"""
Unit tests for Alert Bridge FastAPI endpoints.

Tests cover:
- POST /webhook (accepted, rejected, invalid alert, dispatch failures)
- GET / banner
- GET /test-connection
- GET /health
- Lifespan wiring of the order client
"""

import json
from unittest.mock import Mock

import httpx
import pytest
from fastapi.testclient import TestClient

from apps.alert_bridge import main as main_mod
from apps.alert_bridge.main import ROOT_MESSAGE, app
from libs.bybit import sign_payload
from libs.common.logging import TRACE_ID_HEADER

FIXED_TS = 1700000000000


def _raise(exc: Exception):
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc

    return handler


class TestWebhookEndpoint:
    def test_market_order_accepted(self, test_client, exchange_requests):
        response = test_client.post(
            "/webhook",
            json={"symbol": "BTC/USD", "action": "buy", "quantity": 0.01, "orderType": "market"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "OK",
            "data": {"orderId": "1", "orderLinkId": ""},
        }

        assert len(exchange_requests) == 1
        sent = exchange_requests[0]
        body = sent.content.decode()
        assert json.loads(body) == {
            "category": "spot",
            "symbol": "BTCUSDT",
            "side": "Buy",
            "orderType": "Market",
            "qty": "0.01",
            "timeInForce": "GTC",
        }
        assert sent.headers["X-BAPI-SIGN"] == sign_payload(
            FIXED_TS, 5000, body, "test-key", "test-secret"
        )

    def test_limit_order_forwards_price(self, test_client, exchange_requests):
        response = test_client.post(
            "/webhook",
            json={
                "symbol": "eth/usdt",
                "action": "SELL",
                "quantity": "1.5",
                "price": "2500.50",
                "orderType": "LIMIT",
                "takeProfit": 2400,
                "stopLoss": 2600,
            },
        )

        assert response.status_code == 200
        sent = json.loads(exchange_requests[0].content)
        assert sent["side"] == "Sell"
        assert sent["orderType"] == "Limit"
        assert sent["price"] == "2500.50"
        assert "takeProfit" not in sent

    def test_exchange_rejection_is_relayed(self, test_client, exchange_reply):
        exchange_reply["handler"] = lambda request: httpx.Response(
            200, json={"retCode": 170131, "retMsg": "Insufficient balance.", "result": {}}
        )

        response = test_client.post(
            "/webhook", json={"symbol": "BTCUSDT", "action": "buy", "quantity": 100}
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": False,
            "message": "Insufficient balance.",
            "data": {},
            "retCode": 170131,
        }

    @pytest.mark.parametrize(
        "payload",
        [
            {"action": "buy", "quantity": 1},
            {"symbol": "BTCUSDT", "action": "hold", "quantity": 1},
            {"symbol": "BTCUSDT", "action": "buy"},
            {"symbol": "BTCUSDT", "action": "buy", "quantity": "lots"},
            {"symbol": "BTCUSDT", "action": "buy", "quantity": 1, "orderType": "limit"},
            {"symbol": "BTCUSDT", "action": "buy", "quantity": 1, "orderType": "stop"},
        ],
    )
    def test_invalid_alert_returns_400(self, test_client, exchange_requests, payload):
        response = test_client.post("/webhook", json=payload)

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Invalid alert"
        assert data["error"]
        assert exchange_requests == []

    @pytest.mark.parametrize("quantity", ["1e200000", "1_000"])
    def test_oversized_or_grouped_quantity_is_rejected(
        self, test_client, exchange_requests, quantity
    ):
        response = test_client.post(
            "/webhook", json={"symbol": "BTCUSDT", "action": "buy", "quantity": quantity}
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid alert"
        assert "quantity" in response.json()["error"]
        assert exchange_requests == []

    def test_malformed_body_returns_422_envelope(self, test_client, exchange_requests):
        response = test_client.post(
            "/webhook", content=b"not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Invalid alert payload"
        assert exchange_requests == []

    def test_http_error_returns_502_with_details(self, test_client, exchange_reply):
        exchange_reply["handler"] = lambda request: httpx.Response(
            401, json={"retCode": 10003, "retMsg": "API key is invalid."}
        )

        response = test_client.post(
            "/webhook", json={"symbol": "BTCUSDT", "action": "buy", "quantity": 1}
        )

        assert response.status_code == 502
        data = response.json()
        assert data["success"] is False
        assert data["message"] == "Error processing trade"
        assert data["error"] == "Bybit returned HTTP 401"
        assert data["details"] == {"retCode": 10003, "retMsg": "API key is invalid."}

    def test_transport_error_returns_502(self, test_client, exchange_reply):
        exchange_reply["handler"] = _raise(httpx.ConnectError("connection refused"))

        response = test_client.post(
            "/webhook", json={"symbol": "BTCUSDT", "action": "buy", "quantity": 1}
        )

        assert response.status_code == 502
        assert response.json()["message"] == "Error processing trade"

    def test_timeout_returns_504(self, test_client, exchange_reply):
        exchange_reply["handler"] = _raise(httpx.ReadTimeout("timed out"))

        response = test_client.post(
            "/webhook", json={"symbol": "BTCUSDT", "action": "buy", "quantity": 1}
        )

        assert response.status_code == 504
        assert response.json()["success"] is False
        assert "timed out" in response.json()["error"]

    def test_response_carries_trace_id(self, test_client):
        response = test_client.post(
            "/webhook",
            json={"symbol": "BTCUSDT", "action": "buy", "quantity": 1},
            headers={TRACE_ID_HEADER: "tv-alert-1"},
        )

        assert response.headers[TRACE_ID_HEADER] == "tv-alert-1"

    def test_unavailable_without_order_client(self, bridge_env):
        app.state.order_client = None
        client = TestClient(app)

        response = client.post(
            "/webhook", json={"symbol": "BTCUSDT", "action": "buy", "quantity": 1}
        )

        assert response.status_code == 503
        assert "not initialized" in response.json()["detail"]


class TestRootEndpoint:
    def test_banner(self, test_client):
        response = test_client.get("/")

        assert response.status_code == 200
        assert response.text == ROOT_MESSAGE
        assert response.headers["content-type"].startswith("text/plain")


class TestConnectionEndpoint:
    def test_success(self, test_client, exchange_reply, exchange_requests):
        body = {"retCode": 0, "retMsg": "OK", "result": {"timeSecond": "1700000000"}}
        exchange_reply["handler"] = lambda request: httpx.Response(200, json=body)

        response = test_client.get("/test-connection")

        assert response.status_code == 200
        assert response.json() == {
            "status": "success",
            "message": "Connected to Bybit API successfully",
            "data": body,
        }
        assert exchange_requests[0].url.path == "/v5/market/time"

    def test_failure(self, test_client, exchange_reply):
        exchange_reply["handler"] = _raise(httpx.ConnectError("dns failure"))

        response = test_client.get("/test-connection")

        assert response.status_code == 500
        data = response.json()
        assert data["status"] == "error"
        assert data["message"] == "Failed to connect to Bybit API"
        assert "dns failure" in data["error"]


class TestHealthEndpoint:
    def test_healthy(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "service": "alert-bridge",
            "testnet": True,
            "base_url": "https://api-testnet.bybit.com",
        }


class TestMetricsEndpoint:
    def test_exposes_bridge_metrics(self, test_client):
        test_client.post("/webhook", json={"symbol": "BTCUSDT", "action": "buy", "quantity": 1})

        response = test_client.get("/metrics/")

        assert response.status_code == 200
        assert "alert_bridge_alerts_total" in response.text


class TestLifespan:
    def test_builds_and_closes_order_client(self, bridge_env, monkeypatch):
        monkeypatch.setattr(main_mod, "configure_logging", Mock())

        with TestClient(app) as client:
            order_client = app.state.order_client
            assert order_client.base_url == "https://api-testnet.bybit.com"
            assert order_client.timeout == 10.0
            assert order_client.recv_window_ms == 5000
            assert client.get("/health").status_code == 200

        assert app.state.order_client is None
        assert order_client.client.is_closed is True
        main_mod.configure_logging.assert_called_once_with(
            service_name="alert-bridge", log_level="INFO"
        )

    def test_missing_credentials_abort_startup(self, monkeypatch):
        monkeypatch.setattr(main_mod, "configure_logging", Mock())
        monkeypatch.delenv("BYBIT_API_KEY", raising=False)
        monkeypatch.delenv("BYBIT_API_SECRET", raising=False)
        monkeypatch.chdir("/")  # no .env file
        main_mod.get_settings.cache_clear()

        try:
            with pytest.raises(Exception):  # noqa: B017
                with TestClient(app):
                    pass
        finally:
            main_mod.get_settings.cache_clear()
