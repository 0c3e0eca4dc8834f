"""Tests for Bybit v5 HMAC-SHA256 request signing."""

import hashlib
import hmac

from libs.bybit.schemas import OrderRequest, OrderType, Side
from libs.bybit.signing import (
    HEADER_API_KEY,
    HEADER_RECV_WINDOW,
    HEADER_SIGN,
    HEADER_SIGN_TYPE,
    HEADER_TIMESTAMP,
    build_envelope,
    sign_order,
    sign_payload,
)

TIMESTAMP = 1700000000000
API_KEY = "test-key"
API_SECRET = "test-secret"


def _order() -> OrderRequest:
    return OrderRequest(symbol="BTCUSDT", side=Side.BUY, order_type=OrderType.MARKET, qty="0.01")


class TestSignPayload:
    def test_matches_documented_scheme(self) -> None:
        payload = '{"category":"spot","symbol":"BTCUSDT"}'
        message = f"{TIMESTAMP}{API_KEY}5000{payload}"
        expected = hmac.new(API_SECRET.encode(), message.encode(), hashlib.sha256).hexdigest()

        assert sign_payload(TIMESTAMP, 5000, payload, API_KEY, API_SECRET) == expected

    def test_lowercase_hex(self) -> None:
        signature = sign_payload(TIMESTAMP, 5000, "{}", API_KEY, API_SECRET)

        assert len(signature) == 64
        assert signature == signature.lower()
        int(signature, 16)

    def test_deterministic(self) -> None:
        first = sign_payload(TIMESTAMP, 5000, "{}", API_KEY, API_SECRET)
        second = sign_payload(str(TIMESTAMP), "5000", "{}", API_KEY, API_SECRET)

        assert first == second

    def test_any_input_change_changes_signature(self) -> None:
        base = sign_payload(TIMESTAMP, 5000, "{}", API_KEY, API_SECRET)

        assert sign_payload(TIMESTAMP + 1, 5000, "{}", API_KEY, API_SECRET) != base
        assert sign_payload(TIMESTAMP, 5001, "{}", API_KEY, API_SECRET) != base
        assert sign_payload(TIMESTAMP, 5000, "{ }", API_KEY, API_SECRET) != base
        assert sign_payload(TIMESTAMP, 5000, "{}", "other", API_SECRET) != base
        assert sign_payload(TIMESTAMP, 5000, "{}", API_KEY, "other") != base

    def test_utf8_payload(self) -> None:
        payload = '{"note":"café"}'
        message = f"{TIMESTAMP}{API_KEY}5000{payload}".encode()
        expected = hmac.new(API_SECRET.encode(), message, hashlib.sha256).hexdigest()

        assert sign_payload(TIMESTAMP, 5000, payload, API_KEY, API_SECRET) == expected


class TestSignOrder:
    def test_fixed_vector_over_serialized_order(self) -> None:
        serialized = (
            '{"category":"spot","symbol":"BTCUSDT","side":"Buy","orderType":"Market",'
            '"qty":"0.01","timeInForce":"GTC"}'
        )
        expected = hmac.new(
            b"S", f"1700000000000K5000{serialized}".encode(), hashlib.sha256
        ).hexdigest()

        assert _order().serialize() == serialized
        assert sign_order(1700000000000, "5000", _order(), "K", "S") == expected
        assert sign_payload("1700000000000", "5000", serialized, "K", "S") == expected

    def test_signs_canonical_serialization(self) -> None:
        order = _order()

        assert sign_order(TIMESTAMP, 5000, order, API_KEY, API_SECRET) == sign_payload(
            TIMESTAMP, 5000, order.serialize(), API_KEY, API_SECRET
        )


class TestSignedEnvelope:
    def test_headers(self) -> None:
        payload = _order().serialize()

        envelope = build_envelope(payload, API_KEY, API_SECRET, timestamp=TIMESTAMP)

        assert envelope.headers() == {
            HEADER_API_KEY: API_KEY,
            HEADER_SIGN: sign_payload(TIMESTAMP, 5000, payload, API_KEY, API_SECRET),
            HEADER_SIGN_TYPE: "2",
            HEADER_TIMESTAMP: "1700000000000",
            HEADER_RECV_WINDOW: "5000",
        }

    def test_custom_recv_window(self) -> None:
        envelope = build_envelope("{}", API_KEY, API_SECRET, timestamp=TIMESTAMP, recv_window=10000)

        assert envelope.headers()[HEADER_RECV_WINDOW] == "10000"
        assert envelope.signature == sign_payload(TIMESTAMP, 10000, "{}", API_KEY, API_SECRET)
