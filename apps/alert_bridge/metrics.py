"""Prometheus metrics for the Alert Bridge.

Usage:
    from apps.alert_bridge.metrics import record_relay_result

    record_relay_result(result)
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

from libs.bybit import RelayResult, RelayStatus

DISPATCH_ERROR_REASONS = ("timeout", "transport", "http_status", "malformed_response")

alerts_total = Counter(
    "alert_bridge_alerts_total",
    "Total alerts processed, by outcome",
    ["status"],  # accepted, rejected, invalid_alert, dispatch_failed
)

orders_submitted_total = Counter(
    "alert_bridge_orders_submitted_total",
    "Orders sent to Bybit (any outcome after signing)",
    ["side", "order_type"],
)

order_dispatch_duration_seconds = Histogram(
    "alert_bridge_order_dispatch_duration_seconds",
    "Time from alert receipt to relay result",
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0),
)

dispatch_errors_total = Counter(
    "alert_bridge_dispatch_errors_total",
    "Order dispatch failures",
    ["reason"],
)

# Pre-initialize label sets so dashboards see zeros before the first alert
for _status in RelayStatus:
    alerts_total.labels(status=_status.value)
for _reason in DISPATCH_ERROR_REASONS:
    dispatch_errors_total.labels(reason=_reason)


def record_relay_result(result: RelayResult) -> None:
    """Update counters for one relayed alert."""
    alerts_total.labels(status=result.status.value).inc()
    if result.order is not None:
        orders_submitted_total.labels(
            side=result.order.side.value, order_type=result.order.order_type.value
        ).inc()
    if result.dispatch_reason is not None:
        dispatch_errors_total.labels(reason=result.dispatch_reason).inc()
