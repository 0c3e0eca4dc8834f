"""
Alert Bridge - FastAPI Application

Receives TradingView webhook alerts, normalizes them into Bybit v5 spot
orders, signs and submits them, and relays Bybit's answer to the caller.

Each alert is handled independently; the only state shared between requests
is the immutable credentials and the pooled HTTP client created at startup.
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import make_asgi_app

from apps.alert_bridge.config import get_settings
from apps.alert_bridge.metrics import order_dispatch_duration_seconds, record_relay_result
from apps.alert_bridge.schemas import ConnectionCheckResponse, HealthResponse, WebhookResponse
from libs.bybit import (
    Alert,
    BybitOrderClient,
    DispatchError,
    RelayResult,
    RelayStatus,
    relay_alert,
)
from libs.common.logging import add_trace_id_middleware, configure_logging

logger = logging.getLogger(__name__)

ROOT_MESSAGE = "TradingView-Bybit bridge is running! Send webhooks to the /webhook endpoint."

_RELAY_STATUS_CODES = {
    RelayStatus.ACCEPTED: status.HTTP_200_OK,
    RelayStatus.REJECTED: status.HTTP_200_OK,
    RelayStatus.INVALID_ALERT: status.HTTP_400_BAD_REQUEST,
    RelayStatus.DISPATCH_FAILED: status.HTTP_502_BAD_GATEWAY,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Build the order client on startup, close it on shutdown.

    Raises:
        ConfigurationError / pydantic.ValidationError: Missing credentials
            abort startup instead of failing on the first alert
    """
    settings = get_settings()
    configure_logging(service_name=settings.service_name, log_level=settings.log_level)

    credentials = settings.credentials()
    order_client = BybitOrderClient(
        credentials,
        timeout=settings.request_timeout_seconds,
        recv_window_ms=settings.recv_window_ms,
    )
    app.state.order_client = order_client

    logger.info(
        f"TradingView-Bybit bridge running on port {settings.port}",
        extra={
            "context": {
                "base_url": credentials.base_url,
                "testnet": credentials.is_testnet,
                "api_key": credentials.masked_key,
                "timeout_seconds": settings.request_timeout_seconds,
            }
        },
    )

    try:
        yield
    finally:
        logger.info("Shutting down Alert Bridge...")
        await order_client.close()
        app.state.order_client = None


app = FastAPI(
    title="Alert Bridge",
    description="TradingView alert to Bybit order bridge",
    version="1.0.0",
    lifespan=lifespan,
)
add_trace_id_middleware(app)

# Mount Prometheus metrics endpoint
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


# ============================================================================
# Dependencies
# ============================================================================


def get_order_client(request: Request) -> BybitOrderClient:
    """Return the order client built in lifespan (overridden in tests)."""
    order_client = getattr(request.app.state, "order_client", None)
    if order_client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Order client not initialized",
        )
    return order_client


# ============================================================================
# Exception Handlers
# ============================================================================


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed webhook bodies get the same envelope as other failures."""
    logger.warning(
        "Rejected malformed request body",
        extra={"context": {"path": request.url.path, "errors": jsonable_encoder(exc.errors())}},
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=WebhookResponse(
            success=False,
            message="Invalid alert payload",
            error=jsonable_encoder(exc.errors()),
        ).model_dump(mode="json", by_alias=True, exclude_unset=True),
    )


# ============================================================================
# Helpers
# ============================================================================


def relay_response(result: RelayResult) -> JSONResponse:
    """Map a RelayResult to the webhook HTTP response."""
    if result.status is RelayStatus.ACCEPTED:
        body = WebhookResponse(success=True, message=result.message, data=result.data)
    elif result.status is RelayStatus.REJECTED:
        body = WebhookResponse(
            success=False, message=result.message, data=result.data, ret_code=result.ret_code
        )
    elif result.status is RelayStatus.INVALID_ALERT:
        body = WebhookResponse(success=False, message=result.message, error=result.error)
    else:
        body = WebhookResponse(
            success=False, message=result.message, error=result.error, details=result.details
        )

    status_code = _RELAY_STATUS_CODES[result.status]
    if result.timed_out:
        status_code = status.HTTP_504_GATEWAY_TIMEOUT

    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_unset=True),
    )


# ============================================================================
# Endpoints
# ============================================================================


@app.get("/", response_class=PlainTextResponse)
async def root() -> str:
    """Liveness banner."""
    return ROOT_MESSAGE


@app.get("/health", response_model=HealthResponse)
async def health_check(
    order_client: BybitOrderClient = Depends(get_order_client),
) -> HealthResponse:
    """
    Health check endpoint.

    Returns 503 (via get_order_client) until the lifespan has built the
    order client.
    """
    return HealthResponse(
        status="healthy",
        service=get_settings().service_name,
        testnet=order_client.credentials.is_testnet,
        base_url=order_client.base_url,
    )


@app.post("/webhook", response_model=WebhookResponse)
async def receive_alert(
    alert: Alert,
    order_client: BybitOrderClient = Depends(get_order_client),
) -> JSONResponse:
    """
    Relay one TradingView alert to Bybit.

    Returns:
        200 with the exchange verdict (success true/false), 400 for an invalid
        alert, 502 when Bybit could not be reached or answered with an HTTP
        error, 504 on timeout
    """
    logger.info(
        f"Processing alert: {alert.action} {alert.quantity} {alert.symbol}",
        extra={"context": alert.model_dump(mode="json", by_alias=True, exclude_none=True)},
    )

    started = time.perf_counter()
    try:
        result = await relay_alert(alert, order_client)
    except Exception:
        logger.exception("Unexpected error while relaying alert")
        raise
    finally:
        order_dispatch_duration_seconds.observe(time.perf_counter() - started)
    record_relay_result(result)

    return relay_response(result)


@app.get("/test-connection", response_model=ConnectionCheckResponse)
async def check_connection(
    order_client: BybitOrderClient = Depends(get_order_client),
) -> JSONResponse:
    """Fetch Bybit server time to verify connectivity (no signing involved)."""
    try:
        data = await order_client.server_time()
    except DispatchError as exc:
        logger.error(
            f"Bybit connectivity check failed: {exc}",
            extra={"context": {"reason": exc.reason, "response": exc.response_body}},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ConnectionCheckResponse(
                status="error",
                message="Failed to connect to Bybit API",
                error=str(exc),
            ).model_dump(mode="json", exclude_unset=True),
        )

    return JSONResponse(
        content=ConnectionCheckResponse(
            status="success",
            message="Connected to Bybit API successfully",
            data=data,
        ).model_dump(mode="json", exclude_unset=True),
    )
