"""Structured JSON logging with trace ID support.

Usage:
    # At service startup
    from libs.common.logging import add_trace_id_middleware, configure_logging
    add_trace_id_middleware(app)
    configure_logging(service_name="alert-bridge", log_level="INFO")

    # Anywhere else: plain stdlib loggers; the trace ID is set by the middleware
    logger = logging.getLogger(__name__)
    logger.info("Alert received", extra={"context": {"symbol": "BTCUSDT"}})
"""

from libs.common.logging.config import TraceIDFilter, configure_logging
from libs.common.logging.context import (
    TRACE_ID_HEADER,
    clear_trace_id,
    generate_trace_id,
    get_trace_id,
    set_trace_id,
)
from libs.common.logging.formatter import JSONFormatter, redact_context
from libs.common.logging.middleware import ASGITraceIDMiddleware, add_trace_id_middleware

__all__ = [
    # Configuration
    "configure_logging",
    "TraceIDFilter",
    # Trace ID management
    "generate_trace_id",
    "get_trace_id",
    "set_trace_id",
    "clear_trace_id",
    "TRACE_ID_HEADER",
    # Middleware
    "ASGITraceIDMiddleware",
    "add_trace_id_middleware",
    # Formatter
    "JSONFormatter",
    "redact_context",
]
