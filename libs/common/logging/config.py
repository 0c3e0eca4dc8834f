"""Logging configuration for the alert bridge.

Example:
    >>> from libs.common.logging.config import configure_logging
    >>> logger = configure_logging(service_name="alert-bridge", log_level="INFO")
    >>> logger.info("Bridge started", extra={"context": {"testnet": True}})
"""

import logging
import sys

from libs.common.logging.context import get_trace_id
from libs.common.logging.formatter import JSONFormatter


class TraceIDFilter(logging.Filter):
    """Logging filter that stamps the current trace ID onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = get_trace_id()
        return True


def configure_logging(
    service_name: str,
    log_level: str = "INFO",
    include_context: bool = True,
) -> logging.Logger:
    """Configure structured JSON logging on the root logger.

    Sets up a single stdout handler with JSONFormatter and TraceIDFilter.
    Existing root handlers are removed so repeated calls (tests, reloads)
    never duplicate output. Call once at service startup.

    Args:
        service_name: Name of the service (e.g., "alert-bridge")
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_context: Whether to include context dict in output

    Returns:
        Configured root logger instance

    Raises:
        ValueError: If log_level is invalid
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(JSONFormatter(service_name=service_name, include_context=include_context))
    handler.addFilter(TraceIDFilter())

    root_logger.addHandler(handler)

    return root_logger
