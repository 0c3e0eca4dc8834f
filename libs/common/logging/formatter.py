"""JSON log formatter for structured logging.

Example log output:
    {
        "timestamp": "2025-10-21T10:30:00.000Z",
        "level": "INFO",
        "service": "alert-bridge",
        "trace_id": "abc123-def456",
        "message": "Order submitted",
        "context": {
            "symbol": "BTCUSDT",
            "side": "Buy",
            "ret_code": 0
        }
    }

Context keys that look like credentials (``api_secret``, ``signature``, ...)
are redacted before serialization so a careless ``extra=`` can never leak the
exchange secret into log aggregation.
"""

import json
import logging
import traceback
from datetime import UTC, datetime
from types import TracebackType
from typing import Any

REDACTED = "***"

# Substrings of context keys whose values must never be written out
SENSITIVE_KEY_MARKERS = ("secret", "signature", "password", "token")

_RESERVED_FIELDS = {
    "name",
    "msg",
    "args",
    "created",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "thread",
    "threadName",
    "taskName",
    "trace_id",
    "context",
    "exc_info",
    "exc_text",
    "stack_info",
}


def redact_context(context: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of context with sensitive values replaced.

    Nested dicts are redacted recursively.

    Example:
        >>> redact_context({"api_secret": "S", "symbol": "BTCUSDT"})
        {'api_secret': '***', 'symbol': 'BTCUSDT'}
    """
    redacted: dict[str, Any] = {}
    for key, value in context.items():
        lowered = str(key).lower()
        if any(marker in lowered for marker in SENSITIVE_KEY_MARKERS):
            redacted[key] = REDACTED
        elif isinstance(value, dict):
            redacted[key] = redact_context(value)
        else:
            redacted[key] = value
    return redacted


class JSONFormatter(logging.Formatter):
    """Formatter that renders log records as single-line JSON.

    Attributes:
        service_name: Name of the service emitting logs
        include_context: Whether to include extra context fields

    Example:
        >>> formatter = JSONFormatter(service_name="alert-bridge")
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
        >>> logger.info("Alert received", extra={"context": {"symbol": "BTCUSDT"}})
    """

    def __init__(
        self, service_name: str, include_context: bool = True, *args: Any, **kwargs: Any
    ) -> None:
        super().__init__(*args, **kwargs)
        self.service_name = service_name
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON.

        Args:
            record: The log record to format

        Returns:
            JSON string with timestamp, level, service, trace_id, message and,
            when present, context, exception and source location
        """
        log_entry: dict[str, Any] = {
            "timestamp": self._format_timestamp(record.created),
            "level": record.levelname,
            "service": self.service_name,
            "trace_id": getattr(record, "trace_id", None),
            "message": record.getMessage(),
        }

        if self.include_context:
            context = self._extract_context(record)
            if context:
                log_entry["context"] = redact_context(context)

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self._format_exception(record.exc_info),
            }

        log_entry["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        return json.dumps(log_entry, default=str)

    def _format_timestamp(self, created: float) -> str:
        """Format a LogRecord timestamp as ISO 8601 UTC with milliseconds.

        Example:
            >>> JSONFormatter(service_name="test")._format_timestamp(1697896200.0)
            '2023-10-21T13:50:00.000Z'
        """
        dt = datetime.fromtimestamp(created, tz=UTC)
        return dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"

    def _extract_context(self, record: logging.LogRecord) -> dict[str, Any] | None:
        """Extract context from the record.

        An explicit ``extra={"context": {...}}`` wins; otherwise every
        non-standard attribute passed via ``extra=`` is collected.
        """
        context = getattr(record, "context", None)
        if context and isinstance(context, dict):
            return dict(context)

        extra = {
            key: value for key, value in record.__dict__.items() if key not in _RESERVED_FIELDS
        }
        return extra if extra else None

    def _format_exception(
        self,
        exc_info: tuple[type[BaseException] | None, BaseException | None, TracebackType | None],
    ) -> str:
        return "".join(traceback.format_exception(*exc_info))
