"""Trace ID generation and context propagation.

Every inbound alert gets a trace ID (taken from the X-Trace-ID request header or
freshly generated) so that the "alert received", "order submitted" and
"exchange replied" log lines of one webhook call can be grouped together.

Example:
    >>> from libs.common.logging.context import get_trace_id, set_trace_id
    >>> set_trace_id("alert-123")
    >>> get_trace_id()
    'alert-123'
"""

import contextvars
import uuid

# Context variable so concurrent alerts on the event loop never share an ID
_trace_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("trace_id", default=None)

TRACE_ID_HEADER = "X-Trace-ID"


def generate_trace_id() -> str:
    """Generate a new unique trace ID (UUID v4 string).

    Returns:
        A 36-character trace ID
    """
    return str(uuid.uuid4())


def get_trace_id() -> str | None:
    """Get the trace ID of the current context, or None if unset."""
    return _trace_id_var.get()


def set_trace_id(trace_id: str) -> None:
    """Set the trace ID for the current context.

    Args:
        trace_id: The trace ID to set

    Raises:
        ValueError: If trace_id is empty or None
    """
    if not trace_id:
        raise ValueError("Trace ID cannot be empty")
    _trace_id_var.set(trace_id)


def clear_trace_id() -> None:
    """Clear the trace ID from the current context."""
    _trace_id_var.set(None)
