"""
Exception hierarchy for the alert bridge.

Every custom exception raised by the bridge inherits from AlertBridgeError so
that callers can separate bridge failures from unrelated library errors.
Alert-time errors (validation and dispatch) live in libs.bybit.exceptions.
"""


class AlertBridgeError(Exception):
    """
    Base exception for all alert bridge errors.

    Example:
        >>> try:
        ...     order = build_order_request(alert)
        ... except AlertBridgeError as e:
        ...     logger.error(f"Bridge error: {e}")
    """

    pass


class ConfigurationError(AlertBridgeError):
    """
    Raised when required configuration or secrets are missing.

    The bridge cannot sign a single request without exchange credentials, so
    this is raised at startup rather than on the first alert.

    Example:
        >>> if not settings.bybit_api_key:
        ...     raise ConfigurationError("BYBIT_API_KEY not configured")
    """

    pass
