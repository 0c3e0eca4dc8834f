"""Common utilities and exceptions."""

from libs.common.exceptions import AlertBridgeError, ConfigurationError

__all__ = [
    "AlertBridgeError",
    "ConfigurationError",
]
