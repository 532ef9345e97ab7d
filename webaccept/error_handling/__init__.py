"""
Error handling for webaccept.

Environment failures raised by the browser layer are recovered by the failure
latch; configuration errors propagate. The retry engine lives in
``webaccept.error_handling.recovery``.
"""

from .exceptions import (
    WebAcceptError,
    RetryableError,
    NonRetryableError,
    BrowserError,
    ElementNotFoundError,
    StaleElementError,
    ElementStateError,
    DriverTimeoutError,
    WaitTimeoutError,
    SessionError,
    ConfigurationError,
    RecorderUnavailableError,
)

__all__ = [
    "WebAcceptError",
    "RetryableError",
    "NonRetryableError",
    "BrowserError",
    "ElementNotFoundError",
    "StaleElementError",
    "ElementStateError",
    "DriverTimeoutError",
    "WaitTimeoutError",
    "SessionError",
    "ConfigurationError",
    "RecorderUnavailableError",
]
