"""
Custom exception hierarchy for webaccept error handling.

Separates environment failures (the remote browser misbehaved, an element is
missing, a wait ran out) from programmer defects (bad configuration, unknown
test case, malformed verification type). The former are recovered locally by
the failure latch, the latter propagate.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class WebAcceptError(Exception):
    """Base exception for all webaccept errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None
        }


class RetryableError(WebAcceptError):
    """
    Base class for errors that can be retried.

    Attempt budgets are owned by RetryPolicy, not by the error.
    """
    pass


class NonRetryableError(WebAcceptError):
    """Base class for errors that should not be retried."""
    pass


class BrowserError(RetryableError):
    """Error raised by the remote browser session."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        selector: Optional[str] = None,
        action: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.url = url
        self.selector = selector
        self.action = action
        self.details.update({
            "url": url,
            "selector": selector,
            "action": action
        })


class ElementNotFoundError(BrowserError):
    """The locator resolved to nothing."""
    pass


class StaleElementError(BrowserError):
    """An element reference was invalidated between lookup and use."""
    pass


class ElementStateError(BrowserError):
    """The element exists but cannot take the requested interaction."""
    pass


class DriverTimeoutError(BrowserError):
    """The remote driver gave up on an operation (navigation, script)."""
    pass


class WaitTimeoutError(RetryableError):
    """A polled condition was not satisfied before its deadline."""

    def __init__(
        self,
        message: str,
        timeout_seconds: float,
        interval_ms: int,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.timeout_seconds = timeout_seconds
        self.interval_ms = interval_ms
        self.details.update({
            "timeout_seconds": timeout_seconds,
            "interval_ms": interval_ms
        })


class SessionError(NonRetryableError):
    """The remote browser session could not be established."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.endpoint = endpoint
        self.details.update({"endpoint": endpoint})


class ConfigurationError(NonRetryableError):
    """A defect in suite setup or test code (unknown case, invalid argument)."""
    pass


class RecorderUnavailableError(NonRetryableError):
    """The relational run store cannot be reached."""
    pass
