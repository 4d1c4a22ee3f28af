"""Custom exceptions for the proxy application."""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from lmproxy.app.services.rate_limiter import RateLimitState


class ProxyException(Exception):
    """Base class for proxy exceptions with HTTP status code.

    All custom exceptions should inherit from this class and define
    their specific status_code and error_code for consistent HTTP
    response handling.
    """
    status_code: int = 500
    error_code: str = "proxy_error"

    def __init__(self, message: str = "Proxy error"):
        self.message = message
        super().__init__(message)


class LogicMonitorAPIError(ProxyException):
    """Raised when the LogicMonitor API rejects a request or is unreachable.

    Maps to HTTP 502 Bad Gateway. ``status`` holds the upstream status
    code, or None for transport failures.
    """
    status_code = 502
    error_code = "upstream_error"

    def __init__(self, message: str, status: Optional[int] = None, path: Optional[str] = None):
        self.status = status
        self.path = path
        super().__init__(message)


class RateLimitedError(LogicMonitorAPIError):
    """Raised when LogicMonitor answers with HTTP 429.

    Carries whatever rate-limit state could be parsed from the response
    headers so the retry coordinator can refresh its bookkeeping.
    """
    status_code = 429
    error_code = "rate_limited"

    def __init__(
        self,
        message: str = "LogicMonitor API rate limit exceeded (429)",
        rate_limit: Optional["RateLimitState"] = None,
        retry_after: Optional[float] = None,
        path: Optional[str] = None,
    ):
        self.rate_limit = rate_limit
        self.retry_after = retry_after
        super().__init__(message, status=429, path=path)


class ToolValidationError(ProxyException):
    """Raised when tool arguments fail validation.

    Maps to HTTP 400 Bad Request.
    """
    status_code = 400
    error_code = "validation_error"


class UnknownToolError(ProxyException):
    """Raised when a tool name is not in the catalog.

    Maps to HTTP 404 Not Found.
    """
    status_code = 404
    error_code = "unknown_tool"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class CredentialsMissingError(ProxyException):
    """Raised when no LogicMonitor account or bearer token is available."""
    status_code = 400
    error_code = "credentials_missing"

    def __init__(
        self,
        detail: str = (
            "LogicMonitor credentials not provided. "
            "Please configure lm_account and lm_bearer_token."
        ),
    ):
        super().__init__(detail)


class BatchItemError(ProxyException):
    """Raised when a single-item call fails inside the batch engine.

    The message is the item's recorded error string, so single-item
    callers see the underlying failure directly.
    """
    status_code = 422
    error_code = "operation_failed"

    def __init__(self, message: str, index: int = 0):
        self.index = index
        super().__init__(message)
