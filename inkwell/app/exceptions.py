"""Custom exceptions for the blog service."""

import math


class InkwellError(Exception):
    """Base class for service exceptions with HTTP status code.

    All custom exceptions inherit from this class and define their
    status_code and error code for consistent HTTP response handling.
    """
    status_code: int = 500
    error: str = "internal_error"

    def __init__(self, message: str = "Internal server error"):
        self.message = message
        super().__init__(message)

    def to_response(self) -> dict:
        return {"error": self.error, "message": self.message}


class InvalidRequestError(InkwellError):
    """Request was understood but refused (bad content, reply to a reply).

    Maps to HTTP 400 Bad Request.
    """
    status_code = 400
    error = "invalid_request"


class AuthenticationError(InkwellError):
    """Raised when bearer token authentication fails.

    Maps to HTTP 401 Unauthorized.
    """
    status_code = 401
    error = "authentication_failed"

    def __init__(self, message: str = "Invalid or missing API token"):
        super().__init__(message)


class PermissionDeniedError(InkwellError):
    """Caller is authenticated but not allowed (banned, not admin, comments off).

    Maps to HTTP 403 Forbidden.
    """
    status_code = 403
    error = "forbidden"


class NotFoundError(InkwellError):
    """Article, comment, user or like does not exist (or is not visible).

    Maps to HTTP 404 Not Found.
    """
    status_code = 404
    error = "not_found"


class ConflictError(InkwellError):
    """Resource already exists (duplicate article slug).

    Maps to HTTP 409 Conflict.
    """
    status_code = 409
    error = "conflict"


class RateLimitExceededError(InkwellError):
    """Raised by the handler layer when a rate limit check fails.

    Exhaustion itself is a normal limiter outcome; this exception only
    carries it to the HTTP boundary. Maps to HTTP 429 Too Many Requests.
    """
    status_code = 429
    error = "rate_limit_exceeded"

    def __init__(
        self,
        limit: int,
        reset: float,
        reset_after: float,
        message: str = "Too many requests. Please try again later.",
    ):
        self.limit = limit
        self.reset = reset
        self.reset_after = reset_after
        super().__init__(message)

    @property
    def retry_after(self) -> int:
        """Whole seconds until the window resets (at least 1)."""
        return max(1, math.ceil(self.reset_after))

    def to_response(self) -> dict:
        return {
            "error": self.error,
            "message": f"{self.message} Retry after {self.retry_after} seconds.",
            "retry_after": self.retry_after,
        }

    def headers(self) -> dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": str(math.ceil(self.reset)),
        }
