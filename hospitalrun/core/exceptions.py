"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        headers: dict[str, str] | None = None,
    ):
        """Initialize exception with message, status code and response headers."""
        self.message = message
        self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception.

    Also raised on tenant mismatch so callers cannot tell whether a record
    exists in another hospital.
    """

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class InvalidTransitionException(AppException):
    """Requested status change is not permitted from the current status."""

    def __init__(self, current: str, target: str):
        """Initialize with 409 status code."""
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot change appointment status from '{current}' to '{target}'",
            status_code=409,
        )


class DuplicateIdException(AppException):
    """Record with the same identifier already stored."""

    def __init__(self, message: str = "Duplicate identifier"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class RateLimitException(AppException):
    """Rate limit exceeded exception.

    Carries ``Retry-After`` and ``X-RateLimit-*`` headers for the 429 response.
    """

    def __init__(
        self,
        limit: int,
        retry_after: int,
        message: str = "Too many requests, please try again later",
    ):
        """Initialize with 429 status code."""
        self.limit = limit
        self.retry_after = retry_after
        super().__init__(
            message,
            status_code=429,
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
            },
        )
