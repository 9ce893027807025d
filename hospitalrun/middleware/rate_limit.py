"""Rate limiting middleware."""

from collections.abc import Callable, Iterable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from hospitalrun.core.exceptions import RateLimitException
from hospitalrun.core.rate_limit import RateLimiter
from hospitalrun.middleware.error_handler import app_exception_handler

METRICS_PATH = "/metrics"


def exempt_paths(api_prefix: str) -> frozenset[str]:
    """Exact paths never counted against the limit: health checks and metrics."""
    return frozenset(
        {
            f"{api_prefix}/health",
            f"{api_prefix}/health/detailed",
            f"{api_prefix}/ping",
            METRICS_PATH,
        }
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients that exceed their fixed-window request budget."""

    def __init__(
        self,
        app: ASGIApp,
        limiter: RateLimiter,
        enabled: bool = True,
        exempt: Iterable[str] = (),
    ):
        """Initialize middleware with a shared limiter and exempt paths."""
        super().__init__(app)
        self.limiter = limiter
        self.enabled = enabled
        self.exempt = frozenset(exempt)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """
        Count the request and short-circuit with 429 once over the limit.

        Args:
            request: Request object
            call_next: Next middleware in chain

        Returns:
            Response object
        """
        if not self.enabled or request.url.path in self.exempt:
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        result = self.limiter.check_rate_limit(client)

        if not result.allowed:
            exc = RateLimitException(
                limit=result.limit,
                retry_after=self.limiter.retry_after(result),
            )
            structlog.get_logger().warning(
                "rate_limit_exceeded",
                client=client,
                path=request.url.path,
                retry_after=exc.retry_after,
            )
            # Raised exceptions here bypass the app's handlers, so render directly
            return await app_exception_handler(request, exc)

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        return response
