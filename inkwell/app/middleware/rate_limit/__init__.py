"""Rate limiting for sensitive write endpoints.

Limiter instances are owned by a registry stored on ``app.state`` and are
applied per route through the ``RateLimit`` dependency, keyed by client
address.
"""

import math
from typing import Optional

from fastapi import Request, Response

from inkwell.app.core.config import settings
from inkwell.app.core.logging import get_log_context, get_logger
from inkwell.app.core.utils import get_client_ip
from inkwell.app.exceptions import RateLimitExceededError
from inkwell.app.middleware.request_id import get_request_id

from inkwell.app.middleware.rate_limit.models import RateLimitResult, RateLimitState
from inkwell.app.middleware.rate_limit.limiter import (
    Clock,
    RateLimiter,
    RateLimiterRegistry,
)

logger = get_logger(__name__)

__all__ = [
    "RateLimitResult",
    "RateLimitState",
    "RateLimiter",
    "RateLimiterRegistry",
    "RateLimit",
    "COMMENT_CREATE",
    "COMMENT_LIKE",
    "build_rate_limiters",
    "get_rate_limiters",
    "comment_create_limit",
    "comment_like_limit",
]

# Action categories, each with its own limiter instance
COMMENT_CREATE = "comment_create"
COMMENT_LIKE = "comment_like"


def build_rate_limiters(clock: Optional[Clock] = None) -> RateLimiterRegistry:
    """Create the registry with the limiters the API uses."""
    registry = RateLimiterRegistry(clock=clock)
    for key in (COMMENT_CREATE, COMMENT_LIKE):
        registry.get(
            key,
            interval=settings.rate_limit_interval_seconds,
            unique_token_per_interval=settings.rate_limit_unique_tokens,
        )
    return registry


def get_rate_limiters(request: Request) -> RateLimiterRegistry:
    """Return the registry owned by the running application."""
    return request.app.state.rate_limiters


class RateLimit:
    """FastAPI dependency enforcing one action's limit per client address.

    On success the X-RateLimit-* headers are added to the response; on
    exhaustion ``RateLimitExceededError`` is raised and mapped to HTTP 429.
    """

    def __init__(self, key: str, limit: int):
        self.key = key
        self.limit = limit

    async def __call__(self, request: Request, response: Response) -> RateLimitResult:
        limiter = get_rate_limiters(request).get(
            self.key,
            interval=settings.rate_limit_interval_seconds,
            unique_token_per_interval=settings.rate_limit_unique_tokens,
        )
        client_ip = get_client_ip(request)
        result = limiter.check(self.limit, client_ip)

        if not result.success:
            logger.info(
                f"Rate limit exceeded for '{self.key}'",
                extra=get_log_context(
                    request_id=get_request_id(request),
                    client_ip=client_ip,
                    retry_after=result.retry_after,
                ),
            )
            raise RateLimitExceededError(
                limit=result.limit,
                reset=result.reset,
                reset_after=result.reset_after,
            )

        response.headers["X-RateLimit-Limit"] = str(result.limit)
        response.headers["X-RateLimit-Remaining"] = str(result.remaining)
        response.headers["X-RateLimit-Reset"] = str(math.ceil(result.reset))
        return result


comment_create_limit = RateLimit(COMMENT_CREATE, settings.comment_rate_limit)
comment_like_limit = RateLimit(COMMENT_LIKE, settings.comment_like_rate_limit)
