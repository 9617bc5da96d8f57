"""Middleware package for the blog service."""

from inkwell.app.middleware.auth import optional_user, require_admin, require_user
from inkwell.app.middleware.rate_limit import RateLimit, comment_create_limit, comment_like_limit
from inkwell.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "optional_user",
    "require_user",
    "require_admin",
    "RateLimit",
    "comment_create_limit",
    "comment_like_limit",
    "RequestIdMiddleware",
    "get_request_id",
]
