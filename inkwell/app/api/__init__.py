"""API endpoints package for the blog service."""

from inkwell.app.api.articles import router as articles_router
from inkwell.app.api.comments import router as comments_router

__all__ = [
    "articles_router",
    "comments_router",
]
