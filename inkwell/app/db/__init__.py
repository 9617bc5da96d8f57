"""Database package for the blog service.

This package provides:
- Database models (User, Article, Comment, CommentLike, ArticleLike, Bookmark)
- Asynchronous session management
- CRUD operations
- FastAPI dependency injection support
"""

from inkwell.app.db.base import Base
from inkwell.app.db.models import (
    Article,
    ArticleLike,
    ArticleStatus,
    Bookmark,
    Comment,
    CommentLike,
    User,
    UserRole,
)
from inkwell.app.db.async_session import (
    close_async_engine,
    get_async_engine,
    get_async_session,
    get_async_session_maker,
    get_db,
)
from inkwell.app.db.dependencies import SessionDep

__all__ = [
    "Base",
    "Article",
    "ArticleLike",
    "ArticleStatus",
    "Bookmark",
    "Comment",
    "CommentLike",
    "User",
    "UserRole",
    "close_async_engine",
    "get_async_engine",
    "get_async_session",
    "get_async_session_maker",
    "get_db",
    "SessionDep",
]
