"""Article likes and bookmarks."""

from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.app.core.logging import get_log_context, get_logger
from inkwell.app.db import crud
from inkwell.app.db.models import Article, Bookmark, User
from inkwell.app.exceptions import InvalidRequestError, NotFoundError

logger = get_logger(__name__)


async def _get_article(session: AsyncSession, slug: str) -> Article:
    article = await crud.get_article_by_slug(session, slug)
    if article is None:
        raise NotFoundError("Article not found")
    return article


async def toggle_article_like(session: AsyncSession, user: User, slug: str) -> bool:
    """Returns True if the article is liked after the call."""
    article = await _get_article(session, slug)
    # Rollback expires loaded rows, so keep plain ids
    user_id, article_id = user.id, article.id
    try:
        return await crud.toggle_article_like(session, user_id, article_id)
    except IntegrityError:
        # A concurrent request from the same user stored the like first
        await session.rollback()
        logger.info(
            "Concurrent article like resolved as already liked",
            extra=get_log_context(user_id=user_id, article_id=article_id),
        )
        return True


async def get_article_like_status(
    session: AsyncSession,
    slug: str,
    user: Optional[User] = None,
) -> dict:
    article = await _get_article(session, slug)
    is_liked = False
    if user is not None:
        is_liked = await crud.get_article_like(session, user.id, article.id) is not None
    return {"likes_count": article.likes_count or 0, "is_liked": is_liked}


async def add_bookmark(session: AsyncSession, user: User, slug: str) -> Bookmark:
    article = await _get_article(session, slug)
    if await crud.get_bookmark(session, user.id, article.id) is not None:
        raise InvalidRequestError("Article already bookmarked")
    try:
        return await crud.create_bookmark(session, user.id, article.id)
    except IntegrityError:
        raise InvalidRequestError("Article already bookmarked")


async def remove_bookmark(session: AsyncSession, user: User, slug: str) -> None:
    article = await _get_article(session, slug)
    await crud.delete_bookmarks(session, user.id, article.id)


async def is_bookmarked(session: AsyncSession, user: User, slug: str) -> bool:
    article = await _get_article(session, slug)
    return await crud.get_bookmark(session, user.id, article.id) is not None
