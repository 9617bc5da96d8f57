"""Article authoring: create, list, read, update and delete.

Published articles are public. Drafts and archived articles are visible
only to their author and to admins, and only those two may change or
delete an article.
"""

import re
from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.app.core.logging import get_log_context, get_logger
from inkwell.app.db import crud
from inkwell.app.db.models import Article, ArticleStatus, User
from inkwell.app.exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)

logger = get_logger(__name__)

MAX_TITLE_LENGTH = 300
MAX_SLUG_LENGTH = 200


def slugify(text: str) -> str:
    """Lower-case, drop punctuation, join words with single hyphens."""
    slug = re.sub(r"[^\w\s-]", "", text.lower())
    slug = re.sub(r"\s+", "-", slug)
    return re.sub(r"-{2,}", "-", slug).strip("-")


def _validate_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise InvalidRequestError("Title is required")
    if len(title) > MAX_TITLE_LENGTH:
        raise InvalidRequestError(f"Title too long (max {MAX_TITLE_LENGTH} characters)")
    return title.strip()


def _validate_content(content: Any) -> str:
    if not isinstance(content, str) or not content.strip():
        raise InvalidRequestError("Content is required")
    return content


def _can_manage(user: Optional[User], article: Article) -> bool:
    return user is not None and (user.is_admin or article.author_id == user.id)


async def create_article(
    session: AsyncSession,
    author: User,
    title: Any,
    content: Any,
    slug: Optional[str] = None,
    status: str = ArticleStatus.DRAFT.value,
    allow_comments: bool = True,
) -> Article:
    title = _validate_title(title)
    content = _validate_content(content)

    slug = slugify(slug or title)
    if not slug:
        raise InvalidRequestError("Title must contain letters or digits to build a URL")
    slug = slug[:MAX_SLUG_LENGTH]

    if await crud.get_article_by_slug(session, slug) is not None:
        raise ConflictError("An article with this URL already exists")

    try:
        article = await crud.create_article(
            session,
            author_id=author.id,
            slug=slug,
            title=title,
            content=content,
            status=status,
            allow_comments=allow_comments,
        )
    except IntegrityError:
        raise ConflictError("An article with this URL already exists")

    logger.info(
        "Article created",
        extra=get_log_context(user_id=author.id, article_id=article.id, status=status),
    )
    return article


async def get_article(session: AsyncSession, slug: str, viewer: Optional[User] = None) -> Article:
    """Unpublished articles read as missing to anyone but the author or an admin."""
    article = await crud.get_article_by_slug(session, slug)
    if article is None or not (article.is_published or _can_manage(viewer, article)):
        raise NotFoundError("Article not found")
    return article


async def list_articles(
    session: AsyncSession,
    viewer: Optional[User] = None,
    status: str = ArticleStatus.PUBLISHED.value,
    author_id: Optional[str] = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[List[tuple[Article, int]], int]:
    """List one page of articles in a status.

    Non-published listings are restricted to the viewer's own articles,
    except for admins who see everyone's.
    """
    if status != ArticleStatus.PUBLISHED.value:
        if viewer is None:
            raise AuthenticationError("Sign in to list unpublished articles")
        if not viewer.is_admin:
            if author_id is not None and author_id != viewer.id:
                raise PermissionDeniedError("You can only list your own unpublished articles")
            author_id = viewer.id

    return await crud.list_articles(
        session, status=status, author_id=author_id, limit=limit, offset=offset
    )


async def update_article(
    session: AsyncSession,
    user: User,
    slug: str,
    changes: dict[str, Any],
) -> Article:
    """Apply title, content, status and allow_comments changes.

    The slug never changes, so existing links and comment URLs keep working.
    """
    article = await get_article(session, slug, user)
    if not _can_manage(user, article):
        raise PermissionDeniedError("You are not authorized to update this article")
    if not changes:
        raise InvalidRequestError("No changes supplied")

    if "title" in changes:
        changes["title"] = _validate_title(changes["title"])
    if "content" in changes:
        changes["content"] = _validate_content(changes["content"])

    article = await crud.update_article(session, article, **changes)
    logger.info(
        "Article updated",
        extra=get_log_context(user_id=user.id, article_id=article.id, fields=sorted(changes)),
    )
    return article


async def delete_article(session: AsyncSession, user: User, slug: str) -> None:
    article = await get_article(session, slug, user)
    if not _can_manage(user, article):
        raise PermissionDeniedError("You are not authorized to delete this article")

    article_id = article.id
    await crud.delete_article(session, article_id)
    logger.info(
        "Article deleted",
        extra=get_log_context(user_id=user.id, article_id=article_id),
    )
