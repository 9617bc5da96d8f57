"""Article CRUD operations."""
import uuid
from typing import Any, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.app.db.models import (
    Article,
    ArticleLike,
    ArticleStatus,
    Bookmark,
    Comment,
    CommentLike,
)


async def get_article_by_slug(session: AsyncSession, slug: str) -> Optional[Article]:
    result = await session.execute(select(Article).where(Article.slug == slug))
    return result.scalar_one_or_none()


async def get_published_article_by_slug(
    session: AsyncSession,
    slug: str
) -> Optional[Article]:
    """Get an article only if it is published."""
    result = await session.execute(
        select(Article).where(
            Article.slug == slug,
            Article.status == ArticleStatus.PUBLISHED.value,
        )
    )
    return result.scalar_one_or_none()


async def create_article(
    session: AsyncSession,
    author_id: str,
    slug: str,
    title: str,
    content: str = "",
    status: str = ArticleStatus.PUBLISHED.value,
    allow_comments: bool = True,
) -> Article:
    article = Article(
        id=str(uuid.uuid4()),
        slug=slug,
        title=title,
        content=content,
        author_id=author_id,
        status=status,
        allow_comments=allow_comments,
        likes_count=0,
    )
    session.add(article)
    await session.flush()
    return article


async def list_articles(
    session: AsyncSession,
    status: Optional[str] = None,
    author_id: Optional[str] = None,
    limit: int = 10,
    offset: int = 0,
) -> tuple[List[tuple[Article, int]], int]:
    """List articles, newest first, with their public comment counts.

    Returns:
        Tuple of (page of (article, comment_count) rows, total matching)
    """
    filters = []
    if status is not None:
        filters.append(Article.status == status)
    if author_id is not None:
        filters.append(Article.author_id == author_id)

    comment_count = (
        select(func.count(Comment.id))
        .where(
            Comment.article_id == Article.id,
            Comment.is_approved.is_(True),
            Comment.is_spam.is_(False),
        )
        .correlate(Article)
        .scalar_subquery()
    )
    result = await session.execute(
        select(Article, comment_count)
        .where(*filters)
        .order_by(Article.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    rows = [(article, count) for article, count in result.all()]

    total = await session.execute(select(func.count(Article.id)).where(*filters))
    return rows, total.scalar_one()


async def update_article(session: AsyncSession, article: Article, **changes: Any) -> Article:
    for field, value in changes.items():
        setattr(article, field, value)
    await session.flush()
    return article


async def count_articles_by_author(session: AsyncSession, author_id: str) -> int:
    result = await session.execute(
        select(func.count(Article.id)).where(Article.author_id == author_id)
    )
    return result.scalar_one()


async def delete_article(session: AsyncSession, article_id: str) -> None:
    """Delete an article with its comments, likes and bookmarks."""
    comment_ids = select(Comment.id).where(Comment.article_id == article_id)
    await session.execute(delete(CommentLike).where(CommentLike.comment_id.in_(comment_ids)))
    # Replies first so no row is left pointing at a deleted parent
    await session.execute(
        delete(Comment).where(Comment.article_id == article_id, Comment.parent_id.is_not(None))
    )
    await session.execute(delete(Comment).where(Comment.article_id == article_id))
    await session.execute(delete(ArticleLike).where(ArticleLike.article_id == article_id))
    await session.execute(delete(Bookmark).where(Bookmark.article_id == article_id))
    await session.execute(delete(Article).where(Article.id == article_id))
