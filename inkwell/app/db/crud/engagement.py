"""Like and bookmark CRUD operations."""
from typing import Optional

from sqlalchemy import case, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.app.db.models import Article, ArticleLike, Bookmark, CommentLike


async def get_comment_like(
    session: AsyncSession,
    user_id: str,
    comment_id: str
) -> Optional[CommentLike]:
    result = await session.execute(
        select(CommentLike).where(
            CommentLike.user_id == user_id,
            CommentLike.comment_id == comment_id,
        )
    )
    return result.scalar_one_or_none()


async def create_comment_like(
    session: AsyncSession,
    user_id: str,
    comment_id: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> CommentLike:
    like = CommentLike(
        user_id=user_id,
        comment_id=comment_id,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    session.add(like)
    await session.flush()
    return like


async def delete_comment_like(session: AsyncSession, user_id: str, comment_id: str) -> int:
    """Remove the user's like of a comment.

    Returns:
        Number of rows deleted (0 if another request removed it first)
    """
    result = await session.execute(
        delete(CommentLike).where(
            CommentLike.user_id == user_id,
            CommentLike.comment_id == comment_id,
        )
    )
    return result.rowcount


async def get_article_like(
    session: AsyncSession,
    user_id: str,
    article_id: str
) -> Optional[ArticleLike]:
    result = await session.execute(
        select(ArticleLike).where(
            ArticleLike.user_id == user_id,
            ArticleLike.article_id == article_id,
        )
    )
    return result.scalar_one_or_none()


async def adjust_article_likes(session: AsyncSession, article_id: str, delta: int) -> None:
    """Add ``delta`` to the article's like counter, never going below zero."""
    await session.execute(
        update(Article)
        .where(Article.id == article_id)
        .values(
            likes_count=case(
                (Article.likes_count + delta < 0, 0),
                else_=Article.likes_count + delta,
            )
        )
    )


async def toggle_article_like(session: AsyncSession, user_id: str, article_id: str) -> bool:
    """Like the article, or remove the like if it already exists.

    A like inserted concurrently by another request surfaces as
    ``IntegrityError`` from the flush; callers treat it as already liked.

    Returns:
        True if the article is now liked by the user
    """
    existing = await get_article_like(session, user_id, article_id)
    if existing is None:
        session.add(ArticleLike(user_id=user_id, article_id=article_id))
        await session.flush()
        await adjust_article_likes(session, article_id, 1)
        return True

    result = await session.execute(
        delete(ArticleLike).where(ArticleLike.id == existing.id)
    )
    # Already removed by a concurrent unlike: the counter was adjusted there
    if result.rowcount:
        await adjust_article_likes(session, article_id, -1)
    return False


async def get_bookmark(
    session: AsyncSession,
    user_id: str,
    article_id: str
) -> Optional[Bookmark]:
    result = await session.execute(
        select(Bookmark).where(
            Bookmark.user_id == user_id,
            Bookmark.article_id == article_id,
        )
    )
    return result.scalar_one_or_none()


async def create_bookmark(session: AsyncSession, user_id: str, article_id: str) -> Bookmark:
    bookmark = Bookmark(user_id=user_id, article_id=article_id)
    session.add(bookmark)
    await session.flush()
    return bookmark


async def delete_bookmarks(session: AsyncSession, user_id: str, article_id: str) -> int:
    """Remove the user's bookmark of the article.

    Returns:
        Number of rows deleted (0 if there was none)
    """
    result = await session.execute(
        delete(Bookmark).where(
            Bookmark.user_id == user_id,
            Bookmark.article_id == article_id,
        )
    )
    return result.rowcount
