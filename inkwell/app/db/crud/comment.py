"""Comment CRUD operations."""
import uuid
from typing import List, Optional

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from inkwell.app.db.models import Comment, User


def _visible_to(viewer_id: Optional[str], model=Comment):
    """Visibility filter: public comments plus the viewer's own."""
    public = and_(model.is_approved.is_(True), model.is_spam.is_(False))
    if viewer_id is None:
        return public
    return or_(public, model.author_id == viewer_id)


async def count_comments_by_author(session: AsyncSession, author_id: str) -> int:
    """Count every comment the author has written, whatever its status."""
    result = await session.execute(
        select(func.count(Comment.id)).where(Comment.author_id == author_id)
    )
    return result.scalar_one()


async def get_comment_in_article(
    session: AsyncSession,
    comment_id: str,
    article_id: str
) -> Optional[Comment]:
    result = await session.execute(
        select(Comment).where(
            Comment.id == comment_id,
            Comment.article_id == article_id,
        )
    )
    return result.scalar_one_or_none()


async def get_visible_comment(session: AsyncSession, comment_id: str) -> Optional[Comment]:
    """Get a comment only if it is approved and not spam."""
    result = await session.execute(
        select(Comment).where(
            Comment.id == comment_id,
            Comment.is_approved.is_(True),
            Comment.is_spam.is_(False),
        )
    )
    return result.scalar_one_or_none()


async def create_comment(
    session: AsyncSession,
    *,
    author: User,
    article_id: str,
    content: str,
    is_approved: bool,
    is_spam: bool,
    parent_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Comment:
    comment = Comment(
        id=str(uuid.uuid4()),
        content=content,
        author=author,
        author_id=author.id,
        article_id=article_id,
        parent_id=parent_id,
        is_approved=is_approved,
        is_spam=is_spam,
        likes_count=0,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    session.add(comment)
    await session.flush()
    return comment


async def list_comments(
    session: AsyncSession,
    article_id: str,
    parent_id: Optional[str] = None,
    viewer_id: Optional[str] = None,
    show_all: bool = False,
) -> List[tuple[Comment, int]]:
    """List comments of one level (top-level or replies to ``parent_id``).

    Returns:
        (comment, reply_count) tuples, newest first. Reply counts use the
        same visibility rule as the comments themselves.
    """
    reply = aliased(Comment)
    reply_filter = [reply.parent_id == Comment.id]
    if not show_all:
        reply_filter.append(_visible_to(viewer_id, reply))
    reply_count = (
        select(func.count(reply.id))
        .where(*reply_filter)
        .correlate(Comment)
        .scalar_subquery()
    )

    conditions = [Comment.article_id == article_id]
    if parent_id is None:
        conditions.append(Comment.parent_id.is_(None))
    else:
        conditions.append(Comment.parent_id == parent_id)
    if not show_all:
        conditions.append(_visible_to(viewer_id))

    result = await session.execute(
        select(Comment, reply_count)
        .where(*conditions)
        .order_by(Comment.created_at.desc())
    )
    return [(comment, count) for comment, count in result.unique().all()]


async def adjust_comment_likes(session: AsyncSession, comment_id: str, delta: int) -> int:
    """Atomically add ``delta`` to a comment's like counter (floored at 0).

    Returns:
        The new likes_count
    """
    new_value = case(
        (Comment.likes_count + delta < 0, 0),
        else_=Comment.likes_count + delta,
    )
    result = await session.execute(
        update(Comment)
        .where(Comment.id == comment_id)
        .values(likes_count=new_value)
        .returning(Comment.likes_count)
    )
    return result.scalar_one()

