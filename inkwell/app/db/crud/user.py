"""User CRUD operations."""
import uuid
from typing import List, Optional

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.app.core.utils import generate_api_token, hash_token
from inkwell.app.db.crud.article import delete_article
from inkwell.app.db.models import (
    Article,
    ArticleLike,
    Bookmark,
    Comment,
    CommentLike,
    User,
    UserRole,
)


async def lookup_user_by_token_hash(
    session: AsyncSession,
    api_token_hash: str
) -> Optional[User]:
    """Find a user by their API token hash.

    Args:
        session: Database session from FastAPI dependency
        api_token_hash: The hashed token to look up

    Returns:
        User object if found, None otherwise
    """
    result = await session.execute(
        select(User).where(User.api_token_hash == api_token_hash)
    )
    return result.scalar_one_or_none()


async def get_user_by_id(session: AsyncSession, user_id: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(
    session: AsyncSession,
    username: str,
    name: str,
    email: str,
    role: str = UserRole.USER.value,
) -> tuple[User, str]:
    """Create a user and issue an API token.

    Returns:
        Tuple of (user, plaintext token). Only the hash is stored.
    """
    token = generate_api_token()
    user = User(
        id=str(uuid.uuid4()),
        username=username,
        name=name,
        email=email,
        api_token_hash=hash_token(token),
        role=role,
        is_banned=False,
    )
    session.add(user)
    await session.flush()
    return user, token


async def list_users_with_comment_counts(
    session: AsyncSession,
    limit: int = 100,
    offset: int = 0,
) -> List[tuple[User, int]]:
    """List users with the number of comments each has written."""
    comment_count = (
        select(func.count(Comment.id))
        .where(Comment.author_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    result = await session.execute(
        select(User, comment_count)
        .order_by(User.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return [(user, count) for user, count in result.all()]


async def set_user_banned(session: AsyncSession, user_id: str, is_banned: bool) -> bool:
    """Ban or unban a user.

    Returns:
        True if the user exists
    """
    result = await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(is_banned=is_banned)
        .returning(User.id)
    )
    return result.first() is not None


async def set_user_role(session: AsyncSession, user_id: str, role: str) -> bool:
    """Change a user's role.

    Returns:
        True if the user exists
    """
    result = await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(role=role)
        .returning(User.id)
    )
    return result.first() is not None


async def is_user_banned(session: AsyncSession, user_id: str) -> bool:
    """Read the current ban flag straight from the database."""
    result = await session.execute(select(User.is_banned).where(User.id == user_id))
    return bool(result.scalar_one_or_none())


def _decrement(column):
    return case((column - 1 < 0, 0), else_=column - 1)


async def delete_user(session: AsyncSession, user_id: str) -> None:
    """Delete a user and everything they wrote.

    Their articles go with all comments on them; their comments go with
    the replies under them. Likes they gave to surviving comments and
    articles are removed and the counters lowered.
    """
    article_ids = list(
        (await session.execute(select(Article.id).where(Article.author_id == user_id))).scalars()
    )
    for article_id in article_ids:
        await delete_article(session, article_id)

    own_ids = list(
        (await session.execute(select(Comment.id).where(Comment.author_id == user_id))).scalars()
    )
    doomed = or_(Comment.id.in_(own_ids), Comment.parent_id.in_(own_ids))
    doomed_ids = list((await session.execute(select(Comment.id).where(doomed))).scalars())

    await session.execute(
        update(Comment)
        .where(
            Comment.id.in_(select(CommentLike.comment_id).where(CommentLike.user_id == user_id)),
            Comment.id.not_in(doomed_ids),
        )
        .values(likes_count=_decrement(Comment.likes_count))
    )
    await session.execute(
        update(Article)
        .where(Article.id.in_(select(ArticleLike.article_id).where(ArticleLike.user_id == user_id)))
        .values(likes_count=_decrement(Article.likes_count))
    )

    await session.execute(
        delete(CommentLike).where(
            or_(CommentLike.user_id == user_id, CommentLike.comment_id.in_(doomed_ids))
        )
    )
    await session.execute(
        delete(Comment).where(Comment.id.in_(doomed_ids), Comment.parent_id.is_not(None))
    )
    await session.execute(delete(Comment).where(Comment.id.in_(doomed_ids)))
    await session.execute(delete(ArticleLike).where(ArticleLike.user_id == user_id))
    await session.execute(delete(Bookmark).where(Bookmark.user_id == user_id))
    await session.execute(delete(User).where(User.id == user_id))
