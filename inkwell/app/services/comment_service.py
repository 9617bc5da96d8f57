"""Comment acceptance pipeline.

Runs after authentication and the rate limit check:

1. Validate the content (present, not blank, not too long)
2. Refuse banned authors
3. Require a published article that accepts comments
4. Require the reply target to be a top-level comment of the same article
5. Classify with the moderation policy and store the comment

Steps 1-4 may refuse the request. Step 5 never drops a comment: held or
spam-flagged comments are stored with their flags and hidden from others.
"""

from dataclasses import dataclass
from typing import Any, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.app.core.config import settings
from inkwell.app.core.logging import get_log_context, get_logger
from inkwell.app.db import crud
from inkwell.app.db.models import Article, Comment, User
from inkwell.app.exceptions import (
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)
from inkwell.app.services.moderation import (
    CommentCandidate,
    CommentDisposition,
    ModerationPolicy,
)

logger = get_logger(__name__)


@dataclass
class NewComment:
    """A comment submission as received by the handler."""
    content: Any
    parent_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


def validate_comment_content(content: Any, max_length: Optional[int] = None) -> str:
    """Check the raw content and return it unchanged.

    Raises:
        InvalidRequestError: Missing, non-string, blank or overlong content
    """
    if max_length is None:
        max_length = settings.comment_max_length
    if not isinstance(content, str) or not content.strip():
        raise InvalidRequestError("Comment content is required")
    if len(content) > max_length:
        raise InvalidRequestError(f"Comment is too long (max {max_length} characters)")
    return content


async def resolve_commentable_article(session: AsyncSession, slug: str) -> Article:
    """Return the article if it is published and open for comments.

    Raises:
        NotFoundError: Missing or unpublished article
        PermissionDeniedError: Comments are disabled
    """
    article = await crud.get_published_article_by_slug(session, slug)
    if article is None:
        raise NotFoundError("Article not found or not published")
    if not article.allow_comments:
        raise PermissionDeniedError("Comments are disabled for this article")
    return article


async def check_reply_target(session: AsyncSession, parent_id: str, article: Article) -> Comment:
    """Only one level of replies is allowed.

    Raises:
        NotFoundError: Parent missing or in another article
        InvalidRequestError: Parent is itself a reply
    """
    parent = await crud.get_comment_in_article(session, parent_id, article.id)
    if parent is None:
        raise NotFoundError("Parent comment not found")
    if parent.parent_id is not None:
        raise InvalidRequestError("Cannot reply to a reply")
    return parent


async def create_comment(
    session: AsyncSession,
    author: User,
    article_slug: str,
    submission: NewComment,
    policy: ModerationPolicy,
) -> tuple[Comment, CommentDisposition]:
    """Validate, classify and store a new comment.

    Returns:
        The stored comment and the disposition it was given
    """
    content = validate_comment_content(submission.content)

    if await crud.is_user_banned(session, author.id):
        raise PermissionDeniedError("Your account has been banned from posting comments")

    article = await resolve_commentable_article(session, article_slug)

    if submission.parent_id:
        await check_reply_target(session, submission.parent_id, article)

    prior_count = await crud.count_comments_by_author(session, author.id)
    disposition = policy.evaluate(
        CommentCandidate(content=content, author_prior_comment_count=prior_count)
    )

    comment = await crud.create_comment(
        session,
        author=author,
        article_id=article.id,
        content=content,
        is_approved=disposition.is_approved,
        is_spam=disposition.is_spam,
        parent_id=submission.parent_id or None,
        ip_address=submission.ip_address,
        user_agent=submission.user_agent,
    )

    if not disposition.is_visible:
        logger.info(
            "Comment held for moderation",
            extra=get_log_context(
                user_id=author.id,
                client_ip=submission.ip_address,
                comment_id=comment.id,
                is_spam=disposition.is_spam,
                prior_comments=prior_count,
            ),
        )

    return comment, disposition


async def list_article_comments(
    session: AsyncSession,
    article_slug: str,
    viewer: Optional[User] = None,
    parent_id: Optional[str] = None,
    show_all: bool = False,
) -> List[tuple[Comment, int]]:
    """List one level of an article's comments.

    ``show_all`` (held and spam comments included) is honoured for admins
    only; everyone else sees public comments plus their own.
    """
    article = await crud.get_article_by_slug(session, article_slug)
    if article is None:
        raise NotFoundError("Article not found")

    return await crud.list_comments(
        session,
        article_id=article.id,
        parent_id=parent_id,
        viewer_id=viewer.id if viewer else None,
        show_all=show_all and viewer is not None and viewer.is_admin,
    )


async def like_comment(
    session: AsyncSession,
    user: User,
    comment_id: str,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> int:
    """Like a public comment.

    Returns:
        The comment's new like count
    """
    comment = await crud.get_visible_comment(session, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found or not approved")

    if await crud.get_comment_like(session, user.id, comment.id) is not None:
        raise InvalidRequestError("You have already liked this comment")

    try:
        await crud.create_comment_like(
            session, user.id, comment.id, ip_address=ip_address, user_agent=user_agent
        )
    except IntegrityError:
        # Lost the race against a concurrent like from the same user
        raise InvalidRequestError("You have already liked this comment")
    return await crud.adjust_comment_likes(session, comment.id, 1)


async def unlike_comment(session: AsyncSession, user: User, comment_id: str) -> int:
    """Remove the user's like from a comment.

    Returns:
        The comment's new like count (never below zero)
    """
    if not await crud.delete_comment_like(session, user.id, comment_id):
        raise NotFoundError("Like not found")
    return await crud.adjust_comment_likes(session, comment_id, -1)


async def has_liked_comment(session: AsyncSession, user: Optional[User], comment_id: str) -> bool:
    if user is None:
        return False
    comment = await crud.get_visible_comment(session, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found or not approved")
    return await crud.get_comment_like(session, user.id, comment.id) is not None
