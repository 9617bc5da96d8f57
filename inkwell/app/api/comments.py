"""Comment API endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from inkwell.app.core.utils import get_client_ip
from inkwell.app.db.dependencies import SessionDep
from inkwell.app.db.models import Comment, User
from inkwell.app.middleware.auth import optional_user, require_user
from inkwell.app.middleware.rate_limit import (
    RateLimitResult,
    comment_create_limit,
    comment_like_limit,
)
from inkwell.app.services import comment_service
from inkwell.app.services.comment_service import NewComment
from inkwell.app.services.moderation import ModerationPolicy, get_moderation_policy

router = APIRouter(tags=["comments"])


class CommentCreate(BaseModel):
    # Left untyped so a non-string body is refused with 400, like a blank one
    content: Any = None
    parent_id: Optional[str] = None


def serialize_comment(comment: Comment, reply_count: int = 0) -> dict:
    author = comment.author
    return {
        "id": comment.id,
        "content": comment.content,
        "article_id": comment.article_id,
        "parent_id": comment.parent_id,
        "is_approved": comment.is_approved,
        "is_spam": comment.is_spam,
        "likes_count": comment.likes_count,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
        "author": {
            "id": author.id,
            "username": author.username,
            "name": author.name,
            "role": author.role,
        },
        "reply_count": reply_count,
    }


@router.get("/api/articles/{slug}/comments")
async def list_comments(
    slug: str,
    session: SessionDep,
    parent_id: Optional[str] = None,
    show_all: bool = False,
    viewer: Optional[User] = Depends(optional_user),
) -> list[dict]:
    """List top-level comments of an article, or the replies to ``parent_id``."""
    rows = await comment_service.list_article_comments(
        session, slug, viewer=viewer, parent_id=parent_id, show_all=show_all
    )
    return [serialize_comment(comment, reply_count) for comment, reply_count in rows]


@router.post("/api/articles/{slug}/comments", status_code=201)
async def create_comment(
    slug: str,
    data: CommentCreate,
    request: Request,
    session: SessionDep,
    user: User = Depends(require_user),
    _rate_limit: RateLimitResult = Depends(comment_create_limit),
    policy: ModerationPolicy = Depends(get_moderation_policy),
) -> dict:
    """Create a comment or a reply.

    Held comments are still returned to their author with 201; only the
    flags show that other readers will not see them yet.
    """
    comment, _ = await comment_service.create_comment(
        session,
        author=user,
        article_slug=slug,
        submission=NewComment(
            content=data.content,
            parent_id=data.parent_id,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent", ""),
        ),
        policy=policy,
    )
    return serialize_comment(comment)


@router.post("/api/comments/{comment_id}/like")
async def like_comment(
    comment_id: str,
    request: Request,
    session: SessionDep,
    user: User = Depends(require_user),
    _rate_limit: RateLimitResult = Depends(comment_like_limit),
) -> dict:
    likes_count = await comment_service.like_comment(
        session,
        user,
        comment_id,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent", ""),
    )
    return {"success": True, "likes_count": likes_count}


@router.delete("/api/comments/{comment_id}/like")
async def unlike_comment(
    comment_id: str,
    session: SessionDep,
    user: User = Depends(require_user),
) -> dict:
    likes_count = await comment_service.unlike_comment(session, user, comment_id)
    return {"success": True, "likes_count": likes_count}


@router.get("/api/comments/{comment_id}/liked")
async def comment_liked(
    comment_id: str,
    session: SessionDep,
    user: Optional[User] = Depends(optional_user),
) -> dict:
    liked = await comment_service.has_liked_comment(session, user, comment_id)
    return {"liked": liked}
