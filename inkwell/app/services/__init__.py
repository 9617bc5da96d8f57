"""Service layer for the blog service."""

from inkwell.app.services.moderation import (
    CommentCandidate,
    CommentDisposition,
    ModerationPolicy,
    content_looks_like_spam,
    get_moderation_policy,
)

__all__ = [
    "CommentCandidate",
    "CommentDisposition",
    "ModerationPolicy",
    "content_looks_like_spam",
    "get_moderation_policy",
]
