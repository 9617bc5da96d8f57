"""Comment moderation policy.

Classifies a new comment before it is stored. Two independent flags come
out of the policy:

- ``is_spam``: the content matched the promotional / link-spam keyword scan
- ``is_approved``: the comment may be shown to everyone right away

A comment is public only when it is approved and not spam. Held comments
are still stored; moderators approve them elsewhere.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from inkwell.app.core.config import settings

# Substrings associated with promotional or link-spam content. This is a
# keyword scan, not a classifier; false positives (any link) are accepted.
SPAM_KEYWORDS = (
    "buy now",
    "discount",
    "http://",
    "https://",
    "www.",
)

# Authors with fewer prior comments than this are held for review
NEW_USER_COMMENT_THRESHOLD = 3

SpamDetector = Callable[[str], bool]


def content_looks_like_spam(content: str) -> bool:
    """Return True if the lower-cased content contains a spam keyword."""
    lowered = content.lower()
    return any(keyword in lowered for keyword in SPAM_KEYWORDS)


@dataclass(frozen=True)
class CommentCandidate:
    """What the policy needs to know about a comment being created."""
    content: str
    author_prior_comment_count: int


@dataclass(frozen=True)
class CommentDisposition:
    """Moderation outcome written onto the new comment row."""
    is_approved: bool
    is_spam: bool

    @property
    def is_visible(self) -> bool:
        return self.is_approved and not self.is_spam


class ModerationPolicy:
    """Decides the initial visibility of a comment.

    The policy holds no state between calls: identical candidates always get
    identical dispositions.
    """

    def __init__(
        self,
        spam_detector: Optional[SpamDetector] = None,
        new_user_threshold: int = NEW_USER_COMMENT_THRESHOLD,
    ):
        self.spam_detector: SpamDetector = spam_detector or content_looks_like_spam
        self.new_user_threshold = new_user_threshold

    def is_new_user(self, prior_comment_count: int) -> bool:
        # Negative counts cannot come from the database; treat them as new.
        return prior_comment_count < self.new_user_threshold

    def evaluate(self, candidate: CommentCandidate) -> CommentDisposition:
        is_spam = bool(self.spam_detector(candidate.content))
        is_new_user = self.is_new_user(candidate.author_prior_comment_count)
        return CommentDisposition(
            is_approved=not is_new_user and not is_spam,
            is_spam=is_spam,
        )


def get_moderation_policy() -> ModerationPolicy:
    """FastAPI dependency returning the policy configured from settings."""
    return ModerationPolicy(new_user_threshold=settings.new_user_comment_threshold)
