"""Rate limiting data models.

This module contains dataclasses for rate limit state and results.
"""

import math
from dataclasses import dataclass


@dataclass
class RateLimitResult:
    """Result of a rate limit check.

    ``reset`` is the absolute time (clock seconds) at which the window ends,
    ``reset_after`` the seconds remaining until then.
    """
    success: bool
    limit: int
    remaining: int
    reset: float
    reset_after: float

    @property
    def retry_after(self) -> int:
        """Retry hint in whole seconds for the Retry-After header."""
        return max(1, math.ceil(self.reset_after))


@dataclass
class RateLimitState:
    """Counter state for one client token (fixed window)."""
    token: str
    count: int
    window_start: float
    window_end: float

    def expired(self, now: float) -> bool:
        return now > self.window_end
