"""In-memory fixed-window rate limiter.

One limiter instance is created per action category (comment creation,
comment likes, ...) and every call site passes its own limit, so several
endpoints can share one window length with different ceilings.

Scaling limitation: state lives in the process that owns the limiter. With
several worker processes or instances each one counts independently, so the
effective limit is multiplied by the number of workers.
"""

import threading
import time
from typing import Callable, Dict, Optional

from inkwell.app.core.logging import get_logger
from inkwell.app.middleware.rate_limit.models import RateLimitResult, RateLimitState

logger = get_logger(__name__)

Clock = Callable[[], float]


class RateLimiter:
    """Per-token request counter over a fixed time window.

    Memory bound:
    - State is created lazily on the first check for a token
    - When more than ``unique_token_per_interval`` tokens are tracked, entries
      whose window ended more than two intervals ago are dropped inline
    """

    DEFAULT_INTERVAL = 60.0
    DEFAULT_UNIQUE_TOKENS = 500

    def __init__(
        self,
        interval: float = DEFAULT_INTERVAL,
        unique_token_per_interval: int = DEFAULT_UNIQUE_TOKENS,
        clock: Optional[Clock] = None,
    ):
        """Initialize rate limiter.

        Args:
            interval: Window length in seconds
            unique_token_per_interval: Tracked-token count above which
                stale entries are pruned
            clock: Time source returning seconds (defaults to time.time)
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        if unique_token_per_interval < 1:
            raise ValueError("unique_token_per_interval must be at least 1")

        self.interval = float(interval)
        self.unique_token_per_interval = unique_token_per_interval
        self._clock: Clock = clock or time.time
        self._tokens: Dict[str, RateLimitState] = {}
        # Single lock over the map: read-check-increment must be atomic per token
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._tokens)

    def check(self, limit: int, token: str) -> RateLimitResult:
        """Count one request for ``token`` against ``limit``.

        Exhaustion is reported through ``success=False``; nothing is raised.
        A non-positive limit admits nothing.

        Raises:
            ValueError: If token is empty
        """
        if not token:
            raise ValueError("rate limit token must be a non-empty string")

        with self._lock:
            now = self._clock()

            state = self._tokens.get(token)
            if state is None:
                state = RateLimitState(
                    token=token,
                    count=0,
                    window_start=now,
                    window_end=now + self.interval,
                )
                self._tokens[token] = state
            elif state.expired(now):
                state.count = 0
                state.window_start = now
                state.window_end = now + self.interval

            if limit <= 0 or state.count >= limit:
                result = RateLimitResult(
                    success=False,
                    limit=limit,
                    remaining=0,
                    reset=state.window_end,
                    reset_after=state.window_end - now,
                )
            else:
                state.count += 1
                result = RateLimitResult(
                    success=True,
                    limit=limit,
                    remaining=max(0, limit - state.count),
                    reset=state.window_end,
                    reset_after=state.window_end - now,
                )

            if len(self._tokens) > self.unique_token_per_interval:
                self._prune(now)

        return result

    def _prune(self, now: float) -> None:
        """Drop entries whose window ended more than two intervals ago."""
        cutoff = self.interval * 2
        stale = [
            key for key, state in self._tokens.items()
            if now > state.window_end + cutoff
        ]
        for key in stale:
            del self._tokens[key]
        if stale:
            logger.debug(f"Pruned {len(stale)} stale rate limit entries")

    def get_state(self, token: str) -> Optional[RateLimitState]:
        """Return a copy of the tracked state for ``token`` (for inspection)."""
        with self._lock:
            state = self._tokens.get(token)
            if state is None:
                return None
            return RateLimitState(
                token=state.token,
                count=state.count,
                window_start=state.window_start,
                window_end=state.window_end,
            )

    def reset(self) -> None:
        """Forget all tracked tokens."""
        with self._lock:
            self._tokens.clear()


class RateLimiterRegistry:
    """Named limiter instances, one per action category.

    The first ``get`` for a key decides that limiter's options; later calls
    return the same instance.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock
        self._limiters: Dict[str, RateLimiter] = {}
        self._lock = threading.Lock()

    def get(
        self,
        key: str,
        interval: float = RateLimiter.DEFAULT_INTERVAL,
        unique_token_per_interval: int = RateLimiter.DEFAULT_UNIQUE_TOKENS,
    ) -> RateLimiter:
        with self._lock:
            limiter = self._limiters.get(key)
            if limiter is None:
                limiter = RateLimiter(
                    interval=interval,
                    unique_token_per_interval=unique_token_per_interval,
                    clock=self._clock,
                )
                self._limiters[key] = limiter
                logger.debug(
                    f"Created rate limiter '{key}' "
                    f"(interval={interval}s, unique_tokens={unique_token_per_interval})"
                )
            return limiter

    def __contains__(self, key: str) -> bool:
        return key in self._limiters

    def reset(self) -> None:
        """Reset the state of every registered limiter."""
        with self._lock:
            for limiter in self._limiters.values():
                limiter.reset()
