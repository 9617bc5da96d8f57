"""Tests for the fixed-window rate limiter."""

import threading

import pytest
from starlette.requests import Request

from inkwell.app.core.utils import get_client_ip
from inkwell.app.exceptions import RateLimitExceededError
from inkwell.app.middleware.rate_limit import (
    COMMENT_CREATE,
    COMMENT_LIKE,
    RateLimiter,
    RateLimiterRegistry,
    RateLimitResult,
    build_rate_limiters,
)

from conftest import FakeClock


class TestRateLimiter:
    """Tests for RateLimiter.check."""

    @pytest.fixture
    def clock(self):
        return FakeClock(start=100.0)

    @pytest.fixture
    def limiter(self, clock):
        return RateLimiter(interval=60, unique_token_per_interval=500, clock=clock)

    def test_admits_exactly_limit_requests_per_window(self, limiter):
        results = [limiter.check(3, "1.1.1.1") for _ in range(5)]
        assert [r.success for r in results] == [True, True, True, False, False]

    def test_remaining_counts_down(self, limiter):
        assert [limiter.check(3, "1.1.1.1").remaining for _ in range(3)] == [2, 1, 0]

    def test_rejection_does_not_increment(self, limiter):
        for _ in range(2):
            limiter.check(2, "1.1.1.1")
        for _ in range(5):
            limiter.check(2, "1.1.1.1")
        assert limiter.get_state("1.1.1.1").count == 2

    def test_rejected_result(self, limiter, clock):
        limiter.check(1, "1.1.1.1")
        clock.advance(15)
        result = limiter.check(1, "1.1.1.1")
        assert result == RateLimitResult(
            success=False, limit=1, remaining=0, reset=160.0, reset_after=45.0
        )
        assert result.retry_after == 45

    def test_reset_is_window_end(self, limiter, clock):
        first = limiter.check(5, "1.1.1.1")
        clock.advance(20)
        second = limiter.check(5, "1.1.1.1")
        assert first.reset == second.reset == 160.0
        assert first.reset_after == 60.0
        assert second.reset_after == 40.0

    def test_window_reset_after_interval(self, limiter, clock):
        for _ in range(10):
            limiter.check(10, "1.1.1.1")
        assert limiter.check(10, "1.1.1.1").success is False

        clock.advance(61)
        result = limiter.check(10, "1.1.1.1")
        assert result.success is True
        assert result.remaining == 9
        assert result.reset == clock.now + 60

    def test_window_still_closed_at_exact_boundary(self, limiter, clock):
        limiter.check(1, "1.1.1.1")
        clock.advance(60)
        assert limiter.check(1, "1.1.1.1").success is False
        clock.advance(0.001)
        assert limiter.check(1, "1.1.1.1").success is True

    def test_tokens_are_independent(self, limiter):
        for _ in range(10):
            limiter.check(10, "1.1.1.1")
        assert limiter.check(10, "1.1.1.1").success is False

        result = limiter.check(10, "2.2.2.2")
        assert result.success is True
        assert result.remaining == 9

    def test_limit_is_per_call(self, limiter):
        for _ in range(3):
            limiter.check(3, "1.1.1.1")
        assert limiter.check(3, "1.1.1.1").success is False
        # Same window, higher ceiling from another call site
        assert limiter.check(5, "1.1.1.1").success is True

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_limit_admits_nothing(self, limiter, limit):
        result = limiter.check(limit, "1.1.1.1")
        assert result.success is False
        assert result.remaining == 0
        assert limiter.get_state("1.1.1.1").count == 0

    def test_empty_token_rejected(self, limiter):
        with pytest.raises(ValueError):
            limiter.check(10, "")

    @pytest.mark.parametrize("interval", [0, -5])
    def test_invalid_interval(self, interval):
        with pytest.raises(ValueError):
            RateLimiter(interval=interval)

    def test_invalid_unique_tokens(self):
        with pytest.raises(ValueError):
            RateLimiter(unique_token_per_interval=0)

    def test_get_state_returns_copy(self, limiter):
        limiter.check(5, "1.1.1.1")
        state = limiter.get_state("1.1.1.1")
        state.count = 99
        assert limiter.get_state("1.1.1.1").count == 1
        assert limiter.get_state("9.9.9.9") is None

    def test_reset_forgets_tokens(self, limiter):
        limiter.check(1, "1.1.1.1")
        limiter.reset()
        assert len(limiter) == 0
        assert limiter.check(1, "1.1.1.1").success is True


class TestPruning:
    """Stale entries are dropped once the tracked-token bound is exceeded."""

    def test_stale_entries_pruned_over_bound(self):
        clock = FakeClock(start=0.0)
        limiter = RateLimiter(interval=10, unique_token_per_interval=3, clock=clock)
        for i in range(3):
            limiter.check(5, f"old-{i}")
        assert len(limiter) == 3

        # Past window_end + 2 * interval for the old entries
        clock.advance(31)
        limiter.check(5, "new")
        assert len(limiter) == 1
        assert limiter.get_state("new") is not None

    def test_recent_entries_survive_pruning(self):
        clock = FakeClock(start=0.0)
        limiter = RateLimiter(interval=10, unique_token_per_interval=2, clock=clock)
        limiter.check(5, "a")
        limiter.check(5, "b")
        clock.advance(15)
        limiter.check(5, "c")
        assert len(limiter) == 3

    def test_no_pruning_under_bound(self):
        clock = FakeClock(start=0.0)
        limiter = RateLimiter(interval=10, unique_token_per_interval=10, clock=clock)
        limiter.check(5, "a")
        clock.advance(1000)
        limiter.check(5, "b")
        assert len(limiter) == 2

    def test_pruned_token_starts_fresh(self):
        clock = FakeClock(start=0.0)
        limiter = RateLimiter(interval=10, unique_token_per_interval=1, clock=clock)
        limiter.check(1, "a")
        clock.advance(31)
        limiter.check(1, "b")
        assert limiter.get_state("a") is None
        result = limiter.check(1, "a")
        assert result.success is True
        assert result.remaining == 0


class TestConcurrency:
    def test_threads_never_over_admit(self):
        limiter = RateLimiter(interval=60)
        results = []
        lock = threading.Lock()
        barrier = threading.Barrier(20)

        def worker():
            barrier.wait()
            for _ in range(10):
                result = limiter.check(50, "1.1.1.1")
                with lock:
                    results.append(result.success)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 200
        assert sum(results) == 50


class TestRegistry:
    def test_get_returns_same_instance(self):
        registry = RateLimiterRegistry()
        assert registry.get("a") is registry.get("a")
        assert registry.get("a") is not registry.get("b")

    def test_first_get_decides_options(self):
        registry = RateLimiterRegistry()
        limiter = registry.get("a", interval=30)
        assert registry.get("a", interval=90).interval == 30
        assert limiter.interval == 30

    def test_shared_clock(self):
        clock = FakeClock(start=5.0)
        registry = RateLimiterRegistry(clock=clock)
        assert registry.get("a").check(1, "x").reset == 65.0

    def test_build_rate_limiters(self):
        registry = build_rate_limiters()
        assert COMMENT_CREATE in registry
        assert COMMENT_LIKE in registry

    def test_categories_are_independent(self):
        registry = build_rate_limiters(clock=FakeClock())
        registry.get(COMMENT_CREATE).check(1, "1.1.1.1")
        assert registry.get(COMMENT_CREATE).check(1, "1.1.1.1").success is False
        assert registry.get(COMMENT_LIKE).check(1, "1.1.1.1").success is True

    def test_reset_all(self):
        registry = RateLimiterRegistry()
        registry.get("a").check(1, "x")
        registry.reset()
        assert registry.get("a").check(1, "x").success is True


class TestRateLimitExceededError:
    def test_retry_after_rounds_up(self):
        exc = RateLimitExceededError(limit=10, reset=160.2, reset_after=12.2)
        assert exc.retry_after == 13
        assert exc.status_code == 429

    def test_retry_after_at_least_one(self):
        assert RateLimitExceededError(limit=10, reset=100, reset_after=0).retry_after == 1

    def test_headers(self):
        exc = RateLimitExceededError(limit=10, reset=160.2, reset_after=30)
        assert exc.headers() == {
            "Retry-After": "30",
            "X-RateLimit-Limit": "10",
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": "161",
        }

    def test_response_body(self):
        body = RateLimitExceededError(limit=10, reset=160, reset_after=30).to_response()
        assert body["error"] == "rate_limit_exceeded"
        assert body["retry_after"] == 30
        assert "Retry after 30 seconds" in body["message"]


def _make_request(headers=None, client=("10.0.0.9", 1234)) -> Request:
    raw_headers = [
        (name.lower().encode(), value.encode())
        for name, value in (headers or {}).items()
    ]
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/",
        "headers": raw_headers,
        "client": client,
    }
    return Request(scope)


class TestClientIp:
    def test_uses_first_forwarded_for_entry(self):
        request = _make_request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
        assert get_client_ip(request, trust_forwarded=True) == "203.0.113.5"

    def test_falls_back_to_real_ip(self):
        request = _make_request({"X-Real-IP": "203.0.113.7"})
        assert get_client_ip(request, trust_forwarded=True) == "203.0.113.7"

    def test_falls_back_to_peer(self):
        assert get_client_ip(_make_request(), trust_forwarded=True) == "10.0.0.9"

    def test_ignores_headers_when_untrusted(self):
        request = _make_request({"X-Forwarded-For": "203.0.113.5"})
        assert get_client_ip(request, trust_forwarded=False) == "10.0.0.9"

    def test_unknown_without_peer(self):
        assert get_client_ip(_make_request(client=None), trust_forwarded=True) == "unknown"
