"""
Tests for retry and rate limiting helpers.
"""

import pytest

from applymate.resilience import RateLimiter, RetryError, retry_with_backoff


class TestRateLimiter:
    def test_enforces_min_interval(self):
        limiter = RateLimiter(calls_per_minute=1)

        assert limiter.acquire(timeout=0.05) is True
        assert limiter.acquire(timeout=0.05) is False

    def test_reset_forgets_calls(self):
        limiter = RateLimiter(calls_per_minute=1)
        limiter.acquire()

        limiter.reset()

        assert limiter.acquire(timeout=0.05) is True


class TestRetry:
    def test_only_listed_exceptions_are_retried(self):
        calls = []

        @retry_with_backoff(max_retries=3, base_delay=0, retryable_exceptions=(ConnectionError,))
        def fails(exc):
            calls.append(exc)
            raise exc

        with pytest.raises(ValueError):
            fails(ValueError("bad key"))
        assert len(calls) == 1

        with pytest.raises(RetryError) as excinfo:
            fails(ConnectionError("down"))
        assert len(calls) == 1 + 4
        assert isinstance(excinfo.value.last_exception, ConnectionError)
