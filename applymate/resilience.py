"""
Resilience utilities for ApplyMate.

Provides retry logic with exponential backoff and rate limiting
for calls to the LLM provider.
"""

import time
import random
import functools
import threading
from typing import Callable, Optional, Type, Tuple
from collections import deque

from applymate.logging_config import get_logger

logger = get_logger(__name__)


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""

    def __init__(self, message: str, last_exception: Optional[Exception] = None):
        super().__init__(message)
        self.last_exception = last_exception


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[Exception, int], None]] = None,
):
    """
    Decorator for retry with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts
        base_delay: Initial delay in seconds
        max_delay: Maximum delay cap in seconds
        exponential_base: Base for exponential calculation
        jitter: Add random jitter to prevent thundering herd
        retryable_exceptions: Tuple of exceptions to retry on
        on_retry: Optional callback called on each retry (exception, attempt)

    Usage:
        @retry_with_backoff(max_retries=3, base_delay=1.0)
        def flaky_api_call():
            ...
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    last_exception = e

                    if attempt == max_retries:
                        logger.error(
                            f"All {max_retries} retries exhausted for {func.__name__}: {e}"
                        )
                        raise RetryError(
                            f"Failed after {max_retries} retries: {e}", last_exception=e
                        )

                    delay = min(base_delay * (exponential_base**attempt), max_delay)

                    # Jitter of +/-25%
                    if jitter:
                        delay = delay * (0.75 + random.random() * 0.5)

                    logger.warning(
                        f"Retry {attempt + 1}/{max_retries} for {func.__name__} "
                        f"after {delay:.2f}s delay. Error: {e}"
                    )

                    if on_retry:
                        on_retry(e, attempt + 1)

                    time.sleep(delay)

            raise RetryError(f"Failed after {max_retries} retries", last_exception=last_exception)

        return wrapper

    return decorator


class RateLimiter:
    """
    Sliding window rate limiter for API calls.

    Spaces calls at least 60/calls_per_minute seconds apart and never lets
    more than calls_per_minute through in any 60 second window.
    """

    def __init__(self, calls_per_minute: int = 60):
        """
        Initialize rate limiter.

        Args:
            calls_per_minute: Maximum calls allowed per minute
        """
        self.calls_per_minute = calls_per_minute
        self.min_interval = 60.0 / calls_per_minute  # seconds between calls

        self._lock = threading.Lock()
        self._call_times: deque = deque(maxlen=calls_per_minute)
        self._last_call: Optional[float] = None

    def acquire(self, timeout: Optional[float] = None) -> bool:
        """
        Acquire permission to make a call, blocking if necessary.

        Args:
            timeout: Maximum time to wait in seconds (None for infinite)

        Returns:
            True if acquired, False if timeout exceeded
        """
        start_time = time.time()

        while True:
            with self._lock:
                now = time.time()

                while self._call_times and self._call_times[0] < now - 60:
                    self._call_times.popleft()

                if len(self._call_times) < self.calls_per_minute:
                    if self._last_call is None or (now - self._last_call) >= self.min_interval:
                        self._call_times.append(now)
                        self._last_call = now
                        return True

                if self._call_times:
                    wait_for_window = max(0, self._call_times[0] + 60 - now)
                else:
                    wait_for_window = 0

                if self._last_call:
                    wait_for_interval = max(0, self._last_call + self.min_interval - now)
                else:
                    wait_for_interval = 0

                wait_time = max(wait_for_window, wait_for_interval)

            if timeout is not None:
                elapsed = time.time() - start_time
                if elapsed + wait_time > timeout:
                    return False

            if wait_time > 0:
                time.sleep(min(wait_time, 0.1))
            else:
                time.sleep(0.01)

    def reset(self):
        """Forget all recorded calls."""
        with self._lock:
            self._call_times.clear()
            self._last_call = None


class APIRateLimiters:
    """Pre-configured rate limiters for outbound APIs."""

    # LLM structured analysis (ATS, match score, URL parsing)
    llm = RateLimiter(calls_per_minute=60)

    # Chat assistants get their own budget so analysis can't starve them
    chat = RateLimiter(calls_per_minute=30)

    # Fetching job posting pages
    web_fetch = RateLimiter(calls_per_minute=20)
