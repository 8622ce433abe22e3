"""Per-caller fixed-window rate limiting for the reminder triggers."""

import logging
from datetime import datetime, timedelta

from .core.ratelimit import check_window
from .ports.rate_limit_store import RateLimitStore

logger = logging.getLogger(__name__)


class RateLimitExceeded(Exception):
    """Raised when a caller has used up its window."""

    def __init__(self, caller_key: str, retry_after: int):
        super().__init__(f"Too many requests from {caller_key}. Try again in {retry_after}s.")
        self.caller_key = caller_key
        self.retry_after = retry_after


class RateLimiter:
    """
    Fixed-window limiter keyed by caller identity.

    Approximate: the window resets wholesale and counters are only
    as shared as the store behind them.
    """

    def __init__(self, store: RateLimitStore, max_per_window: int, window: timedelta):
        self.store = store
        self.max_per_window = max_per_window
        self.window = window

    def check(self, caller_key: str, now: datetime) -> bool:
        """Count one request. Returns False if the caller is over the limit."""
        allowed, counter = check_window(self.store.get(caller_key), now, self.max_per_window, self.window)
        if allowed:
            self.store.set(caller_key, counter)
        else:
            logger.warning(f"Rate limit exceeded for {caller_key}")
        return allowed

    def enforce(self, caller_key: str, now: datetime) -> None:
        """Like check, but raises RateLimitExceeded when denied."""
        if not self.check(caller_key, now):
            raise RateLimitExceeded(caller_key, int(self.window.total_seconds()))
