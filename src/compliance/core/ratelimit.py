"""Fixed-window rate limit arithmetic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass
class RateLimitCounter:
    """Requests seen in the current window and when the window ends."""

    count: int
    reset_at: datetime


def check_window(
    counter: RateLimitCounter | None,
    now: datetime,
    max_per_window: int,
    window: timedelta,
) -> tuple[bool, RateLimitCounter]:
    """
    Apply one request to a fixed-window counter.

    Returns (allowed, updated counter). A denied request leaves the counter
    unchanged. Pure function - no I/O.
    """
    if counter is None or now > counter.reset_at:
        return True, RateLimitCounter(count=1, reset_at=now + window)

    if counter.count >= max_per_window:
        return False, counter

    return True, RateLimitCounter(count=counter.count + 1, reset_at=counter.reset_at)
