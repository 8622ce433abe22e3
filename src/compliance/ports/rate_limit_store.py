"""Rate limit counter store interface."""

from typing import Protocol

from compliance.core.ratelimit import RateLimitCounter


class RateLimitStore(Protocol):
    """Interface for per-caller rate limit counters.

    An in-process map is enough for a single instance; a shared key-value
    store is needed when several instances serve the same trigger.
    """

    def get(self, key: str) -> RateLimitCounter | None:
        ...

    def set(self, key: str, counter: RateLimitCounter) -> None:
        ...

    def reset(self, key: str) -> None:
        ...
