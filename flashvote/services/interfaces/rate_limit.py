"""
Vote rate limit store interface.
Allows swapping the limiter backing store without changing the vote writer.
"""

from abc import ABC, abstractmethod
from typing import Optional


class RateLimitStore(ABC):
    """
    Interface for fixed-window vote rate limiting.

    A key is blocked for `window_seconds` after `record` is called for it.

    Implementations:
    - InMemoryRateLimitStore: process-local, resets on restart
    - RedisRateLimitStore: shared across instances via key TTL
    """

    def __init__(self, window_seconds: int):
        self.window_seconds = window_seconds

    @abstractmethod
    async def retry_after(self, key: str) -> Optional[int]:
        """
        Check whether the key is inside its window.

        Returns:
            None if a new attempt is allowed, otherwise the whole number of
            seconds (rounded up, 1..window_seconds) until it will be.
        """
        pass

    @abstractmethod
    async def record(self, key: str) -> None:
        """
        Start a new window for the key (called after a successful vote).
        """
        pass

    async def reset(self) -> None:
        """Forget every key. Used on shutdown and in tests."""
        pass


def vote_rate_limit_key(source_ip: str, subject_id: str) -> str:
    return f"vote_rl:{source_ip}:{subject_id}"
