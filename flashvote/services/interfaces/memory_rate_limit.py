"""
Process-local rate limit store.
State is a plain dict of last-accepted timestamps; it is not shared between
worker processes and is lost on restart.
"""

import math
import time
from typing import Callable, Optional

from flashvote.services.interfaces.rate_limit import RateLimitStore


class InMemoryRateLimitStore(RateLimitStore):
    """
    Default store for single-instance deployments.

    Under multi-instance deployment it under-enforces: each instance only
    sees the votes it accepted itself.
    """

    def __init__(self, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        super().__init__(window_seconds)
        self._clock = clock
        self._last_seen: dict[str, float] = {}

    async def retry_after(self, key: str) -> Optional[int]:
        last = self._last_seen.get(key)
        if last is None:
            return None

        elapsed = self._clock() - last
        if elapsed >= self.window_seconds:
            # Window over, drop the entry so the dict does not grow forever
            del self._last_seen[key]
            return None
        return max(1, math.ceil(self.window_seconds - elapsed))

    async def record(self, key: str) -> None:
        self._last_seen[key] = self._clock()

    async def reset(self) -> None:
        self._last_seen.clear()
