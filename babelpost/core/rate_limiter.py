"""
Per-user action rate limiting.

A true rolling window: every accepted action is recorded with its
timestamp, and an action is refused while `max_per_window` recorded
actions fall within the last `window_seconds`. The check and the record
are one atomic step in the shared cache, so concurrent requests from
many workers can never overshoot the limit.
"""

from __future__ import annotations

import math
import time
from typing import Callable

from babelpost.core.errors import RateLimited
from babelpost.storage.base import CacheStorage


class RateLimiter:
    """
    Allow at most `max_per_window` actions per rolling `window_seconds`.
    
    Usage:
        limiter = RateLimiter(cache, user_id, "translate_post", 3, 60)
        await limiter.performed()  # raises RateLimited when over
    """
    
    def __init__(
        self,
        cache: CacheStorage,
        user_id: str,
        action: str,
        max_per_window: int,
        window_seconds: int = 60,
        clock: Callable[[], float] = time.time,
    ):
        self.cache = cache
        self.user_id = user_id
        self.action = action
        self.max_per_window = max_per_window
        self.window_seconds = window_seconds
        self.clock = clock
    
    @property
    def key(self) -> str:
        return f"rate:{self.action}:{self.user_id}"
    
    async def performed(self) -> None:
        """Record one action, raising RateLimited if it is over the limit."""
        now = self.clock()
        recorded, oldest = await self.cache.add_to_window(
            self.key, now, self.window_seconds, self.max_per_window
        )
        if recorded:
            return
        
        # Rejected attempts are not recorded, so the wait only depends on
        # when the oldest accepted action leaves the window
        if oldest is None:
            retry_after = self.window_seconds
        else:
            retry_after = max(1, math.ceil(oldest + self.window_seconds - now))
        raise RateLimited(retry_after=retry_after)
