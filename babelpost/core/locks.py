"""
Lease-based distributed mutex.

The lock is a key in the shared cache store set with a TTL. If the
holder dies, the lease simply expires and the next caller gets it.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from babelpost.core.utils import generate_id
from babelpost.storage.base import CacheStorage

logger = logging.getLogger(__name__)


class DistributedMutex:
    """
    Non-blocking named lock.
    
    Usage:
        mutex = DistributedMutex(cache, "detect_translation_42", ttl=60)
        async with mutex.hold() as acquired:
            if not acquired:
                return  # someone else is on it
            ...
    """
    
    def __init__(self, cache: CacheStorage, name: str, ttl: int = 60):
        if ttl <= 0:
            raise ValueError("Lock TTL must be positive")
        self.cache = cache
        self.name = name
        self.ttl = ttl
        self._token: str | None = None
    
    @property
    def key(self) -> str:
        return f"mutex:{self.name}"
    
    @property
    def is_held(self) -> bool:
        """Whether this instance believes it owns the lease."""
        return self._token is not None
    
    async def try_acquire(self) -> bool:
        """Take the lease if nobody holds it. Never waits."""
        token = generate_id("lock")
        if await self.cache.add(self.key, token, ttl=self.ttl):
            self._token = token
            return True
        return False
    
    async def release(self) -> None:
        """Give the lease back, unless it already expired and moved on."""
        if self._token is None:
            return
        released = await self.cache.delete_if_equals(self.key, self._token)
        if not released:
            logger.warning(f"Lease for {self.name} expired before release")
        self._token = None
    
    @asynccontextmanager
    async def hold(self) -> AsyncIterator[bool]:
        acquired = await self.try_acquire()
        try:
            yield acquired
        finally:
            if acquired:
                await self.release()
