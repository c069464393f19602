"""
In-memory storage implementations.

Used in development and tests. Everything lives in one process, so the
atomic cache operations are trivially atomic on a single event loop.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any

from babelpost.core.utils import utc_now
from babelpost.storage.base import (
    MetadataStorage,
    CacheStorage,
    QueueStorage,
    ChannelStorage,
    ChannelSubscription,
    StorageProvider,
)


# =============================================================================
# In-Memory Metadata Storage
# =============================================================================


class InMemoryMetadataStorage(MetadataStorage):
    """In-memory document storage for development."""
    
    def __init__(self):
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
    
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        if collection not in self._data:
            self._data[collection] = {}
        self._data[collection][id] = {
            **data,
            "_id": id,
            "_updated_at": utc_now().isoformat(),
        }
    
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        doc = self._data.get(collection, {}).get(id)
        return dict(doc) if doc is not None else None
    
    async def delete(self, collection: str, id: str) -> bool:
        if collection in self._data and id in self._data[collection]:
            del self._data[collection][id]
            return True
        return False
    
    async def clear(self, collection: str) -> int:
        removed = len(self._data.get(collection, {}))
        self._data.pop(collection, None)
        return removed


# =============================================================================
# In-Memory Cache Storage
# =============================================================================


class InMemoryCacheStorage(CacheStorage):
    """In-memory cache for development."""
    
    def __init__(self):
        self._cache: dict[str, tuple[Any, float | None]] = {}
    
    def _live(self, key: str) -> tuple[Any, float | None] | None:
        entry = self._cache.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._cache[key]
            return None
        return entry
    
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        expires_at = time.monotonic() + ttl if ttl else None
        self._cache[key] = (value, expires_at)
    
    async def get(self, key: str) -> Any | None:
        entry = self._live(key)
        return entry[0] if entry else None
    
    async def delete(self, key: str) -> bool:
        if self._live(key) is not None:
            del self._cache[key]
            return True
        return False
    
    async def add(self, key: str, value: Any, ttl: int) -> bool:
        if self._live(key) is not None:
            return False
        self._cache[key] = (value, time.monotonic() + ttl)
        return True
    
    async def delete_if_equals(self, key: str, value: Any) -> bool:
        entry = self._live(key)
        if entry is None or entry[0] != value:
            return False
        del self._cache[key]
        return True
    
    async def add_to_window(
        self,
        key: str,
        now: float,
        window_seconds: int,
        limit: int,
    ) -> tuple[bool, float | None]:
        entry = self._live(key)
        hits = [t for t in (entry[0] if entry else []) if t > now - window_seconds]
        
        recorded = len(hits) < limit
        if recorded:
            hits.append(now)
        self._cache[key] = (hits, time.monotonic() + window_seconds + 1)
        return recorded, min(hits) if hits else None


# =============================================================================
# In-Memory Queue Storage
# =============================================================================


class InMemoryQueueStorage(QueueStorage):
    """In-memory queue for development."""
    
    def __init__(self):
        self._queues: dict[str, list[tuple[str, dict[str, Any]]]] = {}
        self._pending: dict[str, dict[str, dict[str, Any]]] = {}
    
    async def enqueue(self, queue_name: str, message: dict[str, Any]) -> str:
        if queue_name not in self._queues:
            self._queues[queue_name] = []
        
        message_id = str(uuid.uuid4())
        self._queues[queue_name].append((message_id, message))
        return message_id
    
    async def dequeue(self, queue_name: str, wait_seconds: int = 0) -> dict[str, Any] | None:
        if queue_name not in self._queues or not self._queues[queue_name]:
            return None
        
        message_id, message = self._queues[queue_name].pop(0)
        
        # Track pending for ack
        if queue_name not in self._pending:
            self._pending[queue_name] = {}
        self._pending[queue_name][message_id] = message
        
        return {"_message_id": message_id, **message}
    
    async def ack(self, queue_name: str, message_id: str) -> None:
        if queue_name in self._pending and message_id in self._pending[queue_name]:
            del self._pending[queue_name][message_id]
    
    async def requeue_unacked(self, queue_name: str) -> int:
        pending = self._pending.pop(queue_name, {})
        self._queues.setdefault(queue_name, [])[:0] = list(pending.items())
        return len(pending)
    
    async def size(self, queue_name: str) -> int:
        return len(self._queues.get(queue_name, []))


# =============================================================================
# In-Memory Channels
# =============================================================================


class InMemoryChannelSubscription(ChannelSubscription):
    
    def __init__(self, channels: InMemoryChannelStorage, channel: str):
        self._channels = channels
        self._channel = channel
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    
    async def get(self, timeout: float | None = None) -> dict[str, Any] | None:
        if timeout is None:
            return await self.queue.get()
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
    
    async def close(self) -> None:
        self._channels._subscribers.get(self._channel, set()).discard(self)


class InMemoryChannelStorage(ChannelStorage):
    """Broadcast within one process."""
    
    def __init__(self):
        self._subscribers: dict[str, set[InMemoryChannelSubscription]] = {}
    
    async def publish(self, channel: str, message: dict[str, Any]) -> int:
        subscribers = self._subscribers.get(channel, set())
        for subscription in subscribers:
            subscription.queue.put_nowait(dict(message))
        return len(subscribers)
    
    async def subscribe(self, channel: str) -> InMemoryChannelSubscription:
        subscription = InMemoryChannelSubscription(self, channel)
        self._subscribers.setdefault(channel, set()).add(subscription)
        return subscription


# =============================================================================
# Factory
# =============================================================================


def create_local_storage() -> StorageProvider:
    """Create a StorageProvider with in-memory implementations."""
    return StorageProvider(
        metadata=InMemoryMetadataStorage(),
        cache=InMemoryCacheStorage(),
        queue=InMemoryQueueStorage(),
        channels=InMemoryChannelStorage(),
    )
