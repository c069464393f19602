"""
Storage abstraction layer.

All persistence goes through these interfaces so the same code runs
against in-memory stores in tests and Redis in a multi-worker deployment.

- MetadataStorage -> posts, translation state, site settings
- CacheStorage -> locks, rate-limit windows
- QueueStorage -> background jobs (detection)
- ChannelStorage -> broadcast notifications (post.revised)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

from pydantic import BaseModel


# =============================================================================
# Storage Interfaces
# =============================================================================


class MetadataStorage(ABC):
    """Storage for structured documents."""
    
    @abstractmethod
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        """Save a document to a collection."""
        pass
    
    @abstractmethod
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        """Get a document by ID."""
        pass
    
    @abstractmethod
    async def delete(self, collection: str, id: str) -> bool:
        """Delete a document."""
        pass
    
    @abstractmethod
    async def clear(self, collection: str) -> int:
        """Delete every document in a collection, return how many were removed."""
        pass


class CacheStorage(ABC):
    """
    Fast key-value store shared by all workers.
    
    `add`, `delete_if_equals` and `add_to_window` must be atomic across
    processes; locks and rate limits are built on them.
    """
    
    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Set a value with optional TTL in seconds."""
        pass
    
    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Get a value."""
        pass
    
    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key."""
        pass
    
    @abstractmethod
    async def add(self, key: str, value: Any, ttl: int) -> bool:
        """Set only if the key is absent. Returns True if this call set it."""
        pass
    
    @abstractmethod
    async def delete_if_equals(self, key: str, value: Any) -> bool:
        """Delete the key only while it still holds `value`."""
        pass
    
    @abstractmethod
    async def add_to_window(
        self,
        key: str,
        now: float,
        window_seconds: int,
        limit: int,
    ) -> tuple[bool, float | None]:
        """
        Record a hit at `now` unless `limit` hits already fall inside
        (now - window_seconds, now].
        
        Returns (recorded, timestamp of the oldest hit still in the window).
        """
        pass


class QueueStorage(ABC):
    """
    Message queue for async job processing (at-least-once delivery).
    
    A dequeued message stays in flight until acked. `requeue_unacked`
    puts in-flight messages back, for a worker restarting after a crash.
    """
    
    @abstractmethod
    async def enqueue(self, queue_name: str, message: dict[str, Any]) -> str:
        """Add a message to queue, return message ID."""
        pass
    
    @abstractmethod
    async def dequeue(self, queue_name: str, wait_seconds: int = 0) -> dict[str, Any] | None:
        """Get next message from queue."""
        pass
    
    @abstractmethod
    async def ack(self, queue_name: str, message_id: str) -> None:
        """Acknowledge message processing complete."""
        pass
    
    @abstractmethod
    async def requeue_unacked(self, queue_name: str) -> int:
        """Return every in-flight message to the queue; returns how many moved."""
        pass
    
    @abstractmethod
    async def size(self, queue_name: str) -> int:
        """Messages waiting to be dequeued."""
        pass


class ChannelSubscription(ABC):
    """A live subscription to one channel."""
    
    @abstractmethod
    async def get(self, timeout: float | None = None) -> dict[str, Any] | None:
        """Next message, or None once `timeout` seconds pass without one."""
        pass
    
    @abstractmethod
    async def close(self) -> None:
        pass
    
    async def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        while True:
            message = await self.get(timeout=1.0)
            if message is not None:
                yield message


class ChannelStorage(ABC):
    """Fire-and-forget broadcast to every current subscriber, across processes."""
    
    @abstractmethod
    async def publish(self, channel: str, message: dict[str, Any]) -> int:
        """Send to current subscribers; returns how many received it."""
        pass
    
    @abstractmethod
    async def subscribe(self, channel: str) -> ChannelSubscription:
        """Start receiving. Messages published after this returns are delivered."""
        pass


# =============================================================================
# Storage Provider (dependency injection container)
# =============================================================================


class StorageProvider(BaseModel):
    """
    Container for all storage backends.
    
    Initialize once at startup with appropriate implementations.
    """
    
    model_config = {"arbitrary_types_allowed": True}
    
    metadata: MetadataStorage
    cache: CacheStorage
    queue: QueueStorage
    channels: ChannelStorage


# =============================================================================
# Collection Names (for MetadataStorage)
# =============================================================================


class Collections:
    """Standard collection/table names."""
    
    POSTS = "posts"
    POST_TRANSLATIONS = "post_translations"
    SITE_SETTINGS = "site_settings"


class Queues:
    """Standard queue names."""
    
    DETECT_TRANSLATION = "detect_translation"


class Channels:
    """Standard broadcast channel names."""
    
    POST_REVISED = "post_revised"
