"""
Storage abstractions.

- MetadataStorage -> documents (posts, translation state, site settings)
- CacheStorage -> locks, rate-limit windows
- QueueStorage -> background jobs
- ChannelStorage -> cross-process notifications
"""

from babelpost.config import Settings
from babelpost.storage.base import (
    MetadataStorage,
    CacheStorage,
    QueueStorage,
    ChannelStorage,
    StorageProvider,
    Collections,
    Queues,
    Channels,
)
from babelpost.storage.local import create_local_storage


def create_storage(settings: Settings) -> StorageProvider:
    """Redis when configured, in-memory otherwise."""
    if settings.use_redis:
        from babelpost.storage.redis_store import create_redis_storage
        return create_redis_storage(settings.redis_url)
    return create_local_storage()


__all__ = [
    "MetadataStorage",
    "CacheStorage",
    "QueueStorage",
    "ChannelStorage",
    "StorageProvider",
    "Collections",
    "Queues",
    "Channels",
    "create_local_storage",
    "create_storage",
]
