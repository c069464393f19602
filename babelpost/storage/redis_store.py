"""
Redis-backed storage for multi-worker deployments.

Every web and job worker points at the same Redis, which makes locks,
rate-limit windows, translation state, the job queue and revision
notifications shared across processes.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from typing import Any

import redis.asyncio as redis

from babelpost.core.utils import utc_now
from babelpost.storage.base import (
    MetadataStorage,
    CacheStorage,
    QueueStorage,
    ChannelStorage,
    ChannelSubscription,
    StorageProvider,
)

logger = logging.getLogger(__name__)


# Compare-and-delete so a holder never removes a lock it no longer owns
_DELETE_IF_EQUALS = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""

# Rolling window over a sorted set of hit timestamps.
# ARGV: now, window seconds, limit, member, key ttl
_ADD_TO_WINDOW = """
local now = tonumber(ARGV[1])
redis.call("zremrangebyscore", KEYS[1], "-inf", now - tonumber(ARGV[2]))
local recorded = 0
if redis.call("zcard", KEYS[1]) < tonumber(ARGV[3]) then
    redis.call("zadd", KEYS[1], now, ARGV[4])
    recorded = 1
end
redis.call("expire", KEYS[1], ARGV[5])
local oldest = redis.call("zrange", KEYS[1], 0, 0, "WITHSCORES")
if oldest[2] then
    return {recorded, oldest[2]}
end
return {recorded}
"""


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str)


def _loads(raw: str | None) -> Any | None:
    if raw is None:
        return None
    return json.loads(raw)


# =============================================================================
# Metadata
# =============================================================================


class RedisMetadataStorage(MetadataStorage):
    """
    Documents stored as JSON strings under `{prefix}meta:{collection}:{id}`.
    
    A set per collection indexes the IDs so a collection can be cleared.
    """
    
    def __init__(self, client: redis.Redis, prefix: str = "babelpost:"):
        self._client = client
        self._prefix = prefix
    
    def _doc_key(self, collection: str, id: str) -> str:
        return f"{self._prefix}meta:{collection}:{id}"
    
    def _index_key(self, collection: str) -> str:
        return f"{self._prefix}meta:{collection}"
    
    async def save(self, collection: str, id: str, data: dict[str, Any]) -> None:
        doc = {**data, "_id": id, "_updated_at": utc_now().isoformat()}
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.set(self._doc_key(collection, id), _dumps(doc))
            pipe.sadd(self._index_key(collection), id)
            await pipe.execute()
    
    async def get(self, collection: str, id: str) -> dict[str, Any] | None:
        return _loads(await self._client.get(self._doc_key(collection, id)))
    
    async def delete(self, collection: str, id: str) -> bool:
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.delete(self._doc_key(collection, id))
            pipe.srem(self._index_key(collection), id)
            deleted, _ = await pipe.execute()
        return bool(deleted)
    
    async def clear(self, collection: str) -> int:
        ids = await self._client.smembers(self._index_key(collection))
        if not ids:
            return 0
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.delete(*[self._doc_key(collection, i) for i in ids])
            pipe.delete(self._index_key(collection))
            await pipe.execute()
        return len(ids)


# =============================================================================
# Cache
# =============================================================================


class RedisCacheStorage(CacheStorage):
    """Cache, locks and rate-limit windows on Redis."""
    
    def __init__(self, client: redis.Redis, prefix: str = "babelpost:"):
        self._client = client
        self._prefix = prefix
        self._delete_if_equals = client.register_script(_DELETE_IF_EQUALS)
        self._add_to_window = client.register_script(_ADD_TO_WINDOW)
    
    def _key(self, key: str) -> str:
        return f"{self._prefix}cache:{key}"
    
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        await self._client.set(self._key(key), _dumps(value), ex=ttl)
    
    async def get(self, key: str) -> Any | None:
        return _loads(await self._client.get(self._key(key)))
    
    async def delete(self, key: str) -> bool:
        return bool(await self._client.delete(self._key(key)))
    
    async def add(self, key: str, value: Any, ttl: int) -> bool:
        return bool(await self._client.set(self._key(key), _dumps(value), ex=ttl, nx=True))
    
    async def delete_if_equals(self, key: str, value: Any) -> bool:
        deleted = await self._delete_if_equals(keys=[self._key(key)], args=[_dumps(value)])
        return bool(deleted)
    
    async def add_to_window(
        self,
        key: str,
        now: float,
        window_seconds: int,
        limit: int,
    ) -> tuple[bool, float | None]:
        # The member only has to be unique; the score carries the time
        member = f"{now!r}:{uuid.uuid4().hex[:8]}"
        result = await self._add_to_window(
            keys=[self._key(key)],
            args=[repr(now), window_seconds, limit, member, int(window_seconds) + 1],
        )
        oldest = float(result[1]) if len(result) > 1 else None
        return int(result[0]) == 1, oldest


# =============================================================================
# Queue
# =============================================================================


class RedisQueueStorage(QueueStorage):
    """
    Job queue on Redis lists.
    
    Dequeue atomically moves a message onto a processing list (LMOVE);
    ack removes it from there. Whatever a crashed worker left on the
    processing list goes back to the queue via `requeue_unacked`.
    """
    
    def __init__(self, client: redis.Redis, prefix: str = "babelpost:"):
        self._client = client
        self._prefix = prefix
        # Raw payloads this process dequeued, for LREM on ack
        self._in_flight: dict[str, str] = {}
    
    def _queue_key(self, queue_name: str) -> str:
        return f"{self._prefix}queue:{queue_name}"
    
    def _processing_key(self, queue_name: str) -> str:
        return f"{self._prefix}queue:{queue_name}:processing"
    
    async def enqueue(self, queue_name: str, message: dict[str, Any]) -> str:
        message_id = str(uuid.uuid4())
        envelope = {"_message_id": message_id, **message}
        await self._client.rpush(self._queue_key(queue_name), _dumps(envelope))
        return message_id
    
    async def dequeue(self, queue_name: str, wait_seconds: int = 0) -> dict[str, Any] | None:
        source = self._queue_key(queue_name)
        destination = self._processing_key(queue_name)
        if wait_seconds > 0:
            raw = await self._client.blmove(source, destination, wait_seconds, "LEFT", "RIGHT")
        else:
            raw = await self._client.lmove(source, destination, "LEFT", "RIGHT")
        
        if raw is None:
            return None
        
        envelope = _loads(raw)
        self._in_flight[envelope["_message_id"]] = raw
        return envelope
    
    async def ack(self, queue_name: str, message_id: str) -> None:
        processing = self._processing_key(queue_name)
        raw = self._in_flight.pop(message_id, None)
        if raw is None:
            # Dequeued by another process
            for candidate in await self._client.lrange(processing, 0, -1):
                if _loads(candidate).get("_message_id") == message_id:
                    raw = candidate
                    break
        if raw is not None:
            await self._client.lrem(processing, 1, raw)
    
    async def requeue_unacked(self, queue_name: str) -> int:
        source = self._processing_key(queue_name)
        destination = self._queue_key(queue_name)
        moved = 0
        # Oldest in-flight message ends up at the head again
        while await self._client.lmove(source, destination, "RIGHT", "LEFT") is not None:
            moved += 1
        if moved:
            logger.warning(f"Requeued {moved} unacked messages on {queue_name}")
        return moved
    
    async def size(self, queue_name: str) -> int:
        return int(await self._client.llen(self._queue_key(queue_name)))


# =============================================================================
# Channels
# =============================================================================


class RedisChannelSubscription(ChannelSubscription):
    
    def __init__(self, pubsub: Any):
        self._pubsub = pubsub
    
    async def get(self, timeout: float | None = None) -> dict[str, Any] | None:
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            message = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=remaining)
            if message is not None:
                return _loads(message["data"])
            # Subscribe confirmations also come back as None
            if deadline is not None and time.monotonic() >= deadline:
                return None
    
    async def close(self) -> None:
        await self._pubsub.unsubscribe()
        await self._pubsub.aclose()


class RedisChannelStorage(ChannelStorage):
    """Redis pub/sub."""
    
    def __init__(self, client: redis.Redis, prefix: str = "babelpost:"):
        self._client = client
        self._prefix = prefix
    
    def _channel_key(self, channel: str) -> str:
        return f"{self._prefix}channel:{channel}"
    
    async def publish(self, channel: str, message: dict[str, Any]) -> int:
        return int(await self._client.publish(self._channel_key(channel), _dumps(message)))
    
    async def subscribe(self, channel: str) -> RedisChannelSubscription:
        pubsub = self._client.pubsub()
        await pubsub.subscribe(self._channel_key(channel))
        return RedisChannelSubscription(pubsub)


# =============================================================================
# Factory
# =============================================================================


def redis_storage_from_client(client: redis.Redis, prefix: str = "babelpost:") -> StorageProvider:
    """StorageProvider over an existing client (decode_responses=True)."""
    return StorageProvider(
        metadata=RedisMetadataStorage(client, prefix),
        cache=RedisCacheStorage(client, prefix),
        queue=RedisQueueStorage(client, prefix),
        channels=RedisChannelStorage(client, prefix),
    )


def create_redis_storage(redis_url: str, prefix: str = "babelpost:") -> StorageProvider:
    """Create a StorageProvider where every backend shares one Redis."""
    client = redis.Redis.from_url(redis_url, decode_responses=True)
    logger.info(f"Using Redis storage at {redis_url.rsplit('@', 1)[-1]}")
    return redis_storage_from_client(client, prefix)
