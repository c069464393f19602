"""
Background detection jobs.

Detection requests go onto a shared queue and are consumed by worker
processes. Delivery is at-least-once with no retries: a failed job is
acked and dropped, and the next trigger for that post enqueues again.
"""

from __future__ import annotations

import asyncio
import logging

from babelpost.services.detection import DetectionCoordinator
from babelpost.storage.base import CacheStorage, QueueStorage, Queues

logger = logging.getLogger(__name__)


class DetectionJobs:
    """
    Enqueue side.
    
    Page views can ask for the same post many times a second, so an
    enqueue marker in the cache suppresses duplicates for a short while.
    """
    
    def __init__(self, queue: QueueStorage, cache: CacheStorage, dedupe_seconds: int = 30):
        self.queue = queue
        self.cache = cache
        self.dedupe_seconds = dedupe_seconds
    
    async def enqueue(self, post_id: str, force: bool = False) -> bool:
        """
        Fire-and-forget. Returns False when a job was enqueued recently.

        `force` skips the duplicate check and restarts the marker, so
        renders right after an edit do not queue a second job.
        """
        marker = f"detect_enqueued:{post_id}"
        if self.dedupe_seconds > 0:
            if force:
                await self.cache.set(marker, True, ttl=self.dedupe_seconds)
            elif not await self.cache.add(marker, True, ttl=self.dedupe_seconds):
                return False
        
        await self.queue.enqueue(Queues.DETECT_TRANSLATION, {"post_id": post_id})
        return True


class DetectionWorker:
    """Consumes the detection queue."""
    
    def __init__(
        self,
        queue: QueueStorage,
        coordinator: DetectionCoordinator,
        poll_seconds: float = 1.0,
    ):
        self.queue = queue
        self.coordinator = coordinator
        self.poll_seconds = poll_seconds
        self._stopping = False
    
    async def run_once(self) -> bool:
        """Process one message. Returns False when the queue was empty."""
        message = await self.queue.dequeue(Queues.DETECT_TRANSLATION)
        if message is None:
            return False
        
        message_id = message["_message_id"]
        try:
            post_id = message.get("post_id")
            if post_id is None:
                logger.warning(f"Dropping detection job {message_id} without post_id")
            else:
                await self.coordinator.request_detection(str(post_id))
        except Exception:
            logger.exception(f"Detection job {message_id} failed")
        finally:
            await self.queue.ack(Queues.DETECT_TRANSLATION, message_id)
        return True
    
    async def drain(self) -> int:
        """Process messages until the queue is empty; returns how many ran."""
        processed = 0
        while await self.run_once():
            processed += 1
        return processed
    
    async def recover(self) -> int:
        """Return jobs a crashed worker dequeued but never acked."""
        return await self.queue.requeue_unacked(Queues.DETECT_TRANSLATION)
    
    async def run_forever(self) -> None:
        await self.recover()
        logger.info("Detection worker started")
        while not self._stopping:
            if not await self.run_once():
                await asyncio.sleep(self.poll_seconds)
        logger.info("Detection worker stopped")
    
    def stop(self) -> None:
        self._stopping = True
