"""
Tests for the lease-based mutex.
"""

import time

import pytest

from babelpost.core.locks import DistributedMutex
from babelpost.storage.local import InMemoryCacheStorage


@pytest.fixture
def cache(storage):
    return storage.cache


class TestDistributedMutex:
    async def test_second_holder_is_refused(self, cache):
        first = DistributedMutex(cache, "detect_translation_1")
        second = DistributedMutex(cache, "detect_translation_1")
        
        assert await first.try_acquire()
        assert not await second.try_acquire()
        assert first.is_held
        assert not second.is_held

    async def test_release_frees_the_name(self, cache):
        first = DistributedMutex(cache, "detect_translation_1")
        await first.try_acquire()
        await first.release()
        
        assert await DistributedMutex(cache, "detect_translation_1").try_acquire()

    async def test_names_are_independent(self, cache):
        assert await DistributedMutex(cache, "detect_translation_1").try_acquire()
        assert await DistributedMutex(cache, "detect_translation_2").try_acquire()

    async def test_hold_releases_on_error(self, cache):
        mutex = DistributedMutex(cache, "detect_translation_1")
        
        with pytest.raises(RuntimeError):
            async with mutex.hold() as acquired:
                assert acquired
                raise RuntimeError("boom")
        
        assert await cache.get(mutex.key) is None

    async def test_hold_yields_false_when_taken(self, cache):
        holder = DistributedMutex(cache, "detect_translation_1")
        await holder.try_acquire()
        
        async with DistributedMutex(cache, "detect_translation_1").hold() as acquired:
            assert not acquired
        
        # The refused caller must not free someone else's lease
        assert await cache.get(holder.key) is not None

    async def test_expired_lease_can_be_taken(self, monkeypatch):
        cache = InMemoryCacheStorage()
        first = DistributedMutex(cache, "detect_translation_1", ttl=5)
        await first.try_acquire()
        
        real_monotonic = time.monotonic
        monkeypatch.setattr(time, "monotonic", lambda: real_monotonic() + 10)
        
        second = DistributedMutex(cache, "detect_translation_1", ttl=5)
        assert await second.try_acquire()
        
        # The stale holder cannot delete the new lease
        await first.release()
        assert await cache.get(second.key) is not None

    def test_ttl_must_be_positive(self, cache):
        with pytest.raises(ValueError):
            DistributedMutex(cache, "x", ttl=0)

    async def test_token_round_trip(self, cache):
        # The stored token must compare equal after a trip through the backend
        mutex = DistributedMutex(cache, "detect_translation_1")
        await mutex.try_acquire()
        await mutex.release()
        
        assert await cache.get(mutex.key) is None
        assert not mutex.is_held
