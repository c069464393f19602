"""
Shared fixtures.

`FakeProvider` stands in for a real translation service: it records every
call, can be made to fail, and can be held at a gate to keep a detection
in flight.
"""

import asyncio

import fakeredis
import pytest

from babelpost.config import Settings
from babelpost.core.events import EventBus
from babelpost.core.models import Post, Viewer
from babelpost.providers.base import Provider, build_vocabulary
from babelpost.providers.registry import ProviderRegistry
from babelpost.services.posts import cook
from babelpost.site_settings import TranslatorConfig
from babelpost.storage.local import create_local_storage
from babelpost.storage.redis_store import redis_storage_from_client
from babelpost.wiring import build_components


# =============================================================================
# Fake provider
# =============================================================================


@pytest.fixture
def fake_provider_cls():
    """A fresh FakeProvider class per test, so call logs never leak."""
    
    class FakeProvider(Provider):
        name = "Fake"
        SUPPORTED_LANG = build_vocabulary()
        
        detect_result = "fr"
        detect_calls: list[str] = []
        translate_calls: list[tuple[str, str, str]] = []
        gate: asyncio.Event | None = None
        error: Exception | None = None
        delay: float = 0.0
        
        async def _detect(self, text: str) -> str:
            cls = type(self)
            cls.detect_calls.append(text)
            if cls.gate is not None:
                await cls.gate.wait()
            if cls.delay:
                await asyncio.sleep(cls.delay)
            if cls.error is not None:
                raise cls.error
            return cls.detect_result
        
        async def _translate(self, text: str, source: str, target: str) -> str:
            cls = type(self)
            cls.translate_calls.append((text, source, target))
            if cls.error is not None:
                raise cls.error
            return f"[{source}->{target}] {text}"
    
    return FakeProvider


@pytest.fixture
def registry(fake_provider_cls):
    registry = ProviderRegistry()
    registry.register("Fake", fake_provider_cls)
    return registry


# =============================================================================
# Settings
# =============================================================================


@pytest.fixture
def settings():
    """Translator on, fake provider, guests off, 3 translations a minute."""
    return Settings(
        _env_file=None,
        environment="test",
        translator_enabled=True,
        translator="Fake",
        translator_enabled_for_guests=False,
        max_translations_per_minute=3,
        translator_max_post_length=0,
        provider_timeout_seconds=2.0,
    )


@pytest.fixture
def config(settings):
    return TranslatorConfig.from_settings(settings)


# =============================================================================
# Storage
# =============================================================================


def fake_redis_storage(server: fakeredis.FakeServer):
    """A new client on `server`, as another process would open one."""
    client = fakeredis.FakeAsyncRedis(server=server, decode_responses=True)
    return redis_storage_from_client(client)


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest.fixture
def connect_redis(redis_server):
    """Open another client on the shared fake Redis server."""
    return lambda: fake_redis_storage(redis_server)


@pytest.fixture(params=["memory", "redis"])
def storage_backend(request):
    return request.param


@pytest.fixture
def storage(storage_backend, redis_server):
    if storage_backend == "redis":
        return fake_redis_storage(redis_server)
    return create_local_storage()


@pytest.fixture
def other_process_storage(storage_backend, redis_server, storage):
    """The same store seen from a second process."""
    if storage_backend == "redis":
        return fake_redis_storage(redis_server)
    return storage


# =============================================================================
# Components
# =============================================================================


@pytest.fixture
def components(settings, registry, storage):
    return build_components(
        settings=settings,
        storage=storage,
        registry=registry,
        event_bus=EventBus(),
    )


@pytest.fixture
def other_process(settings, registry, other_process_storage):
    """A second process, such as a job worker: same store, its own event bus."""
    return build_components(
        settings=settings,
        storage=other_process_storage,
        registry=registry,
        event_bus=EventBus(),
    )


@pytest.fixture
def make_post(components):
    """Store a post directly, without firing lifecycle events."""
    
    async def _make_post(raw: str = "Bonjour tout le monde", **fields) -> Post:
        post = Post(raw=raw, cooked=fields.pop("cooked", cook(raw)), **fields)
        await components.posts.save(post)
        return post
    
    return _make_post


@pytest.fixture
def member():
    return Viewer(user_id="user_1", locale="en")


@pytest.fixture
def staff():
    return Viewer(user_id="staff_1", is_staff=True, locale="en")


@pytest.fixture
def guest():
    return Viewer.guest(locale="en")
