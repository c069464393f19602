"""
Detection coordinator.

Runs language detection for one post at a time across every worker.
Mutual exclusion comes from a lease lock in the shared cache, so a
second request for the same post while one is running simply returns.

This is the background path: nothing raised by a provider ever reaches
a caller. Failures are logged and the next trigger tries again.
"""

from __future__ import annotations

import logging
import math

from babelpost.core.errors import TranslatorError
from babelpost.core.events import EventBus, post_revised
from babelpost.core.locks import DistributedMutex
from babelpost.integrations.sentry import capture_exception
from babelpost.providers.registry import ProviderRegistry, get_provider
from babelpost.services.posts import PostStore
from babelpost.services.state import TranslationStateStore
from babelpost.site_settings import SiteSettingsStore, TranslatorConfig
from babelpost.storage.base import CacheStorage

logger = logging.getLogger(__name__)


def detection_lock_name(post_id: str) -> str:
    return f"detect_translation_{post_id}"


class DetectionCoordinator:
    
    def __init__(
        self,
        cache: CacheStorage,
        settings_store: SiteSettingsStore,
        posts: PostStore,
        state_store: TranslationStateStore,
        event_bus: EventBus,
        registry: ProviderRegistry | None = None,
    ):
        self.cache = cache
        self.settings_store = settings_store
        self.posts = posts
        self.state_store = state_store
        self.event_bus = event_bus
        self.registry = registry
    
    @staticmethod
    def lock_ttl(config: TranslatorConfig) -> int:
        """The lease must outlive one bounded provider call."""
        return max(
            config.detection_lock_ttl_seconds,
            math.ceil(config.provider_timeout_seconds) + 5,
        )
    
    async def request_detection(self, post_id: str, config: TranslatorConfig | None = None) -> bool:
        """
        Detect and cache the language of one post.
        
        Returns True if this call stored a new detection. Returns False
        without doing anything when the feature is off, another worker is
        already detecting this post, the post is gone, or it is already
        detected. Provider failures also return False.
        """
        config = config or await self.settings_store.snapshot()
        if not config.translator_enabled:
            return False
        
        mutex = DistributedMutex(self.cache, detection_lock_name(post_id), ttl=self.lock_ttl(config))
        async with mutex.hold() as acquired:
            if not acquired:
                logger.debug(f"Detection already in flight for post {post_id}")
                return False
            language = await self._detect_and_store(post_id, config)
        
        if language is None:
            return False
        
        await self.event_bus.publish(post_revised(post_id, detected_language=language))
        return True
    
    async def _detect_and_store(self, post_id: str, config: TranslatorConfig) -> str | None:
        post = await self.posts.get(post_id)
        if post is None:
            logger.debug(f"Post {post_id} no longer exists, skipping detection")
            return None
        
        state = await self.state_store.get(post_id, version=post.version)
        if state and state.is_detected:
            return None
        
        try:
            provider = get_provider(config, self.registry)
            language = await provider.detect(post.cooked)
        except TranslatorError as e:
            logger.warning(f"Language detection failed for post {post_id}: {e}")
            return None
        except Exception as e:
            logger.exception(f"Unexpected error detecting language for post {post_id}")
            capture_exception(e, post_id=post_id, provider=config.translator)
            return None
        
        await self.state_store.set_detected_language(post_id, language, version=post.version)
        logger.info(f"Detected {language} for post {post_id} via {provider.name}")
        return language
