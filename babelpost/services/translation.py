"""
Translate-on-click request path.

Preconditions are checked in a fixed order and each failure has its own
error type (and HTTP status). Provider failures are logged in full but
surface to users only as the generic message on ProviderError. Nothing
is retried: the user can click again.
"""

from __future__ import annotations

import logging

from babelpost.core.errors import (
    AuthenticationRequired,
    ContentTooLong,
    FeatureDisabled,
    Forbidden,
    NotFound,
    ProviderError,
)
from babelpost.core.models import TranslationResult, Viewer
from babelpost.core.rate_limiter import RateLimiter
from babelpost.providers.registry import ProviderRegistry, get_provider
from babelpost.services.posts import PostStore
from babelpost.services.state import TranslationStateStore
from babelpost.site_settings import SiteSettingsStore, TranslatorConfig
from babelpost.storage.base import CacheStorage

logger = logging.getLogger(__name__)

RATE_LIMIT_ACTION = "translate_post"
RATE_LIMIT_WINDOW_SECONDS = 60


class TranslationRequestHandler:
    
    def __init__(
        self,
        cache: CacheStorage,
        settings_store: SiteSettingsStore,
        posts: PostStore,
        state_store: TranslationStateStore,
        registry: ProviderRegistry | None = None,
    ):
        self.cache = cache
        self.settings_store = settings_store
        self.posts = posts
        self.state_store = state_store
        self.registry = registry
    
    def rate_limiter(self, user_id: str, config: TranslatorConfig) -> RateLimiter:
        return RateLimiter(
            self.cache,
            user_id,
            RATE_LIMIT_ACTION,
            max_per_window=config.max_translations_per_minute,
            window_seconds=RATE_LIMIT_WINDOW_SECONDS,
        )
    
    async def translate(
        self,
        post_id: str,
        viewer: Viewer,
        config: TranslatorConfig | None = None,
    ) -> TranslationResult:
        """
        Translate a post into the viewer's locale.
        
        Raises:
            FeatureDisabled, AuthenticationRequired, RateLimited, NotFound,
            Forbidden, ContentTooLong: precondition failures, in that order
            UnknownProvider: the configured provider name is not registered
            ProviderError: the provider call failed
        """
        config = config or await self.settings_store.snapshot()
        
        if not config.translator_enabled:
            raise FeatureDisabled()
        
        if not config.translator_enabled_for_guests and not viewer.is_authenticated:
            raise AuthenticationRequired()
        
        if viewer.is_authenticated and not viewer.is_staff:
            await self.rate_limiter(viewer.user_id, config).performed()
        
        post = await self.posts.get(post_id)
        if post is None:
            raise NotFound()
        if not post.is_visible_to(viewer.user_id, viewer.is_staff):
            raise Forbidden()
        
        if config.exceeds_max_length(post.cooked):
            raise ContentTooLong()
        
        provider = get_provider(config, self.registry)
        
        state = await self.state_store.get(post.id, version=post.version)
        if state and state.is_detected:
            cached = state.translation_for(viewer.locale)
            if cached is not None:
                return TranslationResult(detected_lang=state.detected_language, translation=cached)
        
        try:
            detected, translated = await provider.translate(
                post.cooked,
                viewer.locale,
                detected_language=state.detected_language if state else None,
            )
        except ProviderError as e:
            logger.warning(
                f"Translation of post {post.id} to {viewer.locale} failed "
                f"({e.__class__.__name__}): {e}"
            )
            raise
        
        await self.state_store.store_translation(
            post.id, viewer.locale, translated, detected, version=post.version
        )
        return TranslationResult(detected_lang=detected, translation=translated)
