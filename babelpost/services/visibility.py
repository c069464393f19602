"""
Translate-button visibility.

Decides, per post and viewer, whether to offer a translation. Evaluated
on every post render, so it never calls a provider: if the language is
not known yet it queues a detection and hides the button for now.
"""

from __future__ import annotations

import logging

from babelpost.core.errors import UnknownProvider
from babelpost.core.models import CanTranslate, Post, TranslationState, Viewer
from babelpost.providers.registry import ProviderRegistry, get_provider
from babelpost.services.jobs import DetectionJobs
from babelpost.services.state import TranslationStateStore
from babelpost.site_settings import TranslatorConfig

logger = logging.getLogger(__name__)


class VisibilityPolicy:
    
    def __init__(
        self,
        state_store: TranslationStateStore,
        jobs: DetectionJobs,
        registry: ProviderRegistry | None = None,
    ):
        self.state_store = state_store
        self.jobs = jobs
        self.registry = registry
    
    async def evaluate(
        self,
        post: Post,
        viewer: Viewer,
        config: TranslatorConfig,
        state: TranslationState | None = None,
    ) -> CanTranslate:
        """First matching rule wins."""
        if not config.translator_enabled:
            return CanTranslate.HIDDEN
        
        # Hand-made translations already cover these locales
        if post.manually_translated and self._locale_covered(viewer.locale, config):
            return CanTranslate.HIDDEN
        
        if post.category_id is not None and post.category_id in config.skip_category_ids:
            return CanTranslate.HIDDEN
        
        if config.exceeds_max_length(post.cooked):
            return CanTranslate.HIDDEN
        
        if not viewer.is_authenticated and not config.translator_enabled_for_guests:
            return CanTranslate.SHOW_BUTTON_PROMPT_LOGIN
        
        if state is None:
            state = await self.state_store.get(post.id, version=post.version)
        
        if state is None or not state.is_detected:
            await self.jobs.enqueue(post.id)
            return CanTranslate.HIDDEN
        
        try:
            provider = get_provider(config, self.registry)
        except UnknownProvider as e:
            logger.warning(f"Cannot evaluate translation for post {post.id}: {e}")
            return CanTranslate.HIDDEN
        
        target = provider.language_for_locale(viewer.locale)
        if target is None or state.detected_language == target:
            return CanTranslate.HIDDEN
        return CanTranslate.SHOW_BUTTON
    
    @staticmethod
    def _locale_covered(locale: str, config: TranslatorConfig) -> bool:
        covered = config.manual_translation_locales
        return locale in covered or locale.split("_")[0] in covered
