"""
Per-post translation state.

One document per post in the `post_translations` collection holding the
detected language and translations keyed by target locale. Each document
records the post version it was computed for; a document for an older
version is treated as absent, so a detection that finishes after an edit
can never resurface for the new body.
"""

from __future__ import annotations

import logging

from babelpost.core.models import TranslationState
from babelpost.core.utils import utc_now
from babelpost.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)


class TranslationStateStore:
    
    def __init__(self, metadata: MetadataStorage):
        self.metadata = metadata
    
    async def get(self, post_id: str, version: int | None = None) -> TranslationState | None:
        data = await self.metadata.get(Collections.POST_TRANSLATIONS, post_id)
        if data is None:
            return None
        if version is not None and data.get("post_version") != version:
            return None
        return TranslationState.model_validate(data)
    
    async def _write(self, state: TranslationState, version: int | None) -> None:
        state.updated_at = utc_now()
        await self.metadata.save(
            Collections.POST_TRANSLATIONS,
            state.post_id,
            {**state.model_dump(mode="json"), "post_version": version},
        )
    
    async def set_detected_language(
        self,
        post_id: str,
        language: str,
        version: int | None = None,
    ) -> TranslationState:
        state = await self.get(post_id, version) or TranslationState(post_id=post_id)
        if state.detected_language and state.detected_language != language:
            # A corrected detection invalidates translations made from the old one
            state.translations = {}
        state.detected_language = language
        await self._write(state, version)
        return state
    
    async def store_translation(
        self,
        post_id: str,
        locale: str,
        text: str,
        detected_language: str,
        version: int | None = None,
    ) -> TranslationState:
        state = await self.get(post_id, version) or TranslationState(post_id=post_id)
        state.detected_language = detected_language
        state.translations[locale] = text
        await self._write(state, version)
        return state
    
    async def clear(self, post_id: str) -> bool:
        """Forget detection and every translation for one post."""
        cleared = await self.metadata.delete(Collections.POST_TRANSLATIONS, post_id)
        if cleared:
            logger.debug(f"Cleared translation state for post {post_id}")
        return cleared
    
    async def clear_all(self) -> int:
        """Forget everything, e.g. after the feature is switched off."""
        removed = await self.metadata.clear(Collections.POST_TRANSLATIONS)
        logger.info(f"Cleared translation state for {removed} posts")
        return removed
