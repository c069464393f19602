"""
Post lifecycle listeners.

- post.edited with a changed body -> drop cached detection/translations
- post.processed -> enqueue a detection job
"""

from __future__ import annotations

import logging

from babelpost.core.events import POST_EDITED, POST_PROCESSED, Event
from babelpost.services.base import Service
from babelpost.services.jobs import DetectionJobs
from babelpost.services.state import TranslationStateStore
from babelpost.site_settings import SiteSettingsStore

logger = logging.getLogger(__name__)


class ClearOnEditService(Service):
    """Editing a post's body invalidates everything cached for it."""
    
    service_id = "clear_translation_on_edit"
    subscribes_to = [POST_EDITED]
    
    def __init__(self, settings_store: SiteSettingsStore, state_store: TranslationStateStore):
        self.settings_store = settings_store
        self.state_store = state_store
    
    async def handle(self, event: Event) -> list[Event]:
        if not event.payload.get("raw_changed"):
            return []
        
        config = await self.settings_store.snapshot()
        if not config.translator_enabled:
            return []
        
        await self.state_store.clear(event.post_id)
        return []


class DetectOnProcessService(Service):
    """Queue detection whenever a post body has been (re)cooked."""
    
    service_id = "detect_on_process"
    subscribes_to = [POST_PROCESSED]
    
    def __init__(self, settings_store: SiteSettingsStore, jobs: DetectionJobs):
        self.settings_store = settings_store
        self.jobs = jobs
    
    async def handle(self, event: Event) -> list[Event]:
        config = await self.settings_store.snapshot()
        if not config.translator_enabled:
            return []
        
        await self.jobs.enqueue(event.post_id, force=True)
        return []
