"""
Component wiring shared by the API process and the job worker.
"""

from __future__ import annotations

from dataclasses import dataclass

from babelpost.config import Settings, get_settings
from babelpost.core.events import EventBus, get_event_bus
from babelpost.providers.registry import ProviderRegistry, get_provider_registry
from babelpost.services.detection import DetectionCoordinator
from babelpost.services.jobs import DetectionJobs, DetectionWorker
from babelpost.services.lifecycle import ClearOnEditService, DetectOnProcessService
from babelpost.services.notifications import RevisionPublisher
from babelpost.services.posts import PostStore
from babelpost.services.state import TranslationStateStore
from babelpost.services.translation import TranslationRequestHandler
from babelpost.services.visibility import VisibilityPolicy
from babelpost.site_settings import SiteSettingsStore
from babelpost.storage import StorageProvider, create_storage


@dataclass
class Components:
    """Everything a process needs, built once at startup."""
    
    settings: Settings
    storage: StorageProvider
    event_bus: EventBus
    registry: ProviderRegistry
    settings_store: SiteSettingsStore
    posts: PostStore
    state_store: TranslationStateStore
    jobs: DetectionJobs
    coordinator: DetectionCoordinator
    translation_handler: TranslationRequestHandler
    visibility: VisibilityPolicy
    
    def worker(self) -> DetectionWorker:
        return DetectionWorker(
            self.storage.queue,
            self.coordinator,
            poll_seconds=self.settings.worker_poll_seconds,
        )


def build_components(
    settings: Settings | None = None,
    storage: StorageProvider | None = None,
    registry: ProviderRegistry | None = None,
    event_bus: EventBus | None = None,
) -> Components:
    settings = settings or get_settings()
    storage = storage or create_storage(settings)
    registry = registry or get_provider_registry()
    event_bus = event_bus or get_event_bus()
    
    settings_store = SiteSettingsStore(storage.metadata, settings)
    posts = PostStore(storage.metadata, event_bus)
    state_store = TranslationStateStore(storage.metadata)
    jobs = DetectionJobs(storage.queue, storage.cache)
    
    coordinator = DetectionCoordinator(
        storage.cache, settings_store, posts, state_store, event_bus, registry
    )
    translation_handler = TranslationRequestHandler(
        storage.cache, settings_store, posts, state_store, registry
    )
    visibility = VisibilityPolicy(state_store, jobs, registry)
    
    ClearOnEditService(settings_store, state_store).wire(event_bus)
    DetectOnProcessService(settings_store, jobs).wire(event_bus)
    RevisionPublisher(storage.channels).wire(event_bus)
    
    return Components(
        settings=settings,
        storage=storage,
        event_bus=event_bus,
        registry=registry,
        settings_store=settings_store,
        posts=posts,
        state_store=state_store,
        jobs=jobs,
        coordinator=coordinator,
        translation_handler=translation_handler,
        visibility=visibility,
    )
