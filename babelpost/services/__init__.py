"""
Services: the translation core.

- DetectionCoordinator: one detection per post at a time, across workers
- TranslationRequestHandler: the synchronous translate action
- VisibilityPolicy: whether to offer the translate button
"""

from babelpost.services.base import Service
from babelpost.services.detection import DetectionCoordinator
from babelpost.services.jobs import DetectionJobs, DetectionWorker
from babelpost.services.lifecycle import ClearOnEditService, DetectOnProcessService
from babelpost.services.notifications import RevisionPublisher, revision_events
from babelpost.services.posts import PostStore, cook
from babelpost.services.state import TranslationStateStore
from babelpost.services.translation import TranslationRequestHandler
from babelpost.services.visibility import VisibilityPolicy

__all__ = [
    "Service",
    "DetectionCoordinator",
    "DetectionJobs",
    "DetectionWorker",
    "ClearOnEditService",
    "DetectOnProcessService",
    "RevisionPublisher",
    "revision_events",
    "PostStore",
    "cook",
    "TranslationStateStore",
    "TranslationRequestHandler",
    "VisibilityPolicy",
]
