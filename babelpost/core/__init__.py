"""
Core module - data models and infrastructure.

- models: Post, Viewer, TranslationState, CanTranslate
- errors: the error taxonomy
- events: event bus for post lifecycle hooks
- locks: lease-based distributed mutex
- rate_limiter: per-user action limits
"""

from babelpost.core.models import (
    CanTranslate,
    Post,
    TranslationResult,
    TranslationState,
    Viewer,
)

from babelpost.core.errors import (
    TranslatorError,
    FeatureDisabled,
    AuthenticationRequired,
    RateLimited,
    NotFound,
    Forbidden,
    ContentTooLong,
    UnknownProvider,
    ProviderError,
    ProviderUnavailable,
    ProviderQuotaExceeded,
    ProviderBadResponse,
    UnsupportedLanguage,
)

from babelpost.core.events import (
    Event,
    EventBus,
    get_event_bus,
    reset_event_bus,
)

from babelpost.core.utils import (
    generate_id,
    utc_now,
)

__all__ = [
    # Models
    "CanTranslate",
    "Post",
    "TranslationResult",
    "TranslationState",
    "Viewer",
    # Errors
    "TranslatorError",
    "FeatureDisabled",
    "AuthenticationRequired",
    "RateLimited",
    "NotFound",
    "Forbidden",
    "ContentTooLong",
    "UnknownProvider",
    "ProviderError",
    "ProviderUnavailable",
    "ProviderQuotaExceeded",
    "ProviderBadResponse",
    "UnsupportedLanguage",
    # Events
    "Event",
    "EventBus",
    "get_event_bus",
    "reset_event_bus",
    # Utils
    "generate_id",
    "utc_now",
]
