"""
Translator site settings.

Admins change these at runtime, so they live in the shared metadata store
rather than in process memory. Code never reads them ad hoc: a request or
job takes one `TranslatorConfig` snapshot up front and passes it along.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict

from babelpost.config import Settings, get_settings
from babelpost.core.utils import split_list_setting
from babelpost.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)

_SETTINGS_DOC_ID = "translator"


class TranslatorConfig(BaseModel):
    """Immutable snapshot of every translator setting."""
    
    model_config = ConfigDict(frozen=True)
    
    translator_enabled: bool = False
    translator: str = "Microsoft"
    translator_enabled_for_guests: bool = False
    max_translations_per_minute: int = 3
    translator_max_post_length: int = 0
    translator_skip_category_ids: str = ""
    translator_manual_translation_locales: str = "en,ru"
    
    # Provider credentials
    translator_google_api_key: str = ""
    translator_azure_subscription_key: str = ""
    translator_azure_region: str = ""
    translator_aws_region: str = "us-east-1"
    translator_aws_key_id: str = ""
    translator_aws_secret_access: str = ""
    translator_yandex_api_key: str = ""
    
    # Operational limits, taken from process settings
    provider_timeout_seconds: float = 10.0
    detection_lock_ttl_seconds: int = 60
    
    @property
    def skip_category_ids(self) -> set[int]:
        ids = set()
        for part in split_list_setting(self.translator_skip_category_ids):
            try:
                ids.add(int(part))
            except ValueError:
                logger.warning(f"Ignoring non-numeric skip category id {part!r}")
        return ids
    
    @property
    def manual_translation_locales(self) -> set[str]:
        return set(split_list_setting(self.translator_manual_translation_locales))
    
    def exceeds_max_length(self, text: str) -> bool:
        """0 means unlimited."""
        limit = self.translator_max_post_length
        return limit > 0 and len(text) > limit
    
    @classmethod
    def from_settings(cls, settings: Settings, **overrides: Any) -> TranslatorConfig:
        values = {
            name: getattr(settings, name)
            for name in cls.model_fields
            if hasattr(settings, name)
        }
        values.update(overrides)
        return cls(**values)


# Only these keys may be written to the store
EDITABLE_SETTINGS = frozenset(
    name for name in TranslatorConfig.model_fields
    if name.startswith("translator") or name == "max_translations_per_minute"
)


class SiteSettingsStore:
    """Reads and writes translator settings in the shared store."""
    
    def __init__(self, metadata: MetadataStorage, settings: Settings | None = None):
        self.metadata = metadata
        self.settings = settings or get_settings()
    
    async def snapshot(self) -> TranslatorConfig:
        """Capture the current settings; defaults fill anything unset."""
        stored = await self.metadata.get(Collections.SITE_SETTINGS, _SETTINGS_DOC_ID) or {}
        overrides = {k: v for k, v in stored.items() if k in EDITABLE_SETTINGS}
        return TranslatorConfig.from_settings(self.settings, **overrides)
    
    async def update(self, **values: Any) -> TranslatorConfig:
        """Change one or more settings and return the new snapshot."""
        unknown = set(values) - EDITABLE_SETTINGS
        if unknown:
            raise ValueError(f"Unknown translator settings: {sorted(unknown)}")
        
        stored = await self.metadata.get(Collections.SITE_SETTINGS, _SETTINGS_DOC_ID) or {}
        stored = {k: v for k, v in stored.items() if k in EDITABLE_SETTINGS}
        stored.update(values)
        
        # Validate before persisting
        config = TranslatorConfig.from_settings(self.settings, **stored)
        await self.metadata.save(Collections.SITE_SETTINGS, _SETTINGS_DOC_ID, stored)
        logger.info(f"Translator settings updated: {sorted(values)}")
        return config
