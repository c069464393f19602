"""
Site settings seed loader.

Reads a YAML file of translator settings and writes it to the shared
settings store, so a fresh deployment starts with known values.

Example file:

    translator_enabled: true
    translator: Google
    translator_google_api_key: "..."
    translator_skip_category_ids: "4,7"
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from babelpost.site_settings import EDITABLE_SETTINGS, SiteSettingsStore, TranslatorConfig

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when a settings file cannot be used."""
    pass


def read_site_settings(path: Path | str) -> dict[str, Any]:
    """Parse and validate a settings file without touching the store."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Settings file not found: {path}")
    
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of setting names to values")
    
    # Accept an optional top-level "translator_settings:" section
    if set(data) == {"translator_settings"}:
        data = data["translator_settings"] or {}
    
    unknown = set(data) - EDITABLE_SETTINGS
    if unknown:
        raise ConfigError(f"Unknown settings in {path}: {sorted(unknown)}")
    
    return data


async def load_site_settings(path: Path | str, store: SiteSettingsStore) -> TranslatorConfig:
    """Seed the store from a YAML file, returning the resulting snapshot."""
    values = read_site_settings(path)
    if not values:
        return await store.snapshot()
    
    config = await store.update(**values)
    logger.info(f"Loaded {len(values)} translator settings from {path}")
    return config
