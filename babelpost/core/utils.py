"""
Shared utility functions.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone


def generate_id(prefix: str = "") -> str:
    """
    Generate a unique ID with optional prefix.
    
    Args:
        prefix: Optional prefix (e.g., "post", "lock")
        
    Returns:
        A unique ID like "post_a1b2c3d4e5f6"
    """
    uid = str(uuid.uuid4())[:12]
    return f"{prefix}_{uid}" if prefix else uid


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def split_list_setting(value: str) -> list[str]:
    """Split a comma separated site setting into trimmed, non-empty parts."""
    return [part.strip() for part in value.split(",") if part.strip()]


def normalize_locale(value: str | None, default: str = "en") -> str:
    """
    Normalize a locale tag to the platform form.
    
    "pt-br" -> "pt_BR", "zh-cn" -> "zh_CN", "EN" -> "en".
    """
    if not value:
        return default
    
    value = value.strip().replace("-", "_")
    if not value:
        return default
    
    parts = value.split("_")
    language = parts[0].lower()
    if len(parts) == 1:
        return language
    return f"{language}_{parts[1].upper()}"
