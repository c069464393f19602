"""
Core data models.

Posts are owned by the host platform; this package only reads them and
keeps its own translation state alongside.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from babelpost.core.utils import generate_id, utc_now


# =============================================================================
# Enums
# =============================================================================


class CanTranslate(str, Enum):
    """Outcome of the translate-button visibility decision."""
    
    HIDDEN = "hidden"
    SHOW_BUTTON = "show_button"
    SHOW_BUTTON_PROMPT_LOGIN = "show_button_prompt_login"  # Guest must sign in on click


# =============================================================================
# Post
# =============================================================================


class Post(BaseModel):
    """
    A post on the host platform.
    
    `raw` is what the author typed, `cooked` is the rendered HTML that is
    sent to translation providers and measured against length limits.
    """
    
    id: str = Field(default_factory=lambda: generate_id("post"))
    raw: str
    cooked: str = ""
    category_id: int | None = None
    
    # Bumped on every body edit
    version: int = 1
    
    # Set when another subsystem already ships hand-made translations
    manually_translated: bool = False
    
    # Visibility
    hidden: bool = False
    visible_to_user_ids: list[str] | None = None  # None = public
    
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    
    def is_visible_to(self, user_id: str | None, is_staff: bool = False) -> bool:
        """Whether a viewer may see this post."""
        if is_staff:
            return True
        if self.hidden:
            return False
        if self.visible_to_user_ids is None:
            return True
        return user_id is not None and user_id in self.visible_to_user_ids


# =============================================================================
# Viewer
# =============================================================================


class Viewer(BaseModel):
    """The person looking at a post (or asking for its translation)."""
    
    user_id: str | None = None
    is_staff: bool = False
    locale: str = "en"
    
    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None
    
    @classmethod
    def guest(cls, locale: str = "en") -> Viewer:
        return cls(locale=locale)


# =============================================================================
# Translation state
# =============================================================================


class TranslationState(BaseModel):
    """
    Cached detection/translation results for one post.
    
    Translations are keyed by the locale they were produced for, so
    viewers with different locales never share an entry.
    """
    
    post_id: str
    detected_language: str | None = None
    translations: dict[str, str] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=utc_now)
    
    @property
    def is_detected(self) -> bool:
        return bool(self.detected_language)
    
    def translation_for(self, locale: str) -> str | None:
        return self.translations.get(locale)


class TranslationResult(BaseModel):
    """What the translate endpoint returns."""
    
    detected_lang: str
    translation: str
