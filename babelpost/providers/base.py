"""
Translation provider interface.

Every provider exposes the same two calls, `detect` and `translate`, and
owns the mapping between platform locales (`en`, `pt_BR`, `zh_CN`, ...)
and its own language codes. Callers only ever see platform locales going
in and provider language codes coming back from detection.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, ClassVar, TypeVar

import httpx

from babelpost.core.errors import (
    ProviderBadResponse,
    ProviderError,
    ProviderQuotaExceeded,
    ProviderUnavailable,
    UnsupportedLanguage,
)
from babelpost.site_settings import TranslatorConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Platform locales offered by the host; providers map each to their own code
PLATFORM_LOCALES = (
    "ar", "bg", "bs_BA", "ca", "cs", "da", "de", "el", "en", "en_GB", "en_US",
    "es", "et", "fa_IR", "fi", "fr", "gl", "he", "hr", "hu", "hy", "id", "it",
    "ja", "ko", "lt", "lv", "nb_NO", "nl", "pl_PL", "pt", "pt_BR", "ro", "ru",
    "sk", "sl", "sq", "sr", "sv", "sw", "te", "th", "tr_TR", "uk", "ur", "vi",
    "zh_CN", "zh_TW",
)


def build_vocabulary(**overrides: str) -> dict[str, str]:
    """Map each platform locale to its bare language, then apply overrides."""
    vocabulary = {locale: locale.split("_")[0] for locale in PLATFORM_LOCALES}
    vocabulary.update(overrides)
    return vocabulary


class Provider(ABC):
    """
    Base class for all translation providers.
    
    Subclasses implement `_detect` and `_translate`; the public methods add
    the timeout and the language checks shared by every provider.
    """
    
    name: ClassVar[str]
    SUPPORTED_LANG: ClassVar[dict[str, str]]
    
    # Characters sent for detection; providers bill per character
    DETECTION_CHAR_LIMIT: ClassVar[int] = 5000
    
    def __init__(self, config: TranslatorConfig):
        self.config = config
    
    # =========================================================================
    # Vocabulary
    # =========================================================================
    
    def language_for_locale(self, locale: str) -> str | None:
        """Provider language code for a platform locale, if supported."""
        if locale in self.SUPPORTED_LANG:
            return self.SUPPORTED_LANG[locale]
        return self.SUPPORTED_LANG.get(locale.split("_")[0])
    
    def is_supported(self, language: str) -> bool:
        return language in self.SUPPORTED_LANG.values()
    
    def supported_locales(self) -> list[str]:
        return sorted(self.SUPPORTED_LANG)
    
    # =========================================================================
    # Public contract
    # =========================================================================
    
    async def detect(self, text: str) -> str:
        """Detect the language of `text`, returning a provider language code."""
        language = await self._bounded(self._detect(text[:self.DETECTION_CHAR_LIMIT]))
        if not language:
            raise ProviderBadResponse("Empty detection result", provider=self.name)
        return language
    
    async def translate(
        self,
        text: str,
        target_locale: str,
        detected_language: str | None = None,
    ) -> tuple[str, str]:
        """
        Translate `text` into the language of `target_locale`.
        
        Pass `detected_language` when it is already known to skip the
        detection call. Returns (detected_language, translated_text).
        """
        target = self.language_for_locale(target_locale)
        if target is None:
            raise UnsupportedLanguage(target_locale, provider=self.name)
        
        detected = detected_language or await self.detect(text)
        if not self.is_supported(detected):
            raise UnsupportedLanguage(detected, provider=self.name)
        
        translated = await self._bounded(self._translate(text, detected, target))
        return detected, translated
    
    # =========================================================================
    # Implementation hooks
    # =========================================================================
    
    @abstractmethod
    async def _detect(self, text: str) -> str:
        pass
    
    @abstractmethod
    async def _translate(self, text: str, source: str, target: str) -> str:
        pass
    
    # =========================================================================
    # Helpers
    # =========================================================================
    
    async def _bounded(self, call: Awaitable[T]) -> T:
        """Run a provider call under the configured timeout."""
        timeout = self.config.provider_timeout_seconds
        try:
            return await asyncio.wait_for(call, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ProviderUnavailable(f"Timed out after {timeout}s", provider=self.name) from e
    
    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name})>"


class HttpProvider(Provider):
    """
    Provider that talks JSON over HTTPS.
    
    An `httpx.AsyncClient` can be injected (tests use MockTransport);
    otherwise a short-lived client is opened per call.
    """
    
    def __init__(self, config: TranslatorConfig, http_client: httpx.AsyncClient | None = None):
        super().__init__(config)
        self._http_client = http_client
    
    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request and return decoded JSON, mapping failures to ProviderError."""
        try:
            if self._http_client is not None:
                response = await self._http_client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.config.provider_timeout_seconds) as client:
                    response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderUnavailable(f"Request timed out: {e}", provider=self.name) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"Request failed: {e}", provider=self.name) from e
        
        if response.status_code != 200:
            logger.warning(f"{self.name} returned {response.status_code}: {response.text[:500]}")
            raise self._error_for_response(response)
        
        try:
            return response.json()
        except ValueError as e:
            raise ProviderBadResponse(f"Invalid JSON: {response.text[:200]}", provider=self.name) from e
    
    def _error_message(self, response: httpx.Response) -> str:
        """Pull a human readable message out of an error body."""
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if body.get("message"):
                return str(body["message"])
        return f"HTTP {response.status_code}"
    
    def _error_for_response(self, response: httpx.Response) -> ProviderError:
        message = self._error_message(response)
        status = response.status_code
        if status == 429:
            return ProviderQuotaExceeded(message, provider=self.name)
        if status in (401, 403) or status >= 500:
            return ProviderUnavailable(message, provider=self.name)
        return ProviderBadResponse(message, provider=self.name)
    
    def _require(self, value: str, setting: str) -> str:
        """Fail fast when a credential is missing."""
        if not value:
            raise ProviderUnavailable(f"{setting} is not configured", provider=self.name)
        return value
