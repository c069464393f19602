"""
Translation providers.

    from babelpost.providers import get_provider

    provider = get_provider(config)          # picks config.translator
    language = await provider.detect(text)   # -> "fr"
    detected, text = await provider.translate(text, "en")
"""

from babelpost.providers.base import Provider, HttpProvider, PLATFORM_LOCALES
from babelpost.providers.google import GoogleProvider
from babelpost.providers.microsoft import MicrosoftProvider
from babelpost.providers.amazon import AmazonProvider
from babelpost.providers.yandex import YandexProvider
from babelpost.providers.registry import (
    ProviderName,
    ProviderRegistry,
    get_provider,
    get_provider_registry,
    reset_provider_registry,
)

__all__ = [
    "Provider",
    "HttpProvider",
    "PLATFORM_LOCALES",
    "GoogleProvider",
    "MicrosoftProvider",
    "AmazonProvider",
    "YandexProvider",
    "ProviderName",
    "ProviderRegistry",
    "get_provider",
    "get_provider_registry",
    "reset_provider_registry",
]
