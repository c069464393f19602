"""
Provider registry.

Maps the configured provider name to a Provider class. The lookup runs
every time a provider is needed, since admins may switch providers
while the system is running.
"""

from __future__ import annotations

from enum import Enum

from babelpost.core.errors import UnknownProvider
from babelpost.providers.amazon import AmazonProvider
from babelpost.providers.base import Provider
from babelpost.providers.google import GoogleProvider
from babelpost.providers.microsoft import MicrosoftProvider
from babelpost.providers.yandex import YandexProvider
from babelpost.site_settings import TranslatorConfig


class ProviderName(str, Enum):
    """Built-in providers, by the name used in the `translator` setting."""
    
    GOOGLE = "Google"
    MICROSOFT = "Microsoft"
    AMAZON = "Amazon"
    YANDEX = "Yandex"


BUILTIN_PROVIDERS: dict[ProviderName, type[Provider]] = {
    ProviderName.GOOGLE: GoogleProvider,
    ProviderName.MICROSOFT: MicrosoftProvider,
    ProviderName.AMAZON: AmazonProvider,
    ProviderName.YANDEX: YandexProvider,
}


class ProviderRegistry:
    """
    Name -> Provider class lookup.
    
    Names are matched case-insensitively. Extra providers can be
    registered next to the built-in ones.
    """
    
    def __init__(self, include_builtins: bool = True):
        self._providers: dict[str, type[Provider]] = {}
        if include_builtins:
            for name, provider_cls in BUILTIN_PROVIDERS.items():
                self.register(name.value, provider_cls)
    
    @staticmethod
    def _normalize(name: str) -> str:
        return name.strip().lower()
    
    def register(self, name: str, provider_cls: type[Provider]) -> None:
        """Register (or replace) a provider class under `name`."""
        self._providers[self._normalize(name)] = provider_cls
    
    def get_class(self, name: str) -> type[Provider]:
        provider_cls = self._providers.get(self._normalize(name or ""))
        if provider_cls is None:
            raise UnknownProvider(name)
        return provider_cls
    
    def create(self, config: TranslatorConfig) -> Provider:
        """Instantiate the provider currently selected in `config`."""
        return self.get_class(config.translator)(config)
    
    def list_providers(self) -> list[str]:
        return sorted(cls.name for cls in set(self._providers.values()))


# Singleton registry for the application
_default_registry: ProviderRegistry | None = None


def get_provider_registry() -> ProviderRegistry:
    """Get the default provider registry."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ProviderRegistry()
    return _default_registry


def reset_provider_registry() -> None:
    """Reset the default registry (useful for testing)."""
    global _default_registry
    _default_registry = None


def get_provider(config: TranslatorConfig, registry: ProviderRegistry | None = None) -> Provider:
    """Provider for the snapshot's `translator` setting; raises UnknownProvider."""
    return (registry or get_provider_registry()).create(config)
