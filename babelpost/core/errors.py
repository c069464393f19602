"""
Error taxonomy.

Every error carries the HTTP status the API layer responds with and a
message that is safe to show to end users.
"""

from __future__ import annotations


class TranslatorError(Exception):
    """Base class for all translator errors."""
    
    status_code: int = 422
    default_message: str = "Translation failed"
    
    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)
    
    @property
    def error_type(self) -> str:
        name = self.__class__.__name__
        return "".join(
            f"_{c.lower()}" if c.isupper() and i else c.lower()
            for i, c in enumerate(name)
        )


# =============================================================================
# Request preconditions
# =============================================================================


class FeatureDisabled(TranslatorError):
    status_code = 404
    default_message = "Translation is not enabled"


class AuthenticationRequired(TranslatorError):
    status_code = 403
    default_message = "You need to be logged in to translate posts"


class RateLimited(TranslatorError):
    status_code = 429
    default_message = "You've performed this action too many times, please wait before trying again"
    
    def __init__(self, retry_after: int = 60, message: str | None = None):
        self.retry_after = retry_after
        super().__init__(message)


class NotFound(TranslatorError):
    status_code = 404
    default_message = "The requested post could not be found"


class Forbidden(TranslatorError):
    status_code = 403
    default_message = "You are not permitted to view the requested post"


class ContentTooLong(TranslatorError):
    status_code = 422
    default_message = "Post is too long for translation"


# =============================================================================
# Providers
# =============================================================================


class UnknownProvider(TranslatorError):
    status_code = 422
    
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown translation provider: {name!r}")


class ProviderError(TranslatorError):
    """
    A provider call failed.
    
    `detail` holds the provider's own message for logs; `message` is the
    generic text surfaced to users.
    """
    
    status_code = 422
    default_message = "The translation service could not process this post"
    
    def __init__(self, detail: str = "", provider: str | None = None, message: str | None = None):
        self.detail = detail
        self.provider = provider
        super().__init__(message)
    
    def __str__(self) -> str:
        prefix = f"{self.provider}: " if self.provider else ""
        return f"{prefix}{self.detail or self.message}"


class ProviderUnavailable(ProviderError):
    default_message = "The translation service is currently unavailable"


class ProviderQuotaExceeded(ProviderError):
    default_message = "The translation service quota has been exceeded, please try again later"


class ProviderBadResponse(ProviderError):
    default_message = "The translation service returned an unexpected response"


class UnsupportedLanguage(ProviderError):
    
    def __init__(self, language: str, provider: str | None = None):
        self.language = language
        super().__init__(
            detail=f"{language} is not supported",
            provider=provider,
            message=f"Translating from {language} is not supported",
        )
