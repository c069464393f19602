"""
Amazon Translate via boto3.

Amazon has no standalone detect call in Translate; asking for a
translation with SourceLanguageCode="auto" reports the source language
it detected, which is what `detect` reads back.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, ClassVar

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from babelpost.core.errors import (
    ProviderBadResponse,
    ProviderError,
    ProviderQuotaExceeded,
    ProviderUnavailable,
)
from babelpost.providers.base import Provider, build_vocabulary
from babelpost.site_settings import TranslatorConfig

logger = logging.getLogger(__name__)


def truncate_bytes(text: str, max_bytes: int) -> str:
    """Cut `text` to at most `max_bytes` of UTF-8 without splitting a character."""
    encoded = text.encode("utf-8")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")


class AmazonProvider(Provider):
    
    name = "Amazon"
    
    # TranslateText request limit
    MAX_BYTES: ClassVar[int] = 5000
    DETECTION_CHAR_LIMIT = 5000
    
    # Target used only to make Translate report the detected source
    DETECTION_TARGET: ClassVar[str] = "en"
    
    SUPPORTED_LANG = build_vocabulary(
        nb_NO="no",
        zh_CN="zh",
        zh_TW="zh-TW",
    )
    
    QUOTA_ERRORS: ClassVar[set[str]] = {"ThrottlingException", "LimitExceededException"}
    UNAVAILABLE_ERRORS: ClassVar[set[str]] = {
        "ServiceUnavailableException",
        "InternalServerException",
        "UnrecognizedClientException",
        "AccessDeniedException",
        "InvalidSignatureException",
    }
    
    def __init__(self, config: TranslatorConfig, client: Any = None):
        super().__init__(config)
        self._client = client
    
    @property
    def client(self) -> Any:
        """Lazy-load the Translate client."""
        if self._client is None:
            kwargs: dict[str, Any] = {
                "region_name": self.config.translator_aws_region,
                "config": BotoConfig(
                    connect_timeout=self.config.provider_timeout_seconds,
                    read_timeout=self.config.provider_timeout_seconds,
                    retries={"max_attempts": 0},
                ),
            }
            # Fall back to the default credential chain (instance role etc.)
            if self.config.translator_aws_key_id and self.config.translator_aws_secret_access:
                kwargs["aws_access_key_id"] = self.config.translator_aws_key_id
                kwargs["aws_secret_access_key"] = self.config.translator_aws_secret_access
            self._client = boto3.client("translate", **kwargs)
        return self._client
    
    async def _translate_text(self, text: str, source: str, target: str) -> dict[str, Any]:
        try:
            return await asyncio.to_thread(
                self.client.translate_text,
                Text=truncate_bytes(text, self.MAX_BYTES),
                SourceLanguageCode=source,
                TargetLanguageCode=target,
            )
        except ClientError as e:
            raise self._error_for_client_error(e) from e
        except BotoCoreError as e:
            raise ProviderUnavailable(str(e), provider=self.name) from e
    
    def _error_for_client_error(self, error: ClientError) -> ProviderError:
        code = error.response.get("Error", {}).get("Code", "")
        message = error.response.get("Error", {}).get("Message", "") or str(error)
        logger.warning(f"Amazon Translate error {code}: {message}")
        if code in self.QUOTA_ERRORS:
            return ProviderQuotaExceeded(message, provider=self.name)
        if code in self.UNAVAILABLE_ERRORS:
            return ProviderUnavailable(message, provider=self.name)
        return ProviderBadResponse(message, provider=self.name)
    
    async def _detect(self, text: str) -> str:
        response = await self._translate_text(text, "auto", self.DETECTION_TARGET)
        language = response.get("SourceLanguageCode")
        if not language:
            raise ProviderBadResponse("Response carried no SourceLanguageCode", provider=self.name)
        return language
    
    async def _translate(self, text: str, source: str, target: str) -> str:
        response = await self._translate_text(text, source, target)
        try:
            return response["TranslatedText"]
        except KeyError as e:
            raise ProviderBadResponse("Response carried no TranslatedText", provider=self.name) from e
