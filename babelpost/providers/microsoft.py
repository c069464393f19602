"""
Microsoft Azure Translator (v3).
"""

from __future__ import annotations

from typing import ClassVar

import httpx

from babelpost.core.errors import ProviderBadResponse, ProviderError, ProviderQuotaExceeded
from babelpost.providers.base import HttpProvider, build_vocabulary


class MicrosoftProvider(HttpProvider):
    
    name = "Microsoft"
    
    BASE_URL: ClassVar[str] = "https://api.cognitive.microsofttranslator.com"
    API_VERSION: ClassVar[str] = "3.0"
    
    # Translator rejects request bodies above this many characters
    LENGTH_LIMIT: ClassVar[int] = 10_000
    DETECTION_CHAR_LIMIT = 10_000
    
    SUPPORTED_LANG = build_vocabulary(
        bs_BA="bs",
        nb_NO="nb",
        sr="sr-Cyrl",
        zh_CN="zh-Hans",
        zh_TW="zh-Hant",
    )
    
    # Azure error codes that mean "out of characters for now"
    QUOTA_CODES: ClassVar[set[int]] = {403001, 429000, 429001, 429002}
    
    def _headers(self) -> dict[str, str]:
        key = self._require(
            self.config.translator_azure_subscription_key,
            "translator_azure_subscription_key",
        )
        headers = {
            "Ocp-Apim-Subscription-Key": key,
            "Content-Type": "application/json",
        }
        if self.config.translator_azure_region:
            headers["Ocp-Apim-Subscription-Region"] = self.config.translator_azure_region
        return headers
    
    async def _detect(self, text: str) -> str:
        body = await self._request(
            "POST",
            f"{self.BASE_URL}/detect",
            params={"api-version": self.API_VERSION},
            headers=self._headers(),
            json=[{"Text": text}],
        )
        try:
            return body[0]["language"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderBadResponse(f"Unexpected detect payload: {body!r}"[:300], provider=self.name) from e
    
    async def _translate(self, text: str, source: str, target: str) -> str:
        body = await self._request(
            "POST",
            f"{self.BASE_URL}/translate",
            params={
                "api-version": self.API_VERSION,
                "from": source,
                "to": target,
                "textType": "html",
            },
            headers=self._headers(),
            json=[{"Text": text[:self.LENGTH_LIMIT]}],
        )
        try:
            return body[0]["translations"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderBadResponse(f"Unexpected translate payload: {body!r}"[:300], provider=self.name) from e
    
    def _error_for_response(self, response: httpx.Response) -> ProviderError:
        try:
            code = int(response.json()["error"]["code"])
        except (ValueError, KeyError, TypeError):
            code = None
        if code in self.QUOTA_CODES:
            return ProviderQuotaExceeded(self._error_message(response), provider=self.name)
        return super()._error_for_response(response)
