"""
Google Cloud Translation (REST v2, API key auth).
"""

from __future__ import annotations

from typing import Any, ClassVar

import httpx

from babelpost.core.errors import ProviderBadResponse, ProviderError, ProviderQuotaExceeded
from babelpost.providers.base import HttpProvider, build_vocabulary


class GoogleProvider(HttpProvider):
    
    name = "Google"
    
    BASE_URL: ClassVar[str] = "https://translation.googleapis.com/language/translate/v2"
    DETECTION_CHAR_LIMIT = 5000
    
    SUPPORTED_LANG = build_vocabulary(
        bs_BA="bs",
        he="iw",
        zh_CN="zh-CN",
        zh_TW="zh-TW",
    )
    
    QUOTA_REASONS: ClassVar[set[str]] = {
        "dailyLimitExceeded",
        "rateLimitExceeded",
        "userRateLimitExceeded",
        "quotaExceeded",
    }
    
    def _params(self, **extra: Any) -> dict[str, Any]:
        key = self._require(self.config.translator_google_api_key, "translator_google_api_key")
        return {"key": key, **extra}
    
    async def _detect(self, text: str) -> str:
        body = await self._request("POST", f"{self.BASE_URL}/detect", data=self._params(q=text))
        try:
            return body["data"]["detections"][0][0]["language"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderBadResponse(f"Unexpected detect payload: {body!r}"[:300], provider=self.name) from e
    
    async def _translate(self, text: str, source: str, target: str) -> str:
        body = await self._request(
            "POST",
            self.BASE_URL,
            data=self._params(q=text, source=source, target=target, format="html"),
        )
        try:
            return body["data"]["translations"][0]["translatedText"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderBadResponse(f"Unexpected translate payload: {body!r}"[:300], provider=self.name) from e
    
    def _error_for_response(self, response: httpx.Response) -> ProviderError:
        # Google reports quota problems as 403 with a reason code
        try:
            errors = response.json()["error"]["errors"]
            reasons = {e.get("reason") for e in errors}
        except (ValueError, KeyError, TypeError):
            reasons = set()
        if reasons & self.QUOTA_REASONS:
            return ProviderQuotaExceeded(self._error_message(response), provider=self.name)
        return super()._error_for_response(response)
