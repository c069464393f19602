"""
Yandex Translate (tr.json v1.5, API key auth).

Yandex puts the outcome in a `code` field of the body as well as in the
HTTP status, so both are checked.
"""

from __future__ import annotations

from typing import Any, ClassVar

import httpx

from babelpost.core.errors import (
    ProviderBadResponse,
    ProviderError,
    ProviderQuotaExceeded,
    ProviderUnavailable,
)
from babelpost.providers.base import HttpProvider, build_vocabulary


class YandexProvider(HttpProvider):
    
    name = "Yandex"
    
    BASE_URL: ClassVar[str] = "https://translate.yandex.net/api/v1.5/tr.json"
    DETECTION_CHAR_LIMIT = 5000
    
    SUPPORTED_LANG = build_vocabulary(
        nb_NO="no",
        zh_CN="zh",
        zh_TW="zh",
    )
    
    # https://yandex.com/dev/translate/doc/dg/reference/translate.html
    UNAVAILABLE_CODES: ClassVar[set[int]] = {401, 402}
    QUOTA_CODES: ClassVar[set[int]] = {404}
    
    def _params(self, **extra: Any) -> dict[str, Any]:
        key = self._require(self.config.translator_yandex_api_key, "translator_yandex_api_key")
        return {"key": key, **extra}
    
    def _error_for_code(self, code: int, message: str) -> ProviderError:
        if code in self.QUOTA_CODES:
            return ProviderQuotaExceeded(message, provider=self.name)
        if code in self.UNAVAILABLE_CODES or (code >= 500 and code != 501):
            return ProviderUnavailable(message, provider=self.name)
        return ProviderBadResponse(message, provider=self.name)
    
    def _check(self, body: Any) -> dict[str, Any]:
        if not isinstance(body, dict):
            raise ProviderBadResponse(f"Unexpected payload: {body!r}"[:300], provider=self.name)
        code = body.get("code", 200)
        if code != 200:
            raise self._error_for_code(int(code), str(body.get("message", f"code {code}")))
        return body
    
    def _error_for_response(self, response: httpx.Response) -> ProviderError:
        try:
            body = response.json()
            code = int(body.get("code", response.status_code))
        except (ValueError, TypeError, AttributeError):
            code = response.status_code
        return self._error_for_code(code, self._error_message(response))
    
    async def _detect(self, text: str) -> str:
        body = self._check(await self._request("POST", f"{self.BASE_URL}/detect", data=self._params(text=text)))
        language = body.get("lang")
        if not language:
            raise ProviderBadResponse(f"Unexpected detect payload: {body!r}"[:300], provider=self.name)
        return language
    
    async def _translate(self, text: str, source: str, target: str) -> str:
        body = self._check(await self._request(
            "POST",
            f"{self.BASE_URL}/translate",
            data=self._params(text=text, lang=f"{source}-{target}", format="html"),
        ))
        try:
            return "".join(body["text"])
        except (KeyError, TypeError) as e:
            raise ProviderBadResponse(f"Unexpected translate payload: {body!r}"[:300], provider=self.name) from e
