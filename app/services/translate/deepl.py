# app/services/translate/deepl.py
"""
DeepL translation provider.

One request per non-empty string; empty strings are kept as they are.
DeepL expects uppercase language codes.
"""
import logging
from typing import Optional

import httpx

from .types import ProviderResult, TranslatableContent, TranslationProvider

logger = logging.getLogger(__name__)


class DeepLProvider(TranslationProvider):
    def __init__(
        self,
        api_key: Optional[str],
        api_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "deepl"

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _translate_text(
        self, client: httpx.AsyncClient, text: str, source_lang: str, target_lang: str
    ) -> str:
        response = await client.post(
            self.api_url,
            headers={"Authorization": f"DeepL-Auth-Key {self.api_key}"},
            json={
                "text": [text],
                "source_lang": source_lang.upper(),
                "target_lang": target_lang.upper(),
            },
        )
        response.raise_for_status()
        translations = response.json().get("translations") or []
        if not translations or not translations[0].get("text"):
            raise ValueError("Invalid DeepL response format")
        return translations[0]["text"]

    async def translate(
        self, content: TranslatableContent, source_lang: str, target_lang: str
    ) -> ProviderResult:
        if not self.is_configured():
            return ProviderResult(success=False, error="DeepL API key not configured")

        try:
            translated: TranslatableContent = {}
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                for key, value in content.items():
                    if isinstance(value, list):
                        items = []
                        for item in value:
                            if item.strip():
                                items.append(
                                    await self._translate_text(client, item, source_lang, target_lang)
                                )
                            else:
                                items.append(item)
                        translated[key] = items
                    elif value.strip():
                        translated[key] = await self._translate_text(
                            client, value, source_lang, target_lang
                        )
                    else:
                        translated[key] = value
            return ProviderResult(success=True, content=translated)

        except httpx.HTTPStatusError as e:
            logger.warning(f"DeepL API error for {target_lang}: {e.response.status_code}")
            return ProviderResult(
                success=False, error=f"DeepL API error: {e.response.status_code}"
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"DeepL translation to {target_lang} failed: {e}")
            return ProviderResult(success=False, error=str(e) or "DeepL translation failed")
