# app/services/translate/groq.py
"""
Groq translation provider.

Sends the whole content object as JSON to an OpenAI-compatible chat
completion and expects JSON with exactly the same keys back.
"""
import json
import logging
from typing import Optional

import httpx

from app.core.languages import LANGUAGE_LABELS
from .types import ProviderResult, TranslatableContent, TranslationProvider

logger = logging.getLogger(__name__)


def build_prompt(content: TranslatableContent, source_lang: str, target_lang: str) -> str:
    source_name = LANGUAGE_LABELS.get(source_lang, source_lang)
    target_name = LANGUAGE_LABELS.get(target_lang, target_lang)
    return (
        f"You are a professional translator. Translate the following JSON content "
        f"from {source_name} to {target_name}.\n\n"
        "IMPORTANT RULES:\n"
        "1. Return ONLY valid JSON with the exact same structure as the input\n"
        "2. Preserve all keys exactly as they are\n"
        "3. Only translate the string values\n"
        "4. For arrays, translate each element while maintaining the array structure\n"
        "5. Do not add any explanation or markdown formatting\n"
        "6. Maintain the same tone and formality level\n\n"
        f"INPUT JSON:\n{json.dumps(content, indent=2, ensure_ascii=False)}\n\n"
        f"OUTPUT ({target_name} translation as valid JSON):"
    )


def parse_response(text: str) -> TranslatableContent:
    """Strip an optional markdown code fence and decode the JSON object."""
    body = text.strip()
    if body.startswith("```json"):
        body = body[7:]
    elif body.startswith("```"):
        body = body[3:]
    if body.endswith("```"):
        body = body[:-3]
    parsed = json.loads(body.strip())
    if not isinstance(parsed, dict):
        raise ValueError("Translation response is not a JSON object")
    return parsed


class GroqProvider(TranslationProvider):
    def __init__(
        self,
        api_key: Optional[str],
        api_url: str,
        model: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self._transport = transport

    @property
    def name(self) -> str:
        return "groq"

    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def translate(
        self, content: TranslatableContent, source_lang: str, target_lang: str
    ) -> ProviderResult:
        if not self.is_configured():
            return ProviderResult(success=False, error="Groq API key not configured")

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.api_url,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={
                        "model": self.model,
                        "messages": [
                            {
                                "role": "user",
                                "content": build_prompt(content, source_lang, target_lang),
                            }
                        ],
                        # Low temperature keeps translations consistent
                        "temperature": 0.3,
                    },
                )
                response.raise_for_status()

            choices = response.json().get("choices") or []
            message = choices[0].get("message", {}).get("content") if choices else None
            if not message:
                raise ValueError("Invalid Groq response format")

            translated = parse_response(message)
            if sorted(translated.keys()) != sorted(content.keys()):
                raise ValueError("Translation response has different keys than input")

            return ProviderResult(success=True, content=translated)

        except httpx.HTTPStatusError as e:
            logger.warning(f"Groq API error for {target_lang}: {e.response.status_code}")
            return ProviderResult(
                success=False, error=f"Groq API error: {e.response.status_code}"
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Groq translation to {target_lang} failed: {e}")
            return ProviderResult(success=False, error=str(e) or "Groq translation failed")
