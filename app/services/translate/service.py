# app/services/translate/service.py
"""
Translation orchestrator: the first configured provider wins, target
languages are translated concurrently.
"""
import asyncio
import logging
from typing import List, Optional, Sequence

from app.core import languages
from app.core.config import settings
from .deepl import DeepLProvider
from .groq import GroqProvider
from .types import (
    TranslatableContent,
    TranslationError,
    TranslationProvider,
    TranslationResult,
)

logger = logging.getLogger(__name__)


class TranslationService:
    def __init__(self, providers: Sequence[TranslationProvider]):
        self.providers = list(providers)

    def available_provider(self) -> Optional[TranslationProvider]:
        for provider in self.providers:
            if provider.is_configured():
                return provider
        return None

    def is_configured(self) -> bool:
        return self.available_provider() is not None

    async def translate_content(
        self,
        content: TranslatableContent,
        target_langs: Optional[List[str]] = None,
        source_lang: str = languages.DEFAULT_LANGUAGE,
    ) -> TranslationResult:
        """
        Translate `content` into each target language.

        Per-language failures are collected in `errors` with an empty
        translation for that language; nothing is raised.
        """
        targets = target_langs or languages.translation_targets(source_lang)
        provider = self.available_provider()
        if provider is None:
            logger.warning("Translation requested but no provider is configured")
            return TranslationResult(
                provider="manual",
                translations={lang: {} for lang in targets},
                errors=[
                    TranslationError(
                        lang=source_lang,
                        message="No translation provider configured",
                    )
                ],
            )

        results = await asyncio.gather(
            *(provider.translate(content, source_lang, lang) for lang in targets)
        )

        outcome = TranslationResult(provider=provider.name, translations={})
        for lang, result in zip(targets, results):
            if result.success and result.content is not None:
                outcome.translations[lang] = result.content
            else:
                outcome.translations[lang] = {}
                outcome.errors.append(
                    TranslationError(
                        lang=lang,
                        message=result.error or f"Failed to translate to {lang}",
                    )
                )
        if outcome.errors:
            logger.warning(
                f"Translation via {provider.name} failed for "
                f"{', '.join(e.lang for e in outcome.errors)}"
            )
        return outcome


def get_translation_service() -> TranslationService:
    """DeepL first for quality, Groq as fallback."""
    return TranslationService(
        [
            DeepLProvider(
                api_key=settings.DEEPL_API_KEY,
                api_url=settings.DEEPL_API_URL,
                timeout=settings.TRANSLATION_TIMEOUT_SECONDS,
            ),
            GroqProvider(
                api_key=settings.GROQ_API_KEY,
                api_url=settings.GROQ_API_URL,
                model=settings.GROQ_MODEL,
                timeout=settings.TRANSLATION_TIMEOUT_SECONDS,
            ),
        ]
    )
