# app/core/languages.py
"""
Language catalog.

The single source of truth for which content languages exist and which one
is the fallback. Nothing else in the service should spell out language codes.
"""

from enum import Enum
from typing import Dict, List, Optional


class Language(str, Enum):
    EN = "en"
    ES = "es"
    DE = "de"
    FR = "fr"


DEFAULT_LANGUAGE = Language.EN.value

SUPPORTED_LANGUAGES: tuple = tuple(lang.value for lang in Language)

LANGUAGE_LABELS: Dict[str, str] = {
    Language.EN.value: "English",
    Language.ES.value: "Spanish",
    Language.DE.value: "German",
    Language.FR.value: "French",
}


def is_supported(code: Optional[str]) -> bool:
    """Check whether a language code belongs to the catalog."""
    return code in SUPPORTED_LANGUAGES


def default_language() -> str:
    return DEFAULT_LANGUAGE


def normalize(code: Optional[str]) -> str:
    """
    Map a requested language code onto the catalog.

    Unknown, empty or differently-cased codes never fail a read: they are
    lowercased and, if still unknown, replaced by the default language.
    """
    if code:
        candidate = code.strip().lower()
        if is_supported(candidate):
            return candidate
    return DEFAULT_LANGUAGE


def translation_targets(source: str = DEFAULT_LANGUAGE) -> List[str]:
    """All catalog languages except the source, in catalog order."""
    return [lang for lang in SUPPORTED_LANGUAGES if lang != source]
