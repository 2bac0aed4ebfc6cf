# app/services/translate/types.py
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

# Field name -> text, or list of paragraphs
TranslatableContent = Dict[str, Union[str, List[str]]]


@dataclass
class ProviderResult:
    success: bool
    content: Optional[TranslatableContent] = None
    error: Optional[str] = None


@dataclass
class TranslationError:
    lang: str
    message: str


@dataclass
class TranslationResult:
    provider: str
    translations: Dict[str, TranslatableContent]
    errors: List[TranslationError] = field(default_factory=list)


class TranslationProvider(ABC):
    """A text-translation backend. Failures are returned, never raised."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        pass

    @abstractmethod
    async def translate(
        self, content: TranslatableContent, source_lang: str, target_lang: str
    ) -> ProviderResult:
        pass
