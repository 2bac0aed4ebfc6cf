# app/schemas/content.py
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import Field, field_validator, model_validator

from app.core import languages
from app.schemas.base import CamelModel, PaginationMeta

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class EventType(str, Enum):
    online = "online"
    in_person = "in_person"


class EventStatus(str, Enum):
    draft = "draft"
    published = "published"
    cancelled = "cancelled"
    completed = "completed"


class EventListFilter(str, Enum):
    upcoming = "upcoming"
    past = "past"
    all = "all"


class Localized(CamelModel):
    """Language metadata attached to every resolved read."""
    lang: str
    is_fallback: bool
    available_languages: List[str]


# --- Posts ---

class AuthorSummary(CamelModel):
    id: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class PostSummary(Localized):
    id: str
    slug: str
    banner_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    title: str
    excerpt: Optional[str] = None


class PostRead(PostSummary):
    content: str
    author: Optional[AuthorSummary] = None


class PostList(CamelModel):
    data: List[PostSummary]
    pagination: PaginationMeta


# --- Events ---

class EventSummary(Localized):
    id: str
    slug: str
    type: EventType
    status: EventStatus
    starts_at: datetime
    ends_at: Optional[datetime] = None
    host: Optional[str] = None
    location: Optional[str] = None
    capacity: Optional[int] = None
    price: Decimal
    banner_url: Optional[str] = None
    title: str
    description: Optional[str] = None


class EventRead(EventSummary):
    address: Optional[str] = None
    google_maps_url: Optional[str] = None
    detail: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class EventList(CamelModel):
    data: List[EventSummary]
    pagination: PaginationMeta


# --- About page ---

class AboutValue(CamelModel):
    title: Optional[str] = None
    message: Optional[str] = None


class AboutRead(Localized):
    id: str
    admin_name: Optional[str] = None
    vision_image_url: Optional[str] = None
    title: str
    description: Optional[str] = None
    hero_title: Optional[str] = None
    hero_subtitle: Optional[str] = None
    vision_title: Optional[str] = None
    vision_paragraphs: List[str] = []
    values: List[AboutValue] = []
    quote_text: Optional[str] = None


# --- Admin writes ---

def _check_translation_keys(translations: Dict[str, object]) -> Dict[str, object]:
    unknown = [code for code in translations if not languages.is_supported(code)]
    if unknown:
        raise ValueError(f"Unsupported language codes: {', '.join(sorted(unknown))}")
    if languages.default_language() not in translations:
        raise ValueError(
            f"Content in the default language '{languages.default_language()}' is required"
        )
    return translations


class PostTranslationIn(CamelModel):
    title: str = Field(..., min_length=1, max_length=300)
    excerpt: Optional[str] = None
    content: str = Field(..., min_length=1)


class PostUpsert(CamelModel):
    id: Optional[str] = None
    slug: str = Field(..., max_length=200, pattern=SLUG_PATTERN)
    published: bool = False
    banner_url: Optional[str] = None
    translations: Dict[str, PostTranslationIn]

    @field_validator("translations")
    @classmethod
    def check_translations(cls, v):
        return _check_translation_keys(v)


class EventTranslationIn(CamelModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    detail: Optional[str] = None


class EventUpsert(CamelModel):
    id: Optional[str] = None
    slug: str = Field(..., max_length=200, pattern=SLUG_PATTERN)
    type: EventType = EventType.online
    status: EventStatus = EventStatus.draft
    starts_at: datetime
    ends_at: Optional[datetime] = None
    host: Optional[str] = None
    location: Optional[str] = None
    address: Optional[str] = None
    google_maps_url: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    price: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)
    banner_url: Optional[str] = None
    translations: Dict[str, EventTranslationIn]

    @field_validator("translations")
    @classmethod
    def check_translations(cls, v):
        return _check_translation_keys(v)

    @model_validator(mode="after")
    def check_dates(self):
        if self.ends_at is not None and self.ends_at <= self.starts_at:
            raise ValueError("End date must be after start date")
        return self


class AboutTranslationIn(CamelModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    hero_title: Optional[str] = None
    hero_subtitle: Optional[str] = None
    vision_title: Optional[str] = None
    vision_paragraphs: List[str] = []
    values: List[AboutValue] = Field(default_factory=list, max_length=3)
    quote_text: Optional[str] = None


class AboutUpsert(CamelModel):
    admin_name: Optional[str] = None
    vision_image_url: Optional[str] = None
    translations: Dict[str, AboutTranslationIn]

    @field_validator("translations")
    @classmethod
    def check_translations(cls, v):
        return _check_translation_keys(v)


class LanguageWriteResult(CamelModel):
    is_new: bool
    auto_translated: bool = False


class ContentWriteResult(CamelModel):
    id: str
    slug: Optional[str] = None
    is_new: bool
    languages: Dict[str, LanguageWriteResult]
    translation_errors: List[str] = []


# --- Translation endpoint ---

TranslatableValue = Union[str, List[str]]


class TranslateRequest(CamelModel):
    source_lang: str = languages.DEFAULT_LANGUAGE
    target_langs: Optional[List[str]] = None
    content: Dict[str, TranslatableValue]

    @field_validator("source_lang")
    @classmethod
    def check_source(cls, v: str) -> str:
        if v != languages.default_language():
            raise ValueError(
                f"Only '{languages.default_language()}' is supported as source language"
            )
        return v

    @field_validator("target_langs")
    @classmethod
    def check_targets(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        allowed = languages.translation_targets()
        invalid = [code for code in v if code not in allowed]
        if invalid:
            raise ValueError(f"Invalid target languages: {', '.join(invalid)}")
        return v

    @field_validator("content")
    @classmethod
    def check_content(cls, v: Dict[str, TranslatableValue]) -> Dict[str, TranslatableValue]:
        if not v:
            raise ValueError("Content to translate is required")
        for key, value in v.items():
            if isinstance(value, str) and not value.strip():
                raise ValueError(f"Field '{key}' is empty")
            if isinstance(value, list) and not any(item.strip() for item in value):
                raise ValueError(f"Field '{key}' is empty")
        return v


class TranslationErrorOut(CamelModel):
    lang: str
    message: str


class TranslateResponse(CamelModel):
    provider: str
    translations: Dict[str, Dict[str, TranslatableValue]]
    errors: Optional[List[TranslationErrorOut]] = None
