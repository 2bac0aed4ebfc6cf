# app/services/content/writer.py
"""
Admin content writes.

An entity and all of its translations are written in one transaction, so a
reader can never observe a partially translated save. Languages the editor
left out and the entity has no stored translation for are machine-translated
from the default language before the transaction opens; when translation
fails the default-language text is stored instead. Stored translations the
editor left out are kept as they are.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app import crud
from app.core import languages
from app.core.exceptions import ConflictError, NotFoundError
from app.schemas.content import (
    AboutUpsert,
    ContentWriteResult,
    EventUpsert,
    LanguageWriteResult,
    PostUpsert,
)
from app.services.content.resolver import ABOUT, EVENT, POST, ContentKind, ContentResolver
from app.services.translate.service import TranslationService

logger = logging.getLogger(__name__)

Fields = Dict[str, Any]


@dataclass
class PreparedTranslations:
    fields: Dict[str, Fields]
    auto_translated: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _translatable(source: Fields) -> Fields:
    """Only non-empty text goes to the translator."""
    out = {}
    for key, value in source.items():
        if isinstance(value, str) and value.strip():
            out[key] = value
        elif isinstance(value, list) and any(item.strip() for item in value):
            out[key] = value
    return out


def _merge(source: Fields, translated: Fields) -> Fields:
    """Overlay translated values that kept the source's shape."""
    merged = dict(source)
    for key, value in translated.items():
        if key in source and isinstance(value, type(source[key])):
            merged[key] = value
    return merged


def about_fields(translation) -> Fields:
    fields = {
        "title": translation.title,
        "description": translation.description,
        "hero_title": translation.hero_title,
        "hero_subtitle": translation.hero_subtitle,
        "vision_title": translation.vision_title,
        "vision_paragraphs": list(translation.vision_paragraphs),
        "quote_text": translation.quote_text,
    }
    for i in range(3):
        value = translation.values[i] if i < len(translation.values) else None
        fields[f"values_v{i}_title"] = value.title if value else None
        fields[f"values_v{i}_message"] = value.message if value else None
    return fields


def about_columns(fields: Fields) -> Fields:
    columns = dict(fields)
    columns["vision_paragraphs"] = json.dumps(fields.get("vision_paragraphs") or [])
    return columns


class ContentWriter:
    def __init__(self, db: Session, translator: TranslationService):
        self.db = db
        self.translator = translator

    def stored_languages(self, kind: ContentKind, entity_id: Optional[str]) -> List[str]:
        if entity_id is None:
            return []
        return ContentResolver(self.db, kind).available_languages([entity_id]).get(entity_id, [])

    async def prepare(
        self, provided: Dict[str, Fields], stored: Sequence[str] = ()
    ) -> PreparedTranslations:
        """Translate the catalog languages that are neither provided nor already stored."""
        default = languages.default_language()
        source = provided[default]
        missing = [
            lang
            for lang in languages.SUPPORTED_LANGUAGES
            if lang not in provided and lang not in stored
        ]
        prepared = PreparedTranslations(fields=dict(provided))
        if not missing:
            return prepared

        payload = _translatable(source)
        translations: Dict[str, Fields] = {}
        if payload and self.translator.is_configured():
            result = await self.translator.translate_content(payload, missing, default)
            translations = result.translations
            prepared.errors = [f"{e.lang}: {e.message}" for e in result.errors]
        elif payload:
            prepared.errors = ["No translation provider configured"]

        for lang in missing:
            translated = translations.get(lang) or {}
            prepared.fields[lang] = _merge(source, translated)
            if translated:
                prepared.auto_translated.append(lang)
            else:
                logger.info(f"Keeping {default} text for missing language {lang}")
        return prepared

    async def upsert_post(self, post_in: PostUpsert, *, author_id: Optional[str]) -> ContentWriteResult:
        prepared = await self.prepare(
            {lang: t.model_dump() for lang, t in post_in.translations.items()},
            self.stored_languages(POST, post_in.id),
        )
        entity_values = {
            "slug": post_in.slug,
            "published": post_in.published,
            "banner_url": post_in.banner_url,
        }

        def find_slug_owner():
            return crud.post.get_by_slug(self.db, slug=post_in.slug)

        return self._write(
            kind=POST,
            crud_obj=crud.post,
            entity_id=post_in.id,
            entity_values=entity_values,
            create_extra={"author_id": author_id},
            slug_owner=find_slug_owner,
            prepared=prepared,
            to_columns=dict,
            label="post",
        )

    async def upsert_event(self, event_in: EventUpsert) -> ContentWriteResult:
        prepared = await self.prepare(
            {lang: t.model_dump() for lang, t in event_in.translations.items()},
            self.stored_languages(EVENT, event_in.id),
        )
        entity_values = event_in.model_dump(exclude={"id", "translations"})
        entity_values["type"] = event_in.type.value
        entity_values["status"] = event_in.status.value

        def find_slug_owner():
            return crud.event.get_by_slug(self.db, slug=event_in.slug)

        return self._write(
            kind=EVENT,
            crud_obj=crud.event,
            entity_id=event_in.id,
            entity_values=entity_values,
            create_extra={},
            slug_owner=find_slug_owner,
            prepared=prepared,
            to_columns=dict,
            label="event",
        )

    async def upsert_about(self, about_in: AboutUpsert) -> ContentWriteResult:
        existing = crud.about.get_singleton(self.db)
        prepared = await self.prepare(
            {lang: about_fields(t) for lang, t in about_in.translations.items()},
            self.stored_languages(ABOUT, existing.id if existing else None),
        )
        return self._write(
            kind=ABOUT,
            crud_obj=crud.about,
            entity_id=existing.id if existing else None,
            entity_values={
                "admin_name": about_in.admin_name,
                "vision_image_url": about_in.vision_image_url,
            },
            create_extra={},
            slug_owner=None,
            prepared=prepared,
            to_columns=about_columns,
            label="about page",
        )

    def _write(
        self,
        *,
        kind: ContentKind,
        crud_obj,
        entity_id: Optional[str],
        entity_values: Fields,
        create_extra: Fields,
        slug_owner: Optional[Callable[[], Any]],
        prepared: PreparedTranslations,
        to_columns: Callable[[Fields], Fields],
        label: str,
    ) -> ContentWriteResult:
        try:
            entity, is_new = self._write_entity(
                crud_obj, entity_id, entity_values, create_extra, slug_owner, label
            )
            language_results = {}
            for lang in languages.SUPPORTED_LANGUAGES:
                if lang not in prepared.fields:
                    continue
                created = self._write_translation(
                    kind, entity.id, lang, to_columns(prepared.fields[lang])
                )
                language_results[lang] = LanguageWriteResult(
                    is_new=created, auto_translated=lang in prepared.auto_translated
                )
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Integrity error saving {label}; rolled back")
            raise ConflictError(f"The {label} conflicts with existing content")
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Saved {label} {entity.id} ({'created' if is_new else 'updated'})")
        return ContentWriteResult(
            id=entity.id,
            slug=getattr(entity, "slug", None),
            is_new=is_new,
            languages=language_results,
            translation_errors=prepared.errors,
        )

    def _write_entity(
        self, crud_obj, entity_id, entity_values, create_extra, slug_owner, label
    ) -> Tuple[Any, bool]:
        if slug_owner is not None:
            owner = slug_owner()
            if owner is not None and owner.id != entity_id:
                raise ConflictError(f"A {label} with this slug already exists")

        if entity_id is None:
            entity = crud_obj.create(
                self.db, obj_in={**entity_values, **create_extra}, commit=False
            )
            return entity, True

        entity = crud_obj.get(self.db, entity_id)
        if entity is None:
            raise NotFoundError(f"The {label} to update was not found", resource=label)
        entity = crud_obj.update(self.db, db_obj=entity, obj_in=entity_values, commit=False)
        return entity, False

    def _write_translation(self, kind: ContentKind, entity_id: str, lang: str, columns: Fields) -> bool:
        model = kind.translation_model
        row = (
            self.db.query(model)
            .filter(kind.owner == entity_id, model.lang == lang)
            .first()
        )
        if row is None:
            self.db.add(model(**{kind.owner_column: entity_id, "lang": lang, **columns}))
            self.db.flush()
            return True
        for key, value in columns.items():
            setattr(row, key, value)
        self.db.flush()
        return False
