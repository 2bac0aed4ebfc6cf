# app/services/content/resolver.py
"""
Content fallback resolver.

Serves the translation of a post, event or about page in the requested
language, falling back to the default language when that translation is
missing. A served translation is always one whole row: fields from two
languages are never mixed.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core import languages
from app.core.exceptions import ContentNotFoundError
from app.models.about import AboutContent
from app.models.event import EventContent
from app.models.post import PostContent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentKind:
    """A translatable entity type: its translation table and owner column."""
    name: str
    translation_model: Any
    owner_column: str

    @property
    def owner(self):
        return getattr(self.translation_model, self.owner_column)


POST = ContentKind(name="post", translation_model=PostContent, owner_column="post_id")
EVENT = ContentKind(name="event", translation_model=EventContent, owner_column="event_id")
ABOUT = ContentKind(name="about", translation_model=AboutContent, owner_column="about_id")


@dataclass
class ResolvedContent:
    entity_id: str
    translation: Any
    language_served: str
    is_fallback: bool
    available_languages: List[str]


def _catalog_order(codes: Iterable[str]) -> List[str]:
    present = set(codes)
    return [code for code in languages.SUPPORTED_LANGUAGES if code in present]


class ContentResolver:
    def __init__(self, db: Session, kind: ContentKind):
        self.db = db
        self.kind = kind

    def resolve(self, entity_id: str, requested_language: Optional[str]) -> ResolvedContent:
        """
        Resolve one entity.

        Raises ContentNotFoundError only when the entity has no translation
        in either the requested or the default language.
        """
        lang = languages.normalize(requested_language)
        default = languages.default_language()
        model = self.kind.translation_model

        translation = (
            self.db.query(model)
            .filter(self.kind.owner == entity_id, model.lang == lang)
            .first()
        )
        is_fallback = False
        if translation is None and lang != default:
            translation = (
                self.db.query(model)
                .filter(self.kind.owner == entity_id, model.lang == default)
                .first()
            )
            is_fallback = translation is not None

        if translation is None:
            logger.info(f"No {self.kind.name} content for {entity_id} (requested {lang})")
            raise ContentNotFoundError(entity_id)

        available = self.available_languages([entity_id]).get(entity_id, [])
        return ResolvedContent(
            entity_id=entity_id,
            translation=translation,
            language_served=translation.lang,
            is_fallback=is_fallback,
            available_languages=available,
        )

    def resolve_many(
        self, entity_ids: List[str], requested_language: Optional[str]
    ) -> List[ResolvedContent]:
        """
        Bulk variant for list pages.

        Two queries (requested language, default language) merged by entity
        id, plus one for available languages. Output follows the order of
        `entity_ids`; entities with nothing to serve are dropped.
        """
        if not entity_ids:
            return []

        lang = languages.normalize(requested_language)
        default = languages.default_language()

        requested_rows = self._translations_in(entity_ids, lang)
        fallback_rows: Dict[str, Any] = {}
        if lang != default:
            missing = [eid for eid in entity_ids if eid not in requested_rows]
            fallback_rows = self._translations_in(missing, default)

        available = self.available_languages(entity_ids)

        resolved = []
        for entity_id in entity_ids:
            translation = requested_rows.get(entity_id)
            is_fallback = False
            if translation is None:
                translation = fallback_rows.get(entity_id)
                is_fallback = True
            if translation is None:
                continue
            resolved.append(
                ResolvedContent(
                    entity_id=entity_id,
                    translation=translation,
                    language_served=translation.lang,
                    is_fallback=is_fallback,
                    available_languages=available.get(entity_id, []),
                )
            )
        return resolved

    def available_languages(self, entity_ids: List[str]) -> Dict[str, List[str]]:
        """Languages each entity has a translation for, in catalog order."""
        if not entity_ids:
            return {}
        model = self.kind.translation_model
        rows = (
            self.db.query(self.kind.owner, model.lang)
            .filter(self.kind.owner.in_(entity_ids))
            .all()
        )
        grouped: Dict[str, List[str]] = {}
        for owner_id, lang in rows:
            grouped.setdefault(owner_id, []).append(lang)
        return {owner_id: _catalog_order(codes) for owner_id, codes in grouped.items()}

    def _translations_in(self, entity_ids: List[str], lang: str) -> Dict[str, Any]:
        if not entity_ids:
            return {}
        model = self.kind.translation_model
        rows = (
            self.db.query(model)
            .filter(self.kind.owner.in_(entity_ids), model.lang == lang)
            .all()
        )
        return {getattr(row, self.kind.owner_column): row for row in rows}
