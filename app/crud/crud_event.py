# app/crud/crud_event.py
from datetime import datetime
from typing import List, Tuple

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from .base import CRUDBase
from app.core import languages
from app.models.event import Event, EventContent
from app.schemas.content import EventListFilter, EventUpsert


def _has_content(lang: str):
    candidates = {lang, languages.default_language()}
    return (
        select(EventContent.id)
        .where(EventContent.event_id == Event.id, EventContent.lang.in_(candidates))
        .exists()
    )


class CRUDEvent(CRUDBase[Event, EventUpsert, EventUpsert]):
    def get_by_slug(self, db: Session, *, slug: str) -> Event | None:
        return db.query(self.model).filter(self.model.slug == slug).first()

    def get_published(self, db: Session, *, id_or_slug: str) -> Event | None:
        return (
            db.query(self.model)
            .filter(
                or_(self.model.id == id_or_slug, self.model.slug == id_or_slug),
                self.model.status == "published",
            )
            .first()
        )

    def get_multi_published(
        self,
        db: Session,
        *,
        lang: str,
        now: datetime,
        time_filter: EventListFilter = EventListFilter.upcoming,
        skip: int = 0,
        limit: int = 20,
    ) -> Tuple[List[Event], int]:
        """
        Published events servable in `lang`.

        upcoming: starts after `now`, soonest first
        past: already started, most recent first
        all: soonest first
        """
        query = db.query(self.model).filter(
            self.model.status == "published", _has_content(lang)
        )

        if time_filter == EventListFilter.upcoming:
            query = query.filter(self.model.starts_at > now)
        elif time_filter == EventListFilter.past:
            query = query.filter(self.model.starts_at <= now)

        total = query.count()

        if time_filter == EventListFilter.past:
            query = query.order_by(self.model.starts_at.desc(), self.model.id)
        else:
            query = query.order_by(self.model.starts_at.asc(), self.model.id)

        return query.offset(skip).limit(limit).all(), total


event = CRUDEvent(Event)
