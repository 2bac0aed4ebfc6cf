# app/services/content/reader.py
"""
Language-aware read models for the public pages.

Each function loads the language-agnostic entity, resolves its translation
through ContentResolver and flattens both into the response schema.
"""
import json
import math
from typing import List, Optional

from sqlalchemy.orm import Session

from app import crud
from app.core import languages
from app.core.exceptions import NotFoundError
from app.schemas.base import PaginationMeta
from app.schemas.content import (
    AboutRead,
    AboutValue,
    AuthorSummary,
    EventList,
    EventListFilter,
    EventRead,
    EventSummary,
    PostList,
    PostRead,
    PostSummary,
)
from app.services.content.resolver import (
    ABOUT,
    EVENT,
    POST,
    ContentResolver,
    ResolvedContent,
)
from app.utils.timeutils import utcnow


def _localized(resolved: ResolvedContent) -> dict:
    return {
        "lang": resolved.language_served,
        "is_fallback": resolved.is_fallback,
        "available_languages": resolved.available_languages,
    }


def _pagination(total: int, page: int, limit: int) -> PaginationMeta:
    return PaginationMeta(
        total_items=total,
        total_pages=math.ceil(total / limit),
        current_page=page,
    )


# --- Posts ---

def _post_summary(post, resolved: ResolvedContent) -> dict:
    return {
        "id": post.id,
        "slug": post.slug,
        "banner_url": post.banner_url,
        "created_at": post.created_at,
        "updated_at": post.updated_at,
        "title": resolved.translation.title,
        "excerpt": resolved.translation.excerpt,
        **_localized(resolved),
    }


def get_post(db: Session, *, slug: str, lang: Optional[str]) -> PostRead:
    post = crud.post.get_published_by_slug(db, slug=slug)
    if post is None:
        raise NotFoundError("Post not found", resource="post")

    resolved = ContentResolver(db, POST).resolve(post.id, lang)
    author = AuthorSummary.model_validate(post.author) if post.author else None
    return PostRead(
        **_post_summary(post, resolved),
        content=resolved.translation.content,
        author=author,
    )


def list_posts(db: Session, *, lang: Optional[str], page: int, limit: int) -> PostList:
    posts, total = crud.post.get_multi_published(
        db, lang=languages.normalize(lang), skip=(page - 1) * limit, limit=limit
    )
    by_id = {post.id: post for post in posts}
    resolved = ContentResolver(db, POST).resolve_many([p.id for p in posts], lang)
    return PostList(
        data=[PostSummary(**_post_summary(by_id[r.entity_id], r)) for r in resolved],
        pagination=_pagination(total, page, limit),
    )


# --- Events ---

def _event_summary(event, resolved: ResolvedContent) -> dict:
    return {
        "id": event.id,
        "slug": event.slug,
        "type": event.type,
        "status": event.status,
        "starts_at": event.starts_at,
        "ends_at": event.ends_at,
        "host": event.host,
        "location": event.location,
        "capacity": event.capacity,
        "price": event.price,
        "banner_url": event.banner_url,
        "title": resolved.translation.title,
        "description": resolved.translation.description,
        **_localized(resolved),
    }


def get_event(db: Session, *, id_or_slug: str, lang: Optional[str]) -> EventRead:
    event = crud.event.get_published(db, id_or_slug=id_or_slug)
    if event is None:
        raise NotFoundError("Event not found", resource="event")

    resolved = ContentResolver(db, EVENT).resolve(event.id, lang)
    return EventRead(
        **_event_summary(event, resolved),
        address=event.address,
        google_maps_url=event.google_maps_url,
        detail=resolved.translation.detail,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


def list_events(
    db: Session,
    *,
    lang: Optional[str],
    time_filter: EventListFilter,
    page: int,
    limit: int,
) -> EventList:
    events, total = crud.event.get_multi_published(
        db,
        lang=languages.normalize(lang),
        now=utcnow(),
        time_filter=time_filter,
        skip=(page - 1) * limit,
        limit=limit,
    )
    by_id = {event.id: event for event in events}
    resolved = ContentResolver(db, EVENT).resolve_many([e.id for e in events], lang)
    return EventList(
        data=[EventSummary(**_event_summary(by_id[r.entity_id], r)) for r in resolved],
        pagination=_pagination(total, page, limit),
    )


# --- About page ---

def decode_paragraphs(raw: Optional[str]) -> List[str]:
    """Stored as a JSON array; a legacy plain-text value becomes one paragraph."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        return [raw]
    if isinstance(value, list):
        return [str(item) for item in value]
    return [str(value)]


def get_about(db: Session, *, lang: Optional[str]) -> AboutRead:
    about = crud.about.get_singleton(db)
    if about is None:
        raise NotFoundError("About page not found", resource="about")

    resolved = ContentResolver(db, ABOUT).resolve(about.id, lang)
    content = resolved.translation
    values = [
        AboutValue(
            title=getattr(content, f"values_v{i}_title"),
            message=getattr(content, f"values_v{i}_message"),
        )
        for i in range(3)
        if getattr(content, f"values_v{i}_title") or getattr(content, f"values_v{i}_message")
    ]
    return AboutRead(
        id=about.id,
        admin_name=about.admin_name,
        vision_image_url=about.vision_image_url,
        title=content.title,
        description=content.description,
        hero_title=content.hero_title,
        hero_subtitle=content.hero_subtitle,
        vision_title=content.vision_title,
        vision_paragraphs=decode_paragraphs(content.vision_paragraphs),
        values=values,
        quote_text=content.quote_text,
        **_localized(resolved),
    )
