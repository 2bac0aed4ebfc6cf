# app/api/v1/endpoints/events.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api import deps
from app.schemas.content import EventList, EventListFilter, EventRead
from app.services.content import reader

router = APIRouter(tags=["Events"])


@router.get("/events", response_model=EventList)
def list_events(
    db: Session = Depends(deps.get_db),
    lang: Optional[str] = Query(None, description="Requested content language"),
    filter: EventListFilter = Query(EventListFilter.upcoming),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
):
    """
    Published events. `upcoming` lists soonest first, `past` most recent
    first, `all` soonest first.
    """
    return reader.list_events(db, lang=lang, time_filter=filter, page=page, limit=limit)


@router.get("/events/{id_or_slug}", response_model=EventRead)
def get_event(
    id_or_slug: str,
    db: Session = Depends(deps.get_db),
    lang: Optional[str] = Query(None),
):
    return reader.get_event(db, id_or_slug=id_or_slug, lang=lang)

