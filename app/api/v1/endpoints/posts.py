# app/api/v1/endpoints/posts.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api import deps
from app.schemas.content import PostList, PostRead
from app.services.content import reader

router = APIRouter(tags=["Posts"])


@router.get("/posts", response_model=PostList)
def list_posts(
    db: Session = Depends(deps.get_db),
    lang: Optional[str] = Query(None, description="Requested content language"),
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
):
    """Published posts, newest first, in the requested language or the default."""
    return reader.list_posts(db, lang=lang, page=page, limit=limit)


@router.get("/posts/{slug}", response_model=PostRead)
def get_post(
    slug: str,
    db: Session = Depends(deps.get_db),
    lang: Optional[str] = Query(None),
):
    return reader.get_post(db, slug=slug, lang=lang)
