# app/api/v1/endpoints/about.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api import deps
from app.schemas.content import AboutRead
from app.services.content import reader

router = APIRouter(tags=["About"])


@router.get("/about", response_model=AboutRead)
def get_about(db: Session = Depends(deps.get_db), lang: Optional[str] = Query(None)):
    return reader.get_about(db, lang=lang)
