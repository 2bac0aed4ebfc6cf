# app/crud/crud_about.py
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .base import CRUDBase
from app.models.about import AboutSettings


class CRUDAbout(CRUDBase[AboutSettings, BaseModel, BaseModel]):
    def get_singleton(self, db: Session) -> AboutSettings | None:
        return db.query(self.model).order_by(self.model.created_at).first()


about = CRUDAbout(AboutSettings)
