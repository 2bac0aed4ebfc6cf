# app/crud/crud_profile.py
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy.orm import Session

from .base import CRUDBase
from app.models.profile import Profile


class CRUDProfile(CRUDBase[Profile, BaseModel, BaseModel]):
    def sync_from_claims(self, db: Session, *, user_id: str, email: str | None) -> Profile:
        """
        Returns the profile for an identity-provider subject, creating it on
        first sight and keeping the email in step with the token.
        """
        profile = self.get(db, user_id)
        if profile is None:
            return self.create(db, obj_in={"id": user_id, "email": email or ""})
        if email and profile.email != email:
            return self.update(db, db_obj=profile, obj_in={"email": email})
        return profile

    def mark_deleted(self, db: Session, *, db_obj: Profile, deleted_at: datetime) -> Profile:
        return self.update(db, db_obj=db_obj, obj_in={"deleted_at": deleted_at})


profile = CRUDProfile(Profile)
