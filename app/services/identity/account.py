# app/services/identity/account.py
"""
Account soft delete.

Two systems of record hold the account state: the identity provider's ban
flag and the local profiles.deleted_at. The saga bans first, since that is
the step users notice (it signs them out), then stamps deleted_at. If the
second step fails the drift shows up in check_consistency.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import crud
from app.core.exceptions import (
    ForbiddenError,
    InternalError,
    NotFoundError,
    ServiceUnavailableError,
    ValidationError,
)
from app.models.profile import Profile
from app.schemas.profile import ProfileConsistency
from app.services.identity.client import IdentityAdminClient, IdentityAdminError
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

CONFIRMATION_WORD = "delete"


class AccountService:
    def __init__(self, db: Session, identity: IdentityAdminClient):
        self.db = db
        self.identity = identity

    def _get_profile(self, profile_id: str) -> Profile:
        profile = crud.profile.get(self.db, profile_id)
        if profile is None:
            raise NotFoundError("Profile not found", resource="profile")
        return profile

    async def soft_delete(self, *, profile_id: str, actor: Profile, confirmation: str) -> Profile:
        if actor.id != profile_id and not actor.is_admin:
            raise ForbiddenError("You can only delete your own account")

        profile = self._get_profile(profile_id)
        if profile.deleted_at is not None:
            raise ValidationError("Account has already been deleted")

        answer = confirmation.strip().lower()
        if answer != CONFIRMATION_WORD and answer != (profile.email or "").lower():
            raise ValidationError(
                'Invalid confirmation. Please type "DELETE" or your email address.',
                field="confirmation",
            )

        try:
            await self.identity.ban_user(profile_id)
        except IdentityAdminError:
            raise ServiceUnavailableError(
                "Failed to deactivate account. Please try again.", service="identity"
            )

        try:
            profile = crud.profile.mark_deleted(self.db, db_obj=profile, deleted_at=utcnow())
        except SQLAlchemyError:
            self.db.rollback()
            logger.critical(
                f"Identity user {profile_id} is banned but profile deletion failed; "
                f"account state is inconsistent"
            )
            raise InternalError("Account deactivated but deletion could not be completed")

        logger.info(f"Profile {profile_id} soft-deleted by {actor.id}")
        return profile

    async def check_consistency(self, profile_id: str) -> ProfileConsistency:
        profile = self._get_profile(profile_id)
        try:
            banned = await self.identity.is_banned(profile_id)
        except IdentityAdminError:
            raise ServiceUnavailableError("Identity provider unavailable", service="identity")

        deleted = profile.deleted_at is not None
        if deleted != banned:
            logger.warning(
                f"Account drift for {profile_id}: deleted_locally={deleted}, banned_remotely={banned}"
            )
        return ProfileConsistency(
            profile_id=profile_id,
            deleted_locally=deleted,
            banned_remotely=banned,
            consistent=deleted == banned,
        )
