# app/api/v1/endpoints/profiles.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import crud
from app.api import deps
from app.core.exceptions import NotFoundError
from app.models.profile import Profile
from app.schemas.profile import Profile as ProfileSchema
from app.schemas.profile import (
    ProfileDeleteRequest,
    ProfileDeleteResult,
    ProfileUpdate,
    PublicProfile,
)
from app.services.identity.account import AccountService
from app.services.identity.client import IdentityAdminClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.get("/me", response_model=ProfileSchema)
def read_my_profile(current_profile: Profile = Depends(deps.get_current_profile)):
    return current_profile


@router.patch("/me", response_model=ProfileSchema)
def update_my_profile(
    profile_in: ProfileUpdate,
    db: Session = Depends(deps.get_db),
    current_profile: Profile = Depends(deps.get_current_profile),
):
    """Update the caller's editable fields. Fields left out of the body are unchanged."""
    profile = crud.profile.update(db, db_obj=current_profile, obj_in=profile_in)
    logger.info(
        f"Profile {profile.id} updated: {sorted(profile_in.model_dump(exclude_unset=True))}"
    )
    return profile


@router.get("/{profile_id}", response_model=PublicProfile)
def read_profile(profile_id: str, db: Session = Depends(deps.get_db)):
    """Public view of an account. Deleted accounts are not found."""
    profile = crud.profile.get(db, profile_id)
    if profile is None or profile.deleted_at is not None:
        raise NotFoundError("Profile not found", resource="profile")
    return profile


@router.delete("/{profile_id}", response_model=ProfileDeleteResult)
async def delete_profile(
    profile_id: str,
    delete_in: ProfileDeleteRequest,
    db: Session = Depends(deps.get_db),
    identity: IdentityAdminClient = Depends(deps.get_identity_admin),
    current_profile: Profile = Depends(deps.get_current_profile),
):
    """
    Soft-delete an account. The identity user is banned first, then the
    profile is stamped as deleted. Requires typing "DELETE" or the account
    email as confirmation.
    """
    profile = await AccountService(db, identity).soft_delete(
        profile_id=profile_id,
        actor=current_profile,
        confirmation=delete_in.confirmation,
    )
    return ProfileDeleteResult(id=profile.id, deleted_at=profile.deleted_at)
