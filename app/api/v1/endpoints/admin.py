# app/api/v1/endpoints/admin.py
"""
Admin endpoints: content editing, machine translation and operational views.
All routes require a profile with the admin flag.
"""
from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import crud
from app.api import deps
from app.core.config import settings
from app.core.exceptions import InternalError, ServiceUnavailableError
from app.models.profile import Profile
from app.schemas.content import (
    AboutUpsert,
    ContentWriteResult,
    EventUpsert,
    PostUpsert,
    TranslateRequest,
    TranslateResponse,
    TranslationErrorOut,
)
from app.schemas.profile import ProfileConsistency
from app.schemas.registration import UnattachedRegistrationList
from app.services.content.writer import ContentWriter
from app.services.identity.account import AccountService
from app.services.identity.client import IdentityAdminClient
from app.services.translate.service import TranslationService
from app.utils.timeutils import utcnow

router = APIRouter(prefix="/admin", tags=["Admin"])


def get_content_writer(
    db: Session = Depends(deps.get_db),
    translator: TranslationService = Depends(deps.get_translator),
) -> ContentWriter:
    return ContentWriter(db, translator)


@router.post("/posts", response_model=ContentWriteResult)
async def upsert_post(
    post_in: PostUpsert,
    writer: ContentWriter = Depends(get_content_writer),
    admin: Profile = Depends(deps.require_admin),
):
    """Create a post, or update it when `id` is given, with all translations."""
    return await writer.upsert_post(post_in, author_id=admin.id)


@router.post("/events", response_model=ContentWriteResult)
async def upsert_event(
    event_in: EventUpsert,
    writer: ContentWriter = Depends(get_content_writer),
    admin: Profile = Depends(deps.require_admin),
):
    return await writer.upsert_event(event_in)


@router.put("/about", response_model=ContentWriteResult)
async def upsert_about(
    about_in: AboutUpsert,
    writer: ContentWriter = Depends(get_content_writer),
    admin: Profile = Depends(deps.require_admin),
):
    return await writer.upsert_about(about_in)


@router.post("/translate", response_model=TranslateResponse, response_model_exclude_none=True)
async def translate(
    translate_in: TranslateRequest,
    translator: TranslationService = Depends(deps.get_translator),
    admin: Profile = Depends(deps.require_admin),
):
    """Preview machine translations of editor content before saving."""
    if not translator.is_configured():
        raise ServiceUnavailableError(
            "No translation provider configured", service="translation"
        )

    targets = translate_in.target_langs or None
    result = await translator.translate_content(
        translate_in.content, targets, translate_in.source_lang
    )
    if result.errors and len(result.errors) == len(result.translations):
        raise InternalError("Translation failed for every target language")

    return TranslateResponse(
        provider=result.provider,
        translations={lang: t for lang, t in result.translations.items() if t},
        errors=[TranslationErrorOut(lang=e.lang, message=e.message) for e in result.errors]
        or None,
    )


@router.get("/registrations/unattached", response_model=UnattachedRegistrationList)
def list_unattached_registrations(
    db: Session = Depends(deps.get_db),
    admin: Profile = Depends(deps.require_admin),
):
    """
    Pending registrations for priced events that never received a payment
    reference. These are left behind when the process stops between the
    pending write and the intent attachment.
    """
    minutes = settings.PENDING_REGISTRATION_STALE_MINUTES
    rows = crud.registration.find_unattached_pending(
        db, stale_before=utcnow() - timedelta(minutes=minutes)
    )
    return UnattachedRegistrationList(older_than_minutes=minutes, data=rows)


@router.get("/profiles/{profile_id}/consistency", response_model=ProfileConsistency)
async def check_profile_consistency(
    profile_id: str,
    db: Session = Depends(deps.get_db),
    identity: IdentityAdminClient = Depends(deps.get_identity_admin),
    admin: Profile = Depends(deps.require_admin),
):
    """Compare the local soft-delete flag with the identity provider's ban."""
    return await AccountService(db, identity).check_consistency(profile_id)
