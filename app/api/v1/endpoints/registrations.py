# app/api/v1/endpoints/registrations.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app import crud
from app.api import deps
from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.core.limiter import limiter
from app.models.profile import Profile
from app.schemas.registration import (
    MyRegistration,
    Registration,
    RegistrationCheck,
    RegistrationCount,
    RegistrationCreate,
    RegistrationResult,
)
from app.services.payment.intent_bridge import PaymentIntentBridge
from app.services.payment.provider_interface import PaymentProviderInterface
from app.services.registration.service import RegistrationService

router = APIRouter(tags=["Registrations"])


def get_registration_service(
    db: Session = Depends(deps.get_db),
    provider: Optional[PaymentProviderInterface] = Depends(deps.get_payment_provider_optional),
) -> RegistrationService:
    bridge = PaymentIntentBridge(db, provider=provider, currency=settings.PAYMENT_CURRENCY)
    return RegistrationService(db, bridge=bridge)


@router.post(
    "/registrations",
    response_model=RegistrationResult,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.REGISTRATION_RATE_LIMIT)
async def create_registration(
    request: Request,
    registration_in: RegistrationCreate,
    service: RegistrationService = Depends(get_registration_service),
    current_profile: Profile = Depends(deps.get_current_profile),
):
    """
    Register the current user for a published, upcoming event.

    Free events are confirmed immediately and repeating the call returns the
    same registration. Priced events return a `paid` result carrying the
    client secret for the payment form; the registration stays `pending`
    until the payment webhook arrives.
    """
    return await service.register(
        user_id=current_profile.id, registration_in=registration_in
    )


@router.get("/registrations/me", response_model=List[MyRegistration])
def list_my_registrations(
    lang: Optional[str] = Query(None),
    service: RegistrationService = Depends(get_registration_service),
    current_profile: Profile = Depends(deps.get_current_profile),
):
    return service.list_for_user(user_id=current_profile.id, lang=lang)


@router.get("/registrations/events/{event_id}/status", response_model=RegistrationCheck)
def get_registration_status(
    event_id: str,
    db: Session = Depends(deps.get_db),
    current_profile: Profile = Depends(deps.get_current_profile),
):
    registration = crud.registration.get_by_event_and_user(
        db, event_id=event_id, user_id=current_profile.id
    )
    if registration is None:
        return RegistrationCheck(is_registered=False)
    return RegistrationCheck(
        is_registered=registration.status == "confirmed",
        status=registration.status,
        registration_id=registration.id,
        confirmed_at=registration.confirmed_at,
    )


@router.get("/registrations/events/{event_id}/count", response_model=RegistrationCount)
def get_registration_count(event_id: str, db: Session = Depends(deps.get_db)):
    """Number of confirmed registrations for a published event."""
    if crud.event.get_published(db, id_or_slug=event_id) is None:
        raise NotFoundError("Event not found", resource="event")
    return RegistrationCount(
        event_id=event_id,
        count=crud.registration.count_confirmed(db, event_id=event_id),
    )


@router.post("/registrations/{registration_id}/cancel", response_model=Registration)
def cancel_registration(
    registration_id: str,
    service: RegistrationService = Depends(get_registration_service),
    current_profile: Profile = Depends(deps.get_current_profile),
):
    return service.cancel(registration_id=registration_id, user_id=current_profile.id)
