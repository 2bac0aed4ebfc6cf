# app/services/registration/service.py
"""
Registration flow: validates the event, writes the ledger and, for priced
events, hands over to the payment intent bridge.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from app import crud
from app.core import languages
from app.core.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from app.models.event import Event
from app.models.registration import EventRegistration
from app.schemas.registration import (
    FreeRegistrationResult,
    MyRegistration,
    PaidRegistrationResult,
    RegisteredEvent,
    RegistrationCreate,
    RegistrationStatus,
)
from app.services.content.resolver import EVENT, ContentResolver
from app.services.payment.intent_bridge import PaymentIntentBridge
from app.services.registration.ledger import Attendee, RegistrationLedger, TransitionOutcome
from app.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)

ALREADY_REGISTERED_MESSAGE = "You are already registered for this event"


class RegistrationService:
    def __init__(self, db: Session, bridge: Optional[PaymentIntentBridge] = None):
        self.db = db
        self.bridge = bridge or PaymentIntentBridge(db, provider=None)
        self.ledger = RegistrationLedger(db)

    def _validate_event(self, event_id: str) -> Event:
        event = crud.event.get(self.db, event_id)
        if event is None:
            raise NotFoundError("Event not found", resource="event")
        if event.status != "published":
            raise ValidationError("Event is not available for registration")
        if as_utc(event.starts_at) <= utcnow():
            raise ValidationError("Cannot register for past events")
        return event

    def _check_capacity(self, event: Event) -> None:
        if event.capacity is None:
            return
        if crud.registration.count_confirmed(self.db, event_id=event.id) >= event.capacity:
            logger.info(f"Registration rejected: event {event.id} is at capacity {event.capacity}")
            raise ConflictError("This event is full")

    async def register(
        self, *, user_id: str, registration_in: RegistrationCreate
    ) -> Union[FreeRegistrationResult, PaidRegistrationResult]:
        event = self._validate_event(registration_in.event_id)
        attendee = Attendee(
            name=registration_in.attendee_name,
            email=registration_in.attendee_email,
            phone=registration_in.attendee_phone,
        )
        existing = self.ledger.get_for_user(event_id=event.id, user_id=user_id)
        price = Decimal(event.price or 0)

        if price <= 0:
            # Repeating a free registration is a read, not a second write
            if existing is not None and existing.status == RegistrationStatus.confirmed.value:
                return FreeRegistrationResult(
                    registration_id=existing.id, status=RegistrationStatus.confirmed
                )
            self._check_capacity(event)
            registration = self.ledger.record_free(
                event_id=event.id, user_id=user_id, attendee=attendee
            )
            return FreeRegistrationResult(
                registration_id=registration.id,
                status=RegistrationStatus(registration.status),
            )

        if existing is not None and existing.status == RegistrationStatus.confirmed.value:
            raise ConflictError(ALREADY_REGISTERED_MESSAGE)
        self._check_capacity(event)

        registration = self.ledger.record_pending(
            event_id=event.id, user_id=user_id, amount=price, attendee=attendee
        )
        if registration.status == RegistrationStatus.confirmed.value:
            # Confirmed concurrently between our read and the upsert
            raise ConflictError(ALREADY_REGISTERED_MESSAGE)

        handle = await self.bridge.create_intent(registration.id, price)
        return PaidRegistrationResult(
            registration_id=registration.id,
            client_secret=handle.client_secret,
            amount=price,
            amount_in_cents=handle.amount_in_cents,
            currency=handle.currency,
        )

    def cancel(self, *, registration_id: str, user_id: str) -> EventRegistration:
        """Owner withdraws a registration that is still awaiting payment."""
        registration = self.ledger.get(registration_id)
        if registration is None:
            raise NotFoundError("Registration not found", resource="registration")
        if registration.user_id != user_id:
            raise ForbiddenError("You can only cancel your own registrations")

        outcome = self.ledger.cancel(registration_id)
        if outcome == TransitionOutcome.REJECTED:
            raise ConflictError(
                f"Registration cannot be cancelled while {registration.status}"
            )
        self.db.refresh(registration)
        return registration

    def list_for_user(self, *, user_id: str, lang: Optional[str]) -> List[MyRegistration]:
        """The user's registrations with event titles in the requested language."""
        registrations = crud.registration.get_multi_by_user(self.db, user_id=user_id)
        if not registrations:
            return []

        event_ids = list(dict.fromkeys(r.event_id for r in registrations))
        events = {e.id: e for e in crud.event.get_multi_by_ids(self.db, ids=event_ids)}
        resolved = {
            r.entity_id: r
            for r in ContentResolver(self.db, EVENT).resolve_many(event_ids, lang)
        }

        result = []
        for registration in registrations:
            event = events.get(registration.event_id)
            if event is None:
                continue
            content = resolved.get(event.id)
            result.append(
                MyRegistration(
                    id=registration.id,
                    status=registration.status,
                    amount=registration.amount,
                    created_at=registration.created_at,
                    confirmed_at=registration.confirmed_at,
                    event=RegisteredEvent(
                        id=event.id,
                        slug=event.slug,
                        type=event.type,
                        starts_at=event.starts_at,
                        ends_at=event.ends_at,
                        location=event.location,
                        banner_url=event.banner_url,
                        title=content.translation.title if content else None,
                        description=content.translation.description if content else None,
                        lang=content.language_served if content else languages.normalize(lang),
                        is_fallback=content.is_fallback if content else False,
                    ),
                )
            )
        return result
