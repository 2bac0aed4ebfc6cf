# app/services/registration/ledger.py
"""
Registration ledger.

Owns the lifecycle of the single registration row per (event, user):

    pending   -> confirmed | failed | cancelled
    confirmed -> refunded
    failed, cancelled -> confirmed       (late success: the money was taken)
    failed, cancelled, refunded -> pending   (retry, same row via upsert)

Status writes are conditional UPDATEs on the current status, so replayed
or out-of-order webhook deliveries can never move a row backwards.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy.orm import Session

from app import crud
from app.models.registration import EventRegistration
from app.schemas.registration import RegistrationStatus
from app.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

S = RegistrationStatus

ALLOWED_TRANSITIONS: Dict[RegistrationStatus, FrozenSet[RegistrationStatus]] = {
    S.pending: frozenset({S.confirmed, S.failed, S.cancelled}),
    S.confirmed: frozenset({S.refunded}),
    S.failed: frozenset({S.confirmed, S.pending}),
    S.cancelled: frozenset({S.confirmed, S.pending}),
    S.refunded: frozenset({S.pending}),
}


def sources_of(target: RegistrationStatus) -> List[RegistrationStatus]:
    """Statuses from which `target` may be reached."""
    return [status for status, targets in ALLOWED_TRANSITIONS.items() if target in targets]


class TransitionOutcome(str, Enum):
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    NOT_FOUND = "not_found"
    STALE = "stale"
    REJECTED = "rejected"


@dataclass
class Attendee:
    """Contact snapshot stored on the registration, independent of the profile."""
    name: str
    email: str
    phone: Optional[str] = None


class RegistrationLedger:
    def __init__(self, db: Session):
        self.db = db

    def get(self, registration_id: str) -> EventRegistration | None:
        return crud.registration.get(self.db, registration_id)

    def get_for_user(self, *, event_id: str, user_id: str) -> EventRegistration | None:
        return crud.registration.get_by_event_and_user(
            self.db, event_id=event_id, user_id=user_id
        )

    def record_free(
        self, *, event_id: str, user_id: str, attendee: Attendee
    ) -> EventRegistration:
        """Upsert straight to confirmed. Free registrations never carry a payment reference."""
        registration = crud.registration.upsert(
            self.db,
            event_id=event_id,
            user_id=user_id,
            values={
                "status": S.confirmed.value,
                "amount": Decimal("0"),
                "confirmed_at": utcnow(),
                "payment_reference": None,
                **self._snapshot(attendee),
            },
        )
        logger.info(f"Registration {registration.id} confirmed (free event {event_id})")
        return registration

    def record_pending(
        self, *, event_id: str, user_id: str, amount: Decimal, attendee: Attendee
    ) -> EventRegistration:
        """
        Upsert a new pending payment cycle and commit it before any provider
        call. A confirmed row is left untouched and returned as is.
        """
        registration = crud.registration.upsert(
            self.db,
            event_id=event_id,
            user_id=user_id,
            values={
                "status": S.pending.value,
                "amount": amount,
                "confirmed_at": None,
                "payment_reference": None,
                **self._snapshot(attendee),
            },
            bump_attempts=True,
        )
        logger.info(
            f"Registration {registration.id} pending for event {event_id} "
            f"(attempt {registration.payment_attempts})"
        )
        return registration

    def attach_reference(self, registration_id: str, payment_reference: str) -> bool:
        attached = crud.registration.attach_payment_reference(
            self.db, registration_id=registration_id, payment_reference=payment_reference
        )
        if not attached:
            logger.warning(
                f"Payment reference not attached to {registration_id}: no longer pending"
            )
        return attached

    def confirm_payment(
        self, registration_id: str, payment_reference: Optional[str]
    ) -> TransitionOutcome:
        """
        Apply a successful payment. The intent that actually succeeded
        becomes the row's payment reference.
        """
        registration = self.get(registration_id)
        if registration is None:
            return TransitionOutcome.NOT_FOUND
        if registration.status == S.confirmed.value:
            return TransitionOutcome.ALREADY_APPLIED

        if (
            payment_reference
            and registration.payment_reference
            and registration.payment_reference != payment_reference
        ):
            logger.warning(
                f"Registration {registration_id} confirmed by intent {payment_reference}, "
                f"current reference is {registration.payment_reference}"
            )

        values = {"status": S.confirmed.value, "confirmed_at": utcnow()}
        if payment_reference:
            values["payment_reference"] = payment_reference
        return self._apply(registration_id, S.confirmed, values)

    def fail_payment(
        self, registration_id: str, payment_reference: Optional[str]
    ) -> TransitionOutcome:
        """
        Apply a failed payment. Only the intent currently attached to the row
        can fail it; failures from superseded intents are stale.
        """
        registration = self.get(registration_id)
        if registration is None:
            return TransitionOutcome.NOT_FOUND
        if registration.status == S.failed.value:
            return TransitionOutcome.ALREADY_APPLIED
        if not payment_reference or registration.payment_reference != payment_reference:
            return TransitionOutcome.STALE

        changed = crud.registration.transition(
            self.db,
            registration_id=registration_id,
            from_statuses=sources_of(S.failed),
            values={"status": S.failed.value},
            payment_reference=payment_reference,
        )
        if changed:
            logger.info(f"Registration {registration_id} -> failed ({payment_reference})")
            return TransitionOutcome.APPLIED
        return self._settle(registration_id, S.failed)

    def cancel(self, registration_id: str) -> TransitionOutcome:
        registration = self.get(registration_id)
        if registration is None:
            return TransitionOutcome.NOT_FOUND
        if registration.status == S.cancelled.value:
            return TransitionOutcome.ALREADY_APPLIED
        return self._apply(registration_id, S.cancelled, {"status": S.cancelled.value})

    def _apply(self, registration_id: str, target: RegistrationStatus, values: dict) -> TransitionOutcome:
        changed = crud.registration.transition(
            self.db,
            registration_id=registration_id,
            from_statuses=sources_of(target),
            values=values,
        )
        if changed:
            logger.info(f"Registration {registration_id} -> {target.value}")
            return TransitionOutcome.APPLIED
        return self._settle(registration_id, target)

    def _settle(self, registration_id: str, target: RegistrationStatus) -> TransitionOutcome:
        """A conditional write matched nothing: find out whether someone beat us to it."""
        registration = self.get(registration_id)
        if registration is None:
            return TransitionOutcome.NOT_FOUND
        self.db.refresh(registration)
        if registration.status == target.value:
            return TransitionOutcome.ALREADY_APPLIED
        logger.info(
            f"Registration {registration_id} not moved to {target.value} "
            f"from {registration.status}"
        )
        return TransitionOutcome.REJECTED

    @staticmethod
    def _snapshot(attendee: Attendee) -> dict:
        return {
            "attendee_name": attendee.name,
            "attendee_email": attendee.email,
            "attendee_phone": attendee.phone,
        }
