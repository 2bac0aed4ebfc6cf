from decimal import Decimal

from app.schemas.registration import RegistrationStatus
from app.services.registration.ledger import (
    ALLOWED_TRANSITIONS,
    Attendee,
    RegistrationLedger,
    TransitionOutcome,
    sources_of,
)
from tests.utils.content import create_event

ATTENDEE = Attendee(name="Ada Lovelace", email="ada@example.com", phone="+1 555 0100")


def _pending(db, ledger, user_id="user_1", amount=Decimal("25.00")):
    event = create_event(db, price=amount)
    return ledger.record_pending(
        event_id=event.id, user_id=user_id, amount=amount, attendee=ATTENDEE
    )


def test_transition_table():
    S = RegistrationStatus
    assert ALLOWED_TRANSITIONS[S.pending] == {S.confirmed, S.failed, S.cancelled}
    assert ALLOWED_TRANSITIONS[S.confirmed] == {S.refunded}
    assert S.confirmed in ALLOWED_TRANSITIONS[S.failed]
    assert set(sources_of(S.pending)) == {S.failed, S.cancelled, S.refunded}
    assert sources_of(S.confirmed) == [S.pending, S.failed, S.cancelled]


def test_record_free_confirms_immediately(db):
    ledger = RegistrationLedger(db)
    event = create_event(db)

    registration = ledger.record_free(event_id=event.id, user_id="user_1", attendee=ATTENDEE)

    assert registration.status == "confirmed"
    assert registration.confirmed_at is not None
    assert registration.amount == Decimal("0")
    assert registration.payment_reference is None
    assert registration.attendee_email == "ada@example.com"


def test_record_free_twice_keeps_one_row(db):
    ledger = RegistrationLedger(db)
    event = create_event(db)

    first = ledger.record_free(event_id=event.id, user_id="user_1", attendee=ATTENDEE)
    second = ledger.record_free(event_id=event.id, user_id="user_1", attendee=ATTENDEE)

    assert first.id == second.id


def test_record_pending_starts_a_payment_cycle(db):
    ledger = RegistrationLedger(db)

    registration = _pending(db, ledger)

    assert registration.status == "pending"
    assert registration.amount == Decimal("25.00")
    assert registration.payment_attempts == 1
    assert registration.payment_reference is None
    assert registration.confirmed_at is None


def test_retry_after_failure_reuses_row_and_bumps_attempt(db):
    ledger = RegistrationLedger(db)
    registration = _pending(db, ledger)
    ledger.attach_reference(registration.id, "pi_first")
    assert ledger.fail_payment(registration.id, "pi_first") == TransitionOutcome.APPLIED

    retried = ledger.record_pending(
        event_id=registration.event_id,
        user_id="user_1",
        amount=Decimal("25.00"),
        attendee=ATTENDEE,
    )

    assert retried.id == registration.id
    assert retried.status == "pending"
    assert retried.payment_attempts == 2
    assert retried.payment_reference is None


def test_record_pending_never_overwrites_confirmed(db):
    ledger = RegistrationLedger(db)
    registration = _pending(db, ledger)
    ledger.confirm_payment(registration.id, "pi_paid")

    again = ledger.record_pending(
        event_id=registration.event_id,
        user_id="user_1",
        amount=Decimal("25.00"),
        attendee=ATTENDEE,
    )

    assert again.id == registration.id
    assert again.status == "confirmed"
    assert again.payment_reference == "pi_paid"
    assert again.payment_attempts == 1


def test_attach_reference_only_while_pending(db):
    ledger = RegistrationLedger(db)
    registration = _pending(db, ledger)

    assert ledger.attach_reference(registration.id, "pi_1") is True
    ledger.cancel(registration.id)
    assert ledger.attach_reference(registration.id, "pi_2") is False

    db.refresh(registration)
    assert registration.payment_reference == "pi_1"


def test_confirm_payment_applies_once(db):
    ledger = RegistrationLedger(db)
    registration = _pending(db, ledger)
    ledger.attach_reference(registration.id, "pi_1")

    assert ledger.confirm_payment(registration.id, "pi_1") == TransitionOutcome.APPLIED
    db.refresh(registration)
    confirmed_at = registration.confirmed_at

    assert ledger.confirm_payment(registration.id, "pi_1") == TransitionOutcome.ALREADY_APPLIED
    db.refresh(registration)
    assert registration.status == "confirmed"
    assert registration.confirmed_at == confirmed_at


def test_confirm_payment_records_the_succeeding_intent(db):
    ledger = RegistrationLedger(db)
    registration = _pending(db, ledger)
    ledger.attach_reference(registration.id, "pi_current")

    assert ledger.confirm_payment(registration.id, "pi_older") == TransitionOutcome.APPLIED

    db.refresh(registration)
    assert registration.status == "confirmed"
    assert registration.payment_reference == "pi_older"


def test_late_success_after_failure_confirms(db):
    ledger = RegistrationLedger(db)
    registration = _pending(db, ledger)
    ledger.attach_reference(registration.id, "pi_1")
    ledger.fail_payment(registration.id, "pi_1")

    assert ledger.confirm_payment(registration.id, "pi_1") == TransitionOutcome.APPLIED
    db.refresh(registration)
    assert registration.status == "confirmed"


def test_failure_after_confirmation_is_rejected(db):
    ledger = RegistrationLedger(db)
    registration = _pending(db, ledger)
    ledger.attach_reference(registration.id, "pi_1")
    ledger.confirm_payment(registration.id, "pi_1")

    assert ledger.fail_payment(registration.id, "pi_1") == TransitionOutcome.REJECTED
    db.refresh(registration)
    assert registration.status == "confirmed"


def test_failure_from_superseded_intent_is_stale(db):
    ledger = RegistrationLedger(db)
    registration = _pending(db, ledger)
    ledger.attach_reference(registration.id, "pi_new")

    assert ledger.fail_payment(registration.id, "pi_old") == TransitionOutcome.STALE
    assert ledger.fail_payment(registration.id, None) == TransitionOutcome.STALE
    db.refresh(registration)
    assert registration.status == "pending"


def test_repeated_failure_is_already_applied(db):
    ledger = RegistrationLedger(db)
    registration = _pending(db, ledger)
    ledger.attach_reference(registration.id, "pi_1")

    assert ledger.fail_payment(registration.id, "pi_1") == TransitionOutcome.APPLIED
    assert ledger.fail_payment(registration.id, "pi_1") == TransitionOutcome.ALREADY_APPLIED


def test_cancel(db):
    ledger = RegistrationLedger(db)
    registration = _pending(db, ledger)

    assert ledger.cancel(registration.id) == TransitionOutcome.APPLIED
    assert ledger.cancel(registration.id) == TransitionOutcome.ALREADY_APPLIED


def test_cancel_confirmed_is_rejected(db):
    ledger = RegistrationLedger(db)
    event = create_event(db)
    registration = ledger.record_free(event_id=event.id, user_id="user_1", attendee=ATTENDEE)

    assert ledger.cancel(registration.id) == TransitionOutcome.REJECTED


def test_unknown_registration(db):
    ledger = RegistrationLedger(db)

    assert ledger.confirm_payment("reg_missing", "pi_1") == TransitionOutcome.NOT_FOUND
    assert ledger.fail_payment("reg_missing", "pi_1") == TransitionOutcome.NOT_FOUND
    assert ledger.cancel("reg_missing") == TransitionOutcome.NOT_FOUND
