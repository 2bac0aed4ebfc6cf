from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.core.exceptions import ServiceUnavailableError, WebhookSignatureError
from app.schemas.payment import WebhookOutcome
from app.services.payment.provider_interface import PaymentError
from app.services.payment.webhook_reconciler import WebhookReconciler
from app.services.registration.ledger import Attendee, RegistrationLedger
from tests.utils.content import create_event
from tests.utils.webhook import make_stripe_provider, payment_intent_event, sign_payload


def _pending_with_reference(db, reference="pi_test_001"):
    event = create_event(db, price=Decimal("25.00"))
    ledger = RegistrationLedger(db)
    registration = ledger.record_pending(
        event_id=event.id,
        user_id="user_1",
        amount=Decimal("25.00"),
        attendee=Attendee(name="Ada", email="ada@example.com"),
    )
    ledger.attach_reference(registration.id, reference)
    return registration


def _deliver(db, payload, provider=None, signature=None):
    reconciler = WebhookReconciler(db, provider or make_stripe_provider())
    return reconciler.handle(payload, signature or sign_payload(payload))


def test_success_confirms_registration(db):
    registration = _pending_with_reference(db)
    payload = payment_intent_event("payment_intent.succeeded", registration.id)

    ack = _deliver(db, payload)

    assert ack.received is True
    assert ack.status == WebhookOutcome.processed
    db.refresh(registration)
    assert registration.status == "confirmed"
    assert registration.confirmed_at is not None


def test_replayed_success_is_idempotent(db):
    registration = _pending_with_reference(db)
    payload = payment_intent_event("payment_intent.succeeded", registration.id)

    _deliver(db, payload)
    db.refresh(registration)
    confirmed_at = registration.confirmed_at
    ack = _deliver(db, payload)

    assert ack.status == WebhookOutcome.processed
    db.refresh(registration)
    assert registration.status == "confirmed"
    assert registration.confirmed_at == confirmed_at


def test_failure_marks_registration_failed(db):
    registration = _pending_with_reference(db)
    payload = payment_intent_event("payment_intent.payment_failed", registration.id)

    ack = _deliver(db, payload)

    assert ack.status == WebhookOutcome.processed
    db.refresh(registration)
    assert registration.status == "failed"


def test_failure_after_success_does_not_demote(db):
    registration = _pending_with_reference(db)
    _deliver(db, payment_intent_event("payment_intent.succeeded", registration.id))

    ack = _deliver(
        db,
        payment_intent_event(
            "payment_intent.payment_failed", registration.id, event_id="evt_test_002"
        ),
    )

    assert ack.status == WebhookOutcome.ignored
    db.refresh(registration)
    assert registration.status == "confirmed"


def test_success_after_cancel_confirms_registration(db):
    registration = _pending_with_reference(db)
    RegistrationLedger(db).cancel(registration.id)
    payload = payment_intent_event("payment_intent.succeeded", registration.id)

    ack = _deliver(db, payload)

    assert ack.status == WebhookOutcome.processed
    db.refresh(registration)
    assert registration.status == "confirmed"
    assert registration.payment_reference == "pi_test_001"
    assert registration.confirmed_at is not None


def test_stale_failure_is_ignored(db):
    registration = _pending_with_reference(db, reference="pi_current")
    payload = payment_intent_event(
        "payment_intent.payment_failed", registration.id, intent_id="pi_superseded"
    )

    ack = _deliver(db, payload)

    assert ack.status == WebhookOutcome.ignored
    db.refresh(registration)
    assert registration.status == "pending"


def test_unhandled_event_type_is_acknowledged(db):
    payload = payment_intent_event("charge.refunded", "reg_whatever")

    ack = _deliver(db, payload)

    assert ack.status == WebhookOutcome.ignored


def test_missing_registration_metadata_is_ignored(db):
    payload = payment_intent_event("payment_intent.succeeded", None)

    ack = _deliver(db, payload)

    assert ack.status == WebhookOutcome.ignored


def test_unknown_registration_is_ignored(db):
    payload = payment_intent_event("payment_intent.succeeded", "reg_missing")

    ack = _deliver(db, payload)

    assert ack.status == WebhookOutcome.ignored


def test_invalid_signature_is_rejected(db):
    registration = _pending_with_reference(db)
    payload = payment_intent_event("payment_intent.succeeded", registration.id)

    with pytest.raises(WebhookSignatureError):
        _deliver(db, payload, signature=sign_payload(payload, secret="whsec_wrong"))

    db.refresh(registration)
    assert registration.status == "pending"


def test_tampered_body_is_rejected(db):
    registration = _pending_with_reference(db)
    payload = payment_intent_event("payment_intent.succeeded", registration.id)
    signature = sign_payload(payload)
    tampered = payload.replace(b"2500", b"1")

    with pytest.raises(WebhookSignatureError):
        WebhookReconciler(db, make_stripe_provider()).handle(tampered, signature)


def test_missing_signature_is_rejected(db):
    payload = payment_intent_event("payment_intent.succeeded", "reg_1")

    with pytest.raises(WebhookSignatureError):
        WebhookReconciler(db, make_stripe_provider()).handle(payload, None)


def test_unconfigured_webhooks_are_unavailable(db):
    payload = payment_intent_event("payment_intent.succeeded", "reg_1")

    with pytest.raises(ServiceUnavailableError):
        WebhookReconciler(db, make_stripe_provider(webhook_secret=None)).handle(
            payload, sign_payload(payload)
        )
    with pytest.raises(ServiceUnavailableError):
        WebhookReconciler(db, None).handle(payload, sign_payload(payload))


def test_unreachable_database_asks_for_retry(db):
    registration = _pending_with_reference(db)
    payload = payment_intent_event("payment_intent.succeeded", registration.id)
    reconciler = WebhookReconciler(db, make_stripe_provider())

    with patch.object(
        reconciler.ledger,
        "confirm_payment",
        side_effect=OperationalError("SELECT 1", {}, Exception("connection refused")),
    ):
        with pytest.raises(ServiceUnavailableError):
            reconciler.handle(payload, sign_payload(payload))


def test_other_storage_errors_are_acknowledged(db):
    registration = _pending_with_reference(db)
    payload = payment_intent_event("payment_intent.succeeded", registration.id)
    reconciler = WebhookReconciler(db, make_stripe_provider())

    with patch.object(
        reconciler.ledger,
        "confirm_payment",
        side_effect=ProgrammingError("UPDATE", {}, Exception("bad column")),
    ):
        ack = reconciler.handle(payload, sign_payload(payload))

    assert ack.status == WebhookOutcome.processing_error


def test_unparseable_verified_body_is_acknowledged(db):
    provider = MagicMock()
    provider.webhook_configured = True
    provider.verify_webhook_signature.return_value = True
    provider.parse_webhook_event.side_effect = PaymentError(
        code="PARSE_ERROR", message="Could not parse webhook event"
    )

    ack = WebhookReconciler(db, provider).handle(b"{}", "t=1,v1=abc")

    assert ack.status == WebhookOutcome.processing_error
