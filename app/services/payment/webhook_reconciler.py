# app/services/payment/webhook_reconciler.py
"""
Webhook reconciler.

Turns signed payment-provider notifications into ledger transitions.

Response policy:
- not configured: 503
- missing or invalid signature: 400, the provider does not retry
- storage unreachable: 503, the provider retries
- anything else once the signature is valid: acknowledged, so a
  permanently unprocessable event cannot cause a retry storm
"""
import logging
from typing import Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ServiceUnavailableError, WebhookSignatureError
from app.schemas.payment import WebhookAck, WebhookOutcome
from app.services.payment.provider_interface import (
    PaymentError,
    PaymentProviderInterface,
    WebhookEvent,
    WebhookEventType,
)
from app.services.registration.ledger import RegistrationLedger, TransitionOutcome

logger = logging.getLogger(__name__)

HANDLED_EVENTS = (WebhookEventType.PAYMENT_SUCCEEDED, WebhookEventType.PAYMENT_FAILED)


class WebhookReconciler:
    def __init__(self, db: Session, provider: Optional[PaymentProviderInterface]):
        self.db = db
        self.provider = provider
        self.ledger = RegistrationLedger(db)

    def handle(self, raw_body: bytes, signature: Optional[str]) -> WebhookAck:
        if self.provider is None or not self.provider.webhook_configured:
            logger.error("Webhook received but payment webhooks are not configured")
            raise ServiceUnavailableError("Webhook processing is not configured", service="payments")

        if not raw_body or not signature:
            logger.warning("Webhook received without body or signature")
            raise WebhookSignatureError("Missing body or signature")

        if not self.provider.verify_webhook_signature(raw_body, signature):
            logger.warning("Webhook signature verification failed")
            raise WebhookSignatureError()

        try:
            event = self.provider.parse_webhook_event(raw_body)
        except PaymentError as e:
            logger.error(f"Verified webhook could not be parsed: {e.message}")
            return WebhookAck(status=WebhookOutcome.processing_error)

        logger.info(f"Webhook {event.event_id} received: {event.provider_event_type}")

        if event.event_type not in HANDLED_EVENTS:
            logger.info(f"Ignoring webhook {event.event_id} of type {event.provider_event_type}")
            return WebhookAck(status=WebhookOutcome.ignored)

        registration_id = (event.data.get("metadata") or {}).get("registrationId")
        if not registration_id:
            logger.error(
                f"Webhook {event.event_id} ({event.provider_event_type}) has no "
                f"registrationId in metadata"
            )
            return WebhookAck(status=WebhookOutcome.ignored)

        try:
            outcome = self._apply(event, registration_id)
        except OperationalError as e:
            self.db.rollback()
            logger.error(f"Database unavailable while processing webhook {event.event_id}: {e}")
            raise ServiceUnavailableError("Database temporarily unavailable", service="database")
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Error processing webhook {event.event_id}")
            return WebhookAck(status=WebhookOutcome.processing_error)

        if outcome in (TransitionOutcome.APPLIED, TransitionOutcome.ALREADY_APPLIED):
            return WebhookAck(status=WebhookOutcome.processed)

        logger.warning(
            f"Webhook {event.event_id} not applied to registration {registration_id}: "
            f"{outcome.value}"
        )
        return WebhookAck(status=WebhookOutcome.ignored)

    def _apply(self, event: WebhookEvent, registration_id: str) -> TransitionOutcome:
        intent_id = event.data.get("paymentIntentId")
        if event.event_type == WebhookEventType.PAYMENT_SUCCEEDED:
            return self.ledger.confirm_payment(registration_id, intent_id)
        return self.ledger.fail_payment(registration_id, intent_id)
