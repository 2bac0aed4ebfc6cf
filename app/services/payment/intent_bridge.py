# app/services/payment/intent_bridge.py
"""
Payment intent bridge.

Creates the provider-side payment intent for a pending registration and
attaches the provider's reference to the ledger row in a separate commit.
No database transaction is held open across the provider call.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ServiceUnavailableError
from app.services.payment.provider_interface import (
    CreatePaymentIntentParams,
    PaymentError,
    PaymentProviderInterface,
)
from app.services.registration.ledger import RegistrationLedger

logger = logging.getLogger(__name__)

PAYMENT_UNAVAILABLE_MESSAGE = "Payment service temporarily unavailable. Please try again."


def to_minor_units(amount: Decimal) -> int:
    """
    Convert a decimal major-unit amount into integer minor units.

    Half-up rounding to whole cents, so 25.00 -> 2500 and 10.005 -> 1001.
    """
    value = Decimal(str(amount))
    if value < 0:
        raise ValueError("Amount cannot be negative")
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def idempotency_key_for(registration_id: str, attempt: int) -> str:
    """One provider intent per registration payment cycle."""
    return f"registration_{registration_id}_attempt_{attempt}"


@dataclass
class IntentHandle:
    external_reference: str
    client_secret: str
    amount_in_cents: int
    currency: str


class PaymentIntentBridge:
    def __init__(
        self,
        db: Session,
        provider: PaymentProviderInterface | None,
        currency: str = "usd",
    ):
        self.db = db
        self.provider = provider
        self.currency = currency
        self.ledger = RegistrationLedger(db)

    async def create_intent(self, registration_id: str, amount: Decimal) -> IntentHandle:
        """
        Create the intent and attach its reference to the registration.

        Provider failures surface as ServiceUnavailableError and leave the
        row pending with no reference.
        """
        if self.provider is None:
            logger.error("Payment requested but no payment provider is configured")
            raise ServiceUnavailableError(PAYMENT_UNAVAILABLE_MESSAGE, service="payments")

        registration = self.ledger.get(registration_id)
        if registration is None:
            raise NotFoundError("Registration not found", resource="registration")

        amount_in_cents = to_minor_units(amount)
        params = CreatePaymentIntentParams(
            registration_id=registration.id,
            amount=amount_in_cents,
            currency=self.currency,
            customer_email=registration.attendee_email,
            description=f"Event registration {registration.event_id}",
            metadata={
                "eventId": registration.event_id,
                "registrationId": registration.id,
                "userId": registration.user_id,
                "attendeeEmail": registration.attendee_email,
            },
            idempotency_key=idempotency_key_for(
                registration.id, registration.payment_attempts
            ),
        )

        try:
            result = await self.provider.create_payment_intent(params)
        except PaymentError as e:
            logger.error(
                f"Payment intent creation failed for {registration.id}: "
                f"{e.code} (retryable={e.retryable})"
            )
            raise ServiceUnavailableError(PAYMENT_UNAVAILABLE_MESSAGE, service="payments")

        self.ledger.attach_reference(registration.id, result.intent_id)
        logger.info(
            f"Payment intent {result.intent_id} created for registration "
            f"{registration.id} ({amount_in_cents} {self.currency})"
        )

        return IntentHandle(
            external_reference=result.intent_id,
            client_secret=result.client_secret,
            amount_in_cents=amount_in_cents,
            currency=self.currency,
        )
