# app/services/payment/providers/stripe_provider.py
import json
import stripe
import time
import logging
from typing import Dict, Any
from datetime import datetime, timezone
from dataclasses import dataclass

from ..provider_interface import (
    PaymentProviderInterface,
    CreatePaymentIntentParams,
    PaymentIntentResult,
    PaymentIntentStatusEnum,
    PaymentError,
    WebhookEvent,
    WebhookEventType,
    HealthCheckResult,
)

logger = logging.getLogger(__name__)


@dataclass
class StripeConfig:
    """Configuration for Stripe provider."""
    secret_key: str
    webhook_secret: str | None = None
    api_version: str = "2023-10-16"
    max_retries: int = 2
    webhook_tolerance: int = 300


# Mapping from Stripe payment intent status to our standardized status
STRIPE_STATUS_MAP: Dict[str, PaymentIntentStatusEnum] = {
    "requires_payment_method": PaymentIntentStatusEnum.REQUIRES_PAYMENT_METHOD,
    "requires_confirmation": PaymentIntentStatusEnum.REQUIRES_CONFIRMATION,
    "requires_action": PaymentIntentStatusEnum.REQUIRES_ACTION,
    "processing": PaymentIntentStatusEnum.PROCESSING,
    "succeeded": PaymentIntentStatusEnum.SUCCEEDED,
    "canceled": PaymentIntentStatusEnum.CANCELLED,
}

# Mapping from Stripe event types to our standardized event types
STRIPE_EVENT_MAP: Dict[str, WebhookEventType] = {
    "payment_intent.succeeded": WebhookEventType.PAYMENT_SUCCEEDED,
    "payment_intent.payment_failed": WebhookEventType.PAYMENT_FAILED,
}


class StripeProvider(PaymentProviderInterface):
    """
    Stripe implementation of PaymentProviderInterface.

    SECURITY NOTES:
    - Never log card details or client secrets
    - Always verify webhook signatures
    - Use idempotency keys for all mutations
    """

    def __init__(self, config: StripeConfig):
        self._config = config

        # Initialize Stripe with locked API version
        stripe.api_key = config.secret_key
        stripe.api_version = config.api_version
        stripe.max_network_retries = config.max_retries

    @property
    def code(self) -> str:
        return "stripe"

    @property
    def name(self) -> str:
        return "Stripe"

    @property
    def webhook_configured(self) -> bool:
        return bool(self._config.webhook_secret)

    async def create_payment_intent(
        self, params: CreatePaymentIntentParams
    ) -> PaymentIntentResult:
        """
        Create a Stripe PaymentIntent.

        The idempotency key makes a retried request return the same intent.
        """
        try:
            intent = stripe.PaymentIntent.create(
                amount=params.amount,
                currency=params.currency.lower(),
                description=params.description,
                receipt_email=params.customer_email,
                metadata=params.metadata,
                automatic_payment_methods={"enabled": True},
                idempotency_key=params.idempotency_key,
            )

            status = STRIPE_STATUS_MAP.get(
                intent.status, PaymentIntentStatusEnum.REQUIRES_PAYMENT_METHOD
            )

            return PaymentIntentResult(
                intent_id=intent.id,
                client_secret=intent.client_secret,
                status=status,
            )

        except stripe.RateLimitError as e:
            logger.error(f"Rate limit error: {e}")
            raise PaymentError(
                code="RATE_LIMIT",
                message="Too many requests. Please try again.",
                retryable=True,
            )
        except stripe.InvalidRequestError as e:
            logger.error(f"Invalid request error: {e}")
            raise PaymentError(
                code="INVALID_REQUEST",
                message=str(e),
                retryable=False,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating payment intent: {e}")
            raise PaymentError(
                code="PROVIDER_ERROR",
                message="Payment provider error",
                retryable=True,
            )

    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify Stripe webhook signature."""
        if not self._config.webhook_secret:
            return False
        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                signature,
                self._config.webhook_secret,
                self._config.webhook_tolerance,
            )
            return True
        except stripe.SignatureVerificationError:
            return False
        except UnicodeDecodeError:
            logger.warning("Webhook payload is not valid UTF-8")
            return False

    def parse_webhook_event(self, payload: bytes) -> WebhookEvent:
        """Parse a verified Stripe webhook payload into standardized format."""
        try:
            event = json.loads(payload.decode("utf-8"))
            provider_type = event["type"]
            data_object = event.get("data", {}).get("object", {}) or {}

            data: Dict[str, Any] = {
                "status": data_object.get("status"),
                "metadata": data_object.get("metadata") or {},
            }
            object_id = data_object.get("id") or ""
            if object_id.startswith("pi_"):
                data["paymentIntentId"] = object_id
                data["amount"] = data_object.get("amount")
                data["currency"] = (data_object.get("currency") or "").upper()

            last_error = data_object.get("last_payment_error")
            if last_error:
                data["failureCode"] = last_error.get("code")
                data["failureMessage"] = last_error.get("message")

            return WebhookEvent(
                event_id=event["id"],
                event_type=STRIPE_EVENT_MAP.get(provider_type, WebhookEventType.UNKNOWN),
                provider_event_type=provider_type,
                created_at=datetime.fromtimestamp(
                    event.get("created") or time.time(), tz=timezone.utc
                ),
                data=data,
            )

        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Error parsing webhook event: {e}")
            raise PaymentError(
                code="PARSE_ERROR",
                message="Could not parse webhook event",
                retryable=False,
            )

    async def health_check(self) -> HealthCheckResult:
        """Health check for Stripe API."""
        try:
            start_time = time.time()
            # Simple balance retrieval to check API connectivity
            stripe.Balance.retrieve()
            latency_ms = (time.time() - start_time) * 1000

            return HealthCheckResult(
                healthy=True,
                latency_ms=latency_ms,
                message="Stripe API is healthy",
            )
        except stripe.AuthenticationError:
            return HealthCheckResult(
                healthy=False,
                latency_ms=0,
                message="Invalid Stripe API key",
            )
        except stripe.StripeError as e:
            return HealthCheckResult(
                healthy=False,
                latency_ms=0,
                message=f"Stripe API error: {str(e)}",
            )
