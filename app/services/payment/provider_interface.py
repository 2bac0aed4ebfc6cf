# app/services/payment/provider_interface.py
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
from dataclasses import dataclass, field
from enum import Enum
from datetime import datetime


class PaymentIntentStatusEnum(str, Enum):
    """Standardized payment intent status."""
    REQUIRES_PAYMENT_METHOD = "requires_payment_method"
    REQUIRES_CONFIRMATION = "requires_confirmation"
    REQUIRES_ACTION = "requires_action"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    CANCELLED = "cancelled"
    FAILED = "failed"


class WebhookEventType(str, Enum):
    """Provider-neutral webhook event types."""
    PAYMENT_SUCCEEDED = "payment_succeeded"
    PAYMENT_FAILED = "payment_failed"
    UNKNOWN = "unknown"


@dataclass
class CreatePaymentIntentParams:
    """Parameters for creating a payment intent."""
    registration_id: str
    amount: int  # In smallest currency unit (cents)
    currency: str  # ISO 4217
    customer_email: str
    description: str
    metadata: Dict[str, str]
    idempotency_key: str


@dataclass
class PaymentIntentResult:
    """Result of creating a payment intent."""
    intent_id: str
    client_secret: str
    status: PaymentIntentStatusEnum


@dataclass
class WebhookEvent:
    """Standardized webhook event."""
    event_id: str
    event_type: WebhookEventType
    provider_event_type: str
    created_at: datetime
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class HealthCheckResult:
    """Health check result."""
    healthy: bool
    latency_ms: float
    message: Optional[str] = None


class PaymentProviderInterface(ABC):
    """
    Interface every payment provider implements.
    Business logic depends only on this, never on a provider SDK.
    """

    @property
    @abstractmethod
    def code(self) -> str:
        """Provider code identifier (e.g., 'stripe')."""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name."""
        pass

    @abstractmethod
    async def create_payment_intent(
        self, params: CreatePaymentIntentParams
    ) -> PaymentIntentResult:
        """
        Create a payment intent for checkout.
        Returns a client-side secret for the payment form.
        """
        pass

    @abstractmethod
    def verify_webhook_signature(self, payload: bytes, signature: str) -> bool:
        """Verify webhook signature."""
        pass

    @abstractmethod
    def parse_webhook_event(self, payload: bytes) -> WebhookEvent:
        """Parse webhook event into standardized format."""
        pass

    @property
    def webhook_configured(self) -> bool:
        return False

    @abstractmethod
    async def health_check(self) -> HealthCheckResult:
        """Health check for the provider."""
        pass


class PaymentError(Exception):
    """Raised by providers for any failed provider call."""

    def __init__(self, code: str, message: str, retryable: bool = False):
        self.code = code
        self.message = message
        self.retryable = retryable
        super().__init__(message)
