# app/schemas/payment.py
from enum import Enum
from typing import Optional

from app.schemas.base import CamelModel


class WebhookOutcome(str, Enum):
    processed = "processed"
    ignored = "ignored"
    processing_error = "processing_error"


class WebhookAck(CamelModel):
    received: bool = True
    status: WebhookOutcome


class PaymentHealth(CamelModel):
    provider: str
    configured: bool
    healthy: bool
    latency_ms: float = 0
    webhook_configured: bool = False
    message: Optional[str] = None
