# app/api/v1/endpoints/payments.py
"""
Payment endpoints.

The webhook endpoint is unauthenticated; the provider signature on the raw
body is the only thing that makes a notification trustworthy.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from app.api import deps
from app.schemas.payment import PaymentHealth, WebhookAck
from app.services.payment.provider_interface import PaymentProviderInterface
from app.services.payment.webhook_reconciler import WebhookReconciler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/webhook", response_model=WebhookAck)
async def payment_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    db: Session = Depends(deps.get_db),
    provider: Optional[PaymentProviderInterface] = Depends(deps.get_payment_provider_optional),
):
    # Signature verification needs the exact bytes that were signed
    body = await request.body()
    client_ip = request.client.host if request.client else "unknown"
    logger.debug(f"Payment webhook from {client_ip}")
    return WebhookReconciler(db, provider).handle(body, stripe_signature)


@router.get("/health", response_model=PaymentHealth)
async def payment_health(
    provider: Optional[PaymentProviderInterface] = Depends(deps.get_payment_provider_optional),
):
    if provider is None:
        return PaymentHealth(
            provider="stripe",
            configured=False,
            healthy=False,
            message="Payment provider is not configured",
        )
    result = await provider.health_check()
    return PaymentHealth(
        provider=provider.code,
        configured=True,
        healthy=result.healthy,
        latency_ms=result.latency_ms,
        webhook_configured=provider.webhook_configured,
        message=result.message,
    )
