import asyncio
import json
from unittest.mock import MagicMock, patch

import pytest
import stripe

from app.services.payment.provider_factory import PaymentProviderFactory
from app.services.payment.provider_interface import (
    CreatePaymentIntentParams,
    PaymentError,
    PaymentIntentStatusEnum,
    WebhookEventType,
)
from tests.utils.webhook import make_stripe_provider, payment_intent_event, sign_payload


def run_async(coro):
    """Helper to run async coroutines in sync tests."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _make_params(**overrides):
    defaults = {
        "registration_id": "reg_123",
        "amount": 2500,
        "currency": "USD",
        "customer_email": "ada@example.com",
        "description": "Event registration evt_1",
        "metadata": {"registrationId": "reg_123", "eventId": "evt_1"},
        "idempotency_key": "registration_reg_123_attempt_1",
    }
    defaults.update(overrides)
    return CreatePaymentIntentParams(**defaults)


def _make_intent(**overrides):
    intent = MagicMock()
    intent.id = overrides.get("id", "pi_abc")
    intent.client_secret = overrides.get("client_secret", "pi_abc_secret_xyz")
    intent.status = overrides.get("status", "requires_payment_method")
    return intent


def test_create_payment_intent_passes_idempotency_key():
    provider = make_stripe_provider()

    with patch("stripe.PaymentIntent.create", return_value=_make_intent()) as create:
        result = run_async(provider.create_payment_intent(_make_params()))

    assert result.intent_id == "pi_abc"
    assert result.client_secret == "pi_abc_secret_xyz"
    assert result.status == PaymentIntentStatusEnum.REQUIRES_PAYMENT_METHOD
    kwargs = create.call_args.kwargs
    assert kwargs["amount"] == 2500
    assert kwargs["currency"] == "usd"
    assert kwargs["idempotency_key"] == "registration_reg_123_attempt_1"
    assert kwargs["metadata"]["registrationId"] == "reg_123"
    assert kwargs["automatic_payment_methods"] == {"enabled": True}


def test_rate_limit_is_retryable():
    provider = make_stripe_provider()

    with patch("stripe.PaymentIntent.create", side_effect=stripe.RateLimitError("Too many")):
        with pytest.raises(PaymentError) as exc_info:
            run_async(provider.create_payment_intent(_make_params()))

    assert exc_info.value.code == "RATE_LIMIT"
    assert exc_info.value.retryable is True


def test_invalid_request_is_not_retryable():
    provider = make_stripe_provider()

    with patch(
        "stripe.PaymentIntent.create",
        side_effect=stripe.InvalidRequestError("Amount too small", param="amount"),
    ):
        with pytest.raises(PaymentError) as exc_info:
            run_async(provider.create_payment_intent(_make_params(amount=1)))

    assert exc_info.value.code == "INVALID_REQUEST"
    assert exc_info.value.retryable is False


def test_verify_webhook_signature():
    provider = make_stripe_provider()
    payload = payment_intent_event("payment_intent.succeeded", "reg_1")

    assert provider.verify_webhook_signature(payload, sign_payload(payload)) is True
    assert provider.verify_webhook_signature(payload, sign_payload(payload, secret="whsec_other")) is False
    assert provider.verify_webhook_signature(payload, "garbage") is False


def test_verify_rejects_old_timestamps():
    provider = make_stripe_provider()
    payload = payment_intent_event("payment_intent.succeeded", "reg_1")

    signature = sign_payload(payload, timestamp=1_000_000_000)

    assert provider.verify_webhook_signature(payload, signature) is False


def test_verify_without_secret():
    provider = make_stripe_provider(webhook_secret=None)
    payload = payment_intent_event("payment_intent.succeeded", "reg_1")

    assert provider.webhook_configured is False
    assert provider.verify_webhook_signature(payload, sign_payload(payload)) is False


@pytest.mark.parametrize(
    "stripe_type, expected",
    [
        ("payment_intent.succeeded", WebhookEventType.PAYMENT_SUCCEEDED),
        ("payment_intent.payment_failed", WebhookEventType.PAYMENT_FAILED),
        ("charge.refunded", WebhookEventType.UNKNOWN),
    ],
)
def test_parse_webhook_event_types(stripe_type, expected):
    provider = make_stripe_provider()

    event = provider.parse_webhook_event(
        payment_intent_event(stripe_type, "reg_1", intent_id="pi_777", event_id="evt_9")
    )

    assert event.event_type == expected
    assert event.provider_event_type == stripe_type
    assert event.event_id == "evt_9"
    assert event.data["paymentIntentId"] == "pi_777"
    assert event.data["metadata"] == {"registrationId": "reg_1"}
    assert event.data["currency"] == "USD"


def test_parse_failure_details():
    provider = make_stripe_provider()
    body = json.loads(payment_intent_event("payment_intent.payment_failed", "reg_1"))
    body["data"]["object"]["last_payment_error"] = {
        "code": "card_declined",
        "message": "Your card was declined.",
    }

    event = provider.parse_webhook_event(json.dumps(body).encode())

    assert event.data["failureCode"] == "card_declined"
    assert event.data["failureMessage"] == "Your card was declined."


def test_parse_malformed_body():
    provider = make_stripe_provider()

    with pytest.raises(PaymentError) as exc_info:
        provider.parse_webhook_event(b'{"no": "type"}')

    assert exc_info.value.code == "PARSE_ERROR"


def test_factory_needs_only_the_secret_key():
    with patch("app.services.payment.provider_factory.settings") as mock_settings:
        mock_settings.STRIPE_SECRET_KEY = "sk_test_dummy"
        mock_settings.STRIPE_WEBHOOK_SECRET = None
        mock_settings.STRIPE_API_VERSION = "2023-10-16"
        mock_settings.STRIPE_MAX_NETWORK_RETRIES = 2
        factory = PaymentProviderFactory()

    provider = factory.get_provider("stripe")
    assert provider.code == "stripe"
    assert provider.webhook_configured is False


def test_factory_without_secret_key_has_no_provider():
    with patch("app.services.payment.provider_factory.settings") as mock_settings:
        mock_settings.STRIPE_SECRET_KEY = None
        factory = PaymentProviderFactory()

    with pytest.raises(ValueError):
        factory.get_provider("stripe")
