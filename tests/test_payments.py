"""StripeGateway: intent creation parameters and webhook verification."""
import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe

from app.services.payments import InvalidWebhookPayload, PaymentsNotConfigured, StripeGateway

WEBHOOK_SECRET = "whsec_test_secret"
PAYLOAD = json.dumps({"id": "evt_1", "type": "payment_intent.succeeded", "data": {"object": {}}}).encode()


def _sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def test_create_payment_intent_params(monkeypatch):
    calls = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(id="pi_123", client_secret="pi_123_secret_abc")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    gateway = StripeGateway(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)

    intent = gateway.create_payment_intent(4990, {"tier": "saphir"}, receipt_email="a@b.co")

    assert intent == {"id": "pi_123", "client_secret": "pi_123_secret_abc"}
    assert calls[0]["api_key"] == "sk_test_123"
    assert calls[0]["amount"] == 4990
    assert calls[0]["currency"] == "eur"
    assert calls[0]["automatic_payment_methods"] == {"enabled": True}
    assert calls[0]["receipt_email"] == "a@b.co"


def test_create_payment_intent_requires_key():
    with pytest.raises(PaymentsNotConfigured):
        StripeGateway(secret_key="").create_payment_intent(100, {})


def test_signed_event_is_accepted():
    gateway = StripeGateway(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)
    event = gateway.parse_event(PAYLOAD, _sign(PAYLOAD))
    assert event["id"] == "evt_1"
    assert event["type"] == "payment_intent.succeeded"


@pytest.mark.parametrize("signature", [None, "", "t=1,v1=deadbeef"])
def test_bad_signature_is_rejected(signature):
    gateway = StripeGateway(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)
    with pytest.raises(InvalidWebhookPayload):
        gateway.parse_event(PAYLOAD, signature)


def test_signature_from_other_secret_is_rejected():
    gateway = StripeGateway(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)
    with pytest.raises(InvalidWebhookPayload):
        gateway.parse_event(PAYLOAD, _sign(PAYLOAD, secret="whsec_other"))


@pytest.mark.parametrize("signature", [None, "t=1,v1=deadbeef"])
def test_events_rejected_without_webhook_secret(signature):
    gateway = StripeGateway(secret_key="sk_live_123", webhook_secret="")
    with pytest.raises(PaymentsNotConfigured):
        gateway.parse_event(PAYLOAD, signature)


def test_signed_event_without_type_is_rejected():
    gateway = StripeGateway(secret_key="sk_test_123", webhook_secret=WEBHOOK_SECRET)
    payload = b'{"id": "evt_1"}'
    with pytest.raises(InvalidWebhookPayload):
        gateway.parse_event(payload, _sign(payload))
