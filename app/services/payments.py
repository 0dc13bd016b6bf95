"""
Stripe gateway: payment intent creation and webhook event parsing.
"""
import json
from functools import lru_cache

import stripe

from app.core.config import get_settings


class PaymentsNotConfigured(Exception):
    """STRIPE_SECRET_KEY or STRIPE_WEBHOOK_SECRET is missing."""


class InvalidWebhookPayload(Exception):
    """The webhook body is not a parseable (or correctly signed) Stripe event."""


class StripeGateway:
    """Thin wrapper over the Stripe SDK so workflows can be tested with a fake."""

    def __init__(self, secret_key: str, webhook_secret: str = "", currency: str = "eur"):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.currency = currency

    def create_payment_intent(
        self,
        amount: int,
        metadata: dict[str, str],
        receipt_email: str | None = None,
    ) -> dict:
        """Create a PaymentIntent.

        Args:
            amount: Amount in minor currency units
            metadata: String key/values stored on the intent, read back by the webhook
            receipt_email: Where Stripe sends the receipt

        Returns:
            {"id": ..., "client_secret": ...}

        Raises:
            PaymentsNotConfigured: If no secret key is set
            stripe.StripeError: If Stripe rejects the request
        """
        if not self.secret_key:
            raise PaymentsNotConfigured()

        params = {
            "amount": amount,
            "currency": self.currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": metadata,
        }
        if receipt_email:
            params["receipt_email"] = receipt_email

        intent = stripe.PaymentIntent.create(api_key=self.secret_key, **params)
        return {"id": intent.id, "client_secret": intent.client_secret}

    def parse_event(self, payload: bytes, signature: str | None) -> dict:
        """Turn a webhook body into an event dict.

        Unsigned events are never trusted, so a missing webhook secret
        rejects every event.

        Raises:
            PaymentsNotConfigured: If no webhook secret is set
            InvalidWebhookPayload: On malformed JSON or a bad signature
        """
        if not self.webhook_secret:
            raise PaymentsNotConfigured("STRIPE_WEBHOOK_SECRET is not set")

        try:
            stripe.Webhook.construct_event(payload, signature or "", self.webhook_secret)
        except ValueError as e:
            raise InvalidWebhookPayload("Invalid payload") from e
        except stripe.SignatureVerificationError as e:
            raise InvalidWebhookPayload("Invalid signature") from e

        # Parsed again as plain JSON so handlers work with dicts
        try:
            event = json.loads(payload)
        except ValueError as e:
            raise InvalidWebhookPayload("Invalid payload") from e
        if not isinstance(event, dict) or "type" not in event:
            raise InvalidWebhookPayload("Invalid payload")
        return event


@lru_cache
def get_payment_gateway() -> StripeGateway:
    settings = get_settings()
    return StripeGateway(
        secret_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        currency=settings.currency,
    )
