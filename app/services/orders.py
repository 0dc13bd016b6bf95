"""
Card orders: Stripe checkout and webhook-driven fulfillment.

The two halves only meet through Stripe. create_payment_intent() stores the
order details as intent metadata; when Stripe reports the payment as
succeeded, fulfill_payment() reads them back off the event and creates the
order, its cards, and the buyer's subscription.

Fulfillment is idempotent per payment intent, so redelivered and concurrent
events are harmless:
- the order is keyed on stripe_payment_intent_id
- cards are issued by whichever delivery flips orders.cards_issued
- the subscription is provisioned by whichever delivery fills orders.user_id
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import stripe

from app.core.features import TierType, get_tier_price, to_subscription_tier
from app.domain.errors import NotFound, UpstreamFailure, ValidationFailed
from app.domain.schemas import PaymentIntentCreate
from app.repositories.account import AccountRepository
from app.repositories.card import CardRepository
from app.repositories.order import OrderRepository
from app.repositories.subscription import SubscriptionRepository
from app.services.card_codes import generate_order_number
from app.services.card_issuer import CardIssuer
from app.services.payments import PaymentsNotConfigured, StripeGateway

logger = logging.getLogger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
SUBSCRIPTION_DURATION_MONTHS = 12


def compute_amount(tier: TierType | str, quantity: int) -> int:
    """Order total in minor currency units."""
    return get_tier_price(tier) * quantity


@dataclass
class PaymentIntentResult:
    success: bool
    status_code: int = 200
    client_secret: str | None = None
    payment_intent_id: str | None = None
    error: str | None = None


@dataclass
class FulfillmentResult:
    order_id: str
    order_number: str
    already_fulfilled: bool = False
    cards: list[dict] = field(default_factory=list)
    subscription_user_id: str | None = None

    @property
    def cards_created(self) -> int:
        return len(self.cards)


class OrderService:

    def __init__(
        self,
        orders: OrderRepository,
        cards: CardRepository,
        accounts: AccountRepository,
        subscriptions: SubscriptionRepository,
        gateway: StripeGateway,
    ):
        self.orders = orders
        self.cards = cards
        self.accounts = accounts
        self.subscriptions = subscriptions
        self.gateway = gateway
        self.issuer = CardIssuer(cards)

    # ============ Checkout ============

    def create_payment_intent(self, request: PaymentIntentCreate) -> PaymentIntentResult:
        """Create the Stripe PaymentIntent for a card order.

        Never raises; failures come back as results with a safe message.
        """
        amount = compute_amount(request.tier, request.quantity)
        address = request.shipping_address
        metadata = {
            "tier": request.tier.value,
            "quantity": str(request.quantity),
            "customerEmail": str(request.customer_email).lower(),
            "customerName": request.customer_name,
            "customerPhone": request.customer_phone or "",
            "shippingStreet": address.street,
            "shippingCity": address.city,
            "shippingPostalCode": address.postal_code,
            "shippingCountry": address.country,
        }

        try:
            intent = self.gateway.create_payment_intent(
                amount=amount,
                metadata=metadata,
                receipt_email=metadata["customerEmail"],
            )
        except PaymentsNotConfigured:
            logger.error("Payment intent requested but STRIPE_SECRET_KEY is not set")
            return PaymentIntentResult(success=False, status_code=500, error="Payments are not configured")
        except stripe.StripeError as e:
            msg = getattr(e, "user_message", None) or str(e)
            logger.error(f"Stripe error creating payment intent: {msg}")
            return PaymentIntentResult(success=False, status_code=500, error="Failed to create payment")
        except Exception:
            logger.exception("Unexpected error creating payment intent")
            return PaymentIntentResult(success=False, status_code=500, error="Failed to create payment")

        logger.info(f"Created payment intent {intent['id']} for {request.quantity} {request.tier.value} card(s), amount {amount}")

        return PaymentIntentResult(
            success=True,
            client_secret=intent["client_secret"],
            payment_intent_id=intent["id"],
        )

    # ============ Fulfillment ============

    def handle_event(self, event: dict) -> FulfillmentResult | None:
        """Dispatch a Stripe event. Only successful payments are acted on."""
        event_type = event.get("type")
        if event_type != PAYMENT_SUCCEEDED:
            logger.info(f"Ignoring Stripe event {event.get('id')} of type {event_type}")
            return None

        payment_intent = (event.get("data") or {}).get("object") or {}
        return self.fulfill_payment(payment_intent)

    def fulfill_payment(self, payment_intent: dict) -> FulfillmentResult:
        """Create the order, cards and subscription for a succeeded payment intent.

        Raises:
            ValidationFailed: If the intent lacks usable order metadata
            UpstreamFailure: If the order row cannot be created or read back
        """
        payment_intent_id = payment_intent.get("id")
        if not payment_intent_id:
            raise ValidationFailed("Payment intent has no id")

        order = self.orders.get_by_payment_intent(payment_intent_id)
        already_fulfilled = order is not None

        if not order:
            order = self.orders.create_for_payment(self._build_order(payment_intent))
            if not order:
                # A concurrent delivery inserted it first
                already_fulfilled = True
                order = self.orders.get_by_payment_intent(payment_intent_id)
            if not order:
                raise UpstreamFailure(f"Order for payment intent {payment_intent_id} could not be created")

        tier = TierType(order["tier"])
        cards = self._issue_cards(order, tier)

        subscription_user_id = order.get("user_id")
        if not subscription_user_id:
            subscription_user_id = self._provision_subscription(order, tier)

        if already_fulfilled:
            logger.info(f"Replayed payment {payment_intent_id} for order {order['order_number']}, {len(cards)} missing card(s) issued")
        else:
            logger.info(f"Created order {order['order_number']} with {len(cards)} cards")

        return FulfillmentResult(
            order_id=order["id"],
            order_number=order["order_number"],
            already_fulfilled=already_fulfilled,
            cards=cards,
            subscription_user_id=subscription_user_id,
        )

    def _build_order(self, payment_intent: dict) -> dict:
        metadata = payment_intent.get("metadata") or {}
        try:
            tier = TierType(metadata.get("tier"))
            quantity = int(metadata.get("quantity", ""))
        except ValueError as e:
            raise ValidationFailed(f"Payment intent {payment_intent.get('id')} has invalid order metadata") from e
        if quantity <= 0:
            raise ValidationFailed(f"Payment intent {payment_intent.get('id')} has invalid quantity {quantity}")

        customer_email = (metadata.get("customerEmail") or "").strip().lower()
        if not customer_email:
            raise ValidationFailed(f"Payment intent {payment_intent.get('id')} has no customer email")

        return {
            "order_number": generate_order_number(),
            "customer_email": customer_email,
            "customer_name": metadata.get("customerName", ""),
            "customer_phone": metadata.get("customerPhone") or None,
            "shipping_address": {
                "street": metadata.get("shippingStreet", ""),
                "city": metadata.get("shippingCity", ""),
                "postal_code": metadata.get("shippingPostalCode", ""),
                "country": metadata.get("shippingCountry", ""),
            },
            "tier": tier.value,
            "quantity": quantity,
            "total_amount": payment_intent.get("amount"),
            "status": "confirmed",
            "payment_status": "succeeded",
            "stripe_payment_intent_id": payment_intent["id"],
            "stripe_customer_id": payment_intent.get("customer"),
            "cards_issued": False,
            "confirmed_at": datetime.now(timezone.utc).isoformat(),
        }

    def _issue_cards(self, order: dict, tier: TierType) -> list[dict]:
        """Issue the order's cards, once per order.

        Deliveries race on the cards_issued flag and only the one that flips
        it inserts cards. A failed insert releases the flag so the redelivery
        Stripe makes after our 500 can try again.
        """
        if order.get("cards_issued") or not self.orders.claim_card_issuance(order["id"]):
            return []

        try:
            missing = order["quantity"] - self.cards.count_for_order(order["id"])
            return self.issuer.issue(tier, missing, order_id=order["id"])
        except Exception:
            self.orders.update(order["id"], cards_issued=False)
            raise

    def _provision_subscription(self, order: dict, tier: TierType) -> str | None:
        """Give the buyer a 12-month subscription if they already have an account.

        The order is linked to the user before the provision_subscription RPC
        runs, and only by a delivery that finds user_id still empty, so the
        RPC runs at most once per order. It extends an existing subscription,
        so a second call would give away another 12 months.

        Returns:
            The subscribed user id, or None if no account matches the order email
        """
        account = self.accounts.get_by_email(order["customer_email"])
        if not account:
            logger.info(f"No account for {order['customer_email']} yet, subscription for order {order['order_number']} deferred")
            return None

        if not self.orders.claim_for_user(order["id"], account["id"]):
            logger.info(f"Subscription for order {order['order_number']} already provisioned by another delivery")
            return account["id"]

        try:
            self.subscriptions.provision(
                account["id"],
                tier=to_subscription_tier(tier).value,
                duration_months=SUBSCRIPTION_DURATION_MONTHS,
            )
        except Exception:
            self.orders.update(order["id"], user_id=None)
            raise

        logger.info(f"Provisioned {tier.value} subscription for user {account['id']} from order {order['order_number']}")
        return account["id"]

    # ============ Lookup ============

    def get_order(self, order_number: str) -> dict:
        """
        Raises:
            NotFound: If no order has this number
        """
        order = self.orders.get_by_order_number(order_number.strip().upper())
        if not order:
            raise NotFound("Order not found")
        return order
