"""Checkout and webhook fulfillment against in-memory repositories."""
import threading

import pytest
import stripe

from app.core.features import TierType
from app.domain.errors import NotFound, ValidationFailed
from app.domain.schemas import PaymentIntentCreate
from app.services.orders import SUBSCRIPTION_DURATION_MONTHS, compute_amount
from app.services.payments import PaymentsNotConfigured
from tests.fakes import succeeded_event


def _checkout(tier="saphir", quantity=3, email="Buyer@Example.com"):
    return PaymentIntentCreate(
        tier=tier,
        quantity=quantity,
        customerEmail=email,
        customerName="Jane Buyer",
        customerPhone="+33 6 12 34 56 78",
        shippingAddress={"street": "1 rue de Rivoli", "city": "Paris", "postal_code": "75001", "country": "FR"},
    )


def test_compute_amount():
    assert compute_amount("saphir", 3) == 14970
    assert compute_amount(TierType.ROC, 1) == 2990
    assert compute_amount("emeraude", 2) == 15980


def test_create_payment_intent(store, order_service):
    result = order_service.create_payment_intent(_checkout())

    assert result.success
    assert result.client_secret == "pi_1_secret"
    assert result.payment_intent_id == "pi_1"

    intent = store.gateway.intents[0]
    assert intent["amount"] == 14970
    assert intent["receipt_email"] == "buyer@example.com"
    assert intent["metadata"]["tier"] == "saphir"
    assert intent["metadata"]["quantity"] == "3"
    assert intent["metadata"]["customerEmail"] == "buyer@example.com"
    assert intent["metadata"]["shippingCity"] == "Paris"
    assert all(isinstance(v, str) for v in intent["metadata"].values())


@pytest.mark.parametrize("error, message", [
    (PaymentsNotConfigured(), "Payments are not configured"),
    (stripe.StripeError("card_declined"), "Failed to create payment"),
    (RuntimeError("network"), "Failed to create payment"),
])
def test_create_payment_intent_failures(store, order_service, error, message):
    store.gateway.error = error

    result = order_service.create_payment_intent(_checkout())

    assert not result.success
    assert result.status_code == 500
    assert result.error == message


def test_fulfillment_creates_order_and_pending_cards(store, order_service):
    order_service.create_payment_intent(_checkout())
    event = succeeded_event(store.gateway.intents[0])

    result = order_service.handle_event(event)

    assert not result.already_fulfilled
    assert result.cards_created == 3
    assert len(store.orders.rows) == 1

    order = store.orders.get_by_payment_intent("pi_1")
    assert order["order_number"] == result.order_number
    assert order["order_number"].startswith("ORD-")
    assert order["customer_email"] == "buyer@example.com"
    assert order["total_amount"] == 14970
    assert order["status"] == "confirmed"
    assert order["payment_status"] == "succeeded"
    assert order["shipping_address"]["postal_code"] == "75001"

    cards = store.cards.for_order(order["id"])
    assert len(cards) == 3
    assert all(c["status"] == "pending" and c["tier"] == "saphir" for c in cards)
    assert len({c["activation_code"] for c in cards}) == 3


def test_replayed_event_is_idempotent(store, order_service):
    order_service.create_payment_intent(_checkout())
    event = succeeded_event(store.gateway.intents[0])

    first = order_service.handle_event(event)
    second = order_service.handle_event(event)

    assert second.already_fulfilled
    assert second.order_id == first.order_id
    assert second.cards_created == 0
    assert len(store.orders.rows) == 1
    assert store.cards.count_for_order(first.order_id) == 3


def test_failed_card_insert_is_retried_on_redelivery(store, order_service, monkeypatch):
    order_service.create_payment_intent(_checkout(quantity=3))
    event = succeeded_event(store.gateway.intents[0])

    def unavailable(cards):
        raise ConnectionError("supabase down")

    monkeypatch.setattr(store.cards, "create_many", unavailable)
    with pytest.raises(ConnectionError):
        order_service.handle_event(event)

    order = store.orders.get_by_payment_intent("pi_1")
    assert order["cards_issued"] is False
    monkeypatch.undo()

    retry = order_service.handle_event(event)

    assert retry.already_fulfilled
    assert retry.cards_created == 3
    assert store.cards.count_for_order(order["id"]) == 3


def test_concurrent_deliveries_issue_cards_once(store, order_service):
    store.accounts.add("buyer@example.com")
    order_service.create_payment_intent(_checkout(quantity=3))
    event = succeeded_event(store.gateway.intents[0])

    # Both deliveries read "no order yet" before either inserts it
    both_checked = threading.Barrier(2, timeout=5)
    lookup = store.orders.get_by_payment_intent
    first_lookups = set()

    def lookup_after_barrier(payment_intent_id):
        order = lookup(payment_intent_id)
        thread = threading.get_ident()
        if thread not in first_lookups:
            first_lookups.add(thread)
            both_checked.wait()
        return order

    store.orders.get_by_payment_intent = lookup_after_barrier

    results, errors = [], []

    def deliver():
        try:
            results.append(order_service.handle_event(event))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=deliver) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(store.orders.rows) == 1
    order_id = results[0].order_id
    assert store.cards.count_for_order(order_id) == 3
    assert sorted(r.cards_created for r in results) == [0, 3]
    assert sorted(r.already_fulfilled for r in results) == [False, True]
    assert len(store.subscriptions.provisioned) == 1


def test_existing_account_gets_subscription(store, order_service):
    account = store.accounts.add("buyer@example.com")
    order_service.create_payment_intent(_checkout(tier="emeraude", quantity=1))

    result = order_service.handle_event(succeeded_event(store.gateway.intents[0]))

    assert result.subscription_user_id == account["id"]
    assert store.subscriptions.provisioned == [(account["id"], "emeraude", SUBSCRIPTION_DURATION_MONTHS)]
    assert store.orders.rows[result.order_id]["user_id"] == account["id"]

    # A replay must not extend the subscription again
    order_service.handle_event(succeeded_event(store.gateway.intents[0], event_id="evt_2"))
    assert len(store.subscriptions.provisioned) == 1


def test_order_is_linked_before_subscription_is_provisioned(store, order_service, monkeypatch):
    account = store.accounts.add("buyer@example.com")
    order_service.create_payment_intent(_checkout(tier="saphir", quantity=1))
    linked_at_provision = []
    provision = store.subscriptions.provision

    def checking_provision(user_id, tier, duration_months):
        order = store.orders.get_by_payment_intent("pi_1")
        linked_at_provision.append(order["user_id"])
        provision(user_id, tier, duration_months)

    monkeypatch.setattr(store.subscriptions, "provision", checking_provision)

    order_service.handle_event(succeeded_event(store.gateway.intents[0]))

    assert linked_at_provision == [account["id"]]


def test_failed_provisioning_unlinks_order_for_redelivery(store, order_service, monkeypatch):
    account = store.accounts.add("buyer@example.com")
    order_service.create_payment_intent(_checkout(tier="saphir", quantity=1))
    event = succeeded_event(store.gateway.intents[0])

    def rpc_down(user_id, tier, duration_months):
        raise ConnectionError("rpc failed")

    monkeypatch.setattr(store.subscriptions, "provision", rpc_down)
    with pytest.raises(ConnectionError):
        order_service.handle_event(event)

    assert store.orders.get_by_payment_intent("pi_1")["user_id"] is None
    monkeypatch.undo()

    result = order_service.handle_event(event)

    assert result.subscription_user_id == account["id"]
    assert store.subscriptions.provisioned == [(account["id"], "premium_plus", SUBSCRIPTION_DURATION_MONTHS)]
    assert result.cards_created == 0
    assert store.cards.count_for_order(result.order_id) == 1


def test_roc_order_provisions_premium(store, order_service):
    store.accounts.add("buyer@example.com")
    order_service.create_payment_intent(_checkout(tier="roc", quantity=1))

    order_service.handle_event(succeeded_event(store.gateway.intents[0]))

    assert store.subscriptions.provisioned[0][1] == "premium"


def test_unknown_buyer_defers_subscription(store, order_service):
    order_service.create_payment_intent(_checkout())

    result = order_service.handle_event(succeeded_event(store.gateway.intents[0]))

    assert result.subscription_user_id is None
    assert store.subscriptions.provisioned == []


def test_other_events_are_ignored(store, order_service):
    assert order_service.handle_event({"id": "evt_9", "type": "payment_intent.created"}) is None
    assert store.orders.rows == {}


def test_bad_metadata(order_service):
    event = {
        "id": "evt_1",
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": "pi_x", "amount": 100, "metadata": {"tier": "diamant", "quantity": "1"}}},
    }
    with pytest.raises(ValidationFailed):
        order_service.handle_event(event)


def test_get_order(store, order_service):
    order_service.create_payment_intent(_checkout())
    result = order_service.handle_event(succeeded_event(store.gateway.intents[0]))

    assert order_service.get_order(result.order_number.lower())["id"] == result.order_id
    with pytest.raises(NotFound):
        order_service.get_order("ORD-19990101-0000")
