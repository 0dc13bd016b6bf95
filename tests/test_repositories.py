"""Query shapes the workflows rely on for atomicity and idempotency."""
from types import SimpleNamespace
from unittest.mock import MagicMock

from app.repositories.account import AccountRepository
from app.repositories.card import CardRepository
from app.repositories.order import OrderRepository
from app.repositories.subscription import SubscriptionRepository


def _db(data=None, count=None):
    db = MagicMock()
    result = SimpleNamespace(data=data, count=count)
    table = db.table.return_value
    for method in ("select", "insert", "update", "upsert", "eq", "is_", "or_", "limit", "order"):
        getattr(table, method).return_value = table
    table.execute.return_value = result
    db.rpc.return_value.execute.return_value = result
    return db, table


def test_card_activation_is_conditional_on_pending():
    db, table = _db(data=[{"id": "c1", "status": "activated"}])

    card = CardRepository(db).activate("c1", profile_id="p1", activated_at="2026-10-19T00:00:00+00:00")

    assert card["id"] == "c1"
    table.update.assert_called_once_with({
        "status": "activated",
        "profile_id": "p1",
        "activated_at": "2026-10-19T00:00:00+00:00",
    })
    eq_calls = [call.args for call in table.eq.call_args_list]
    assert eq_calls == [("id", "c1"), ("status", "pending")]


def test_card_activation_lost_race_returns_none():
    db, _ = _db(data=[])
    assert CardRepository(db).activate("c1", "p1", "now") is None


def test_count_for_order():
    db, table = _db(data=[], count=3)
    assert CardRepository(db).count_for_order("o1") == 3
    table.select.assert_called_once_with("id", count="exact")


def test_order_insert_ignores_duplicate_payment_intent():
    db, table = _db(data=[])

    assert OrderRepository(db).create_for_payment({"stripe_payment_intent_id": "pi_1"}) is None
    table.upsert.assert_called_once_with(
        {"stripe_payment_intent_id": "pi_1"},
        on_conflict="stripe_payment_intent_id",
        ignore_duplicates=True,
    )


def test_provision_subscription_rpc():
    db, _ = _db()

    SubscriptionRepository(db).provision("u1", tier="premium_plus", duration_months=12)

    db.rpc.assert_called_once_with("provision_subscription", {
        "p_user_id": "u1",
        "p_tier": "premium_plus",
        "p_duration_months": 12,
    })


def test_account_lookup_pages_through_users():
    db = MagicMock()
    first_page = [SimpleNamespace(id=f"u{i}", email=f"user{i}@example.com") for i in range(1000)]
    second_page = [SimpleNamespace(id="target", email="Jane@Example.com")]
    db.auth.admin.list_users.side_effect = [first_page, second_page]

    account = AccountRepository(db).get_by_email("jane@example.com")

    assert account == {"id": "target", "email": "Jane@Example.com"}
    assert db.auth.admin.list_users.call_count == 2


def test_account_lookup_stops_on_short_page():
    db = MagicMock()
    db.auth.admin.list_users.return_value = [SimpleNamespace(id="u1", email="other@example.com")]

    assert AccountRepository(db).get_by_email("jane@example.com") is None
    assert db.auth.admin.list_users.call_count == 1


def test_card_issuance_claim_is_conditional():
    db, table = _db(data=[{"id": "o1", "cards_issued": True}])

    assert OrderRepository(db).claim_card_issuance("o1")["id"] == "o1"
    table.update.assert_called_once_with({"cards_issued": True})
    eq_calls = [call.args for call in table.eq.call_args_list]
    assert eq_calls == [("id", "o1"), ("cards_issued", False)]


def test_card_issuance_claim_already_taken():
    db, _ = _db(data=[])
    assert OrderRepository(db).claim_card_issuance("o1") is None


def test_user_claim_only_fills_empty_user_id():
    db, table = _db(data=[])

    assert OrderRepository(db).claim_for_user("o1", "u1") is None
    table.update.assert_called_once_with({"user_id": "u1"})
    table.is_.assert_called_once_with("user_id", "null")


def test_order_search_filter():
    db, table = _db(data=[{"id": "o1"}])

    assert OrderRepository(db).list(status="confirmed", search=" jane, (doe) ") == [{"id": "o1"}]
    table.or_.assert_called_once_with(
        "order_number.ilike.%jane doe%,customer_email.ilike.%jane doe%,customer_name.ilike.%jane doe%"
    )
    table.order.assert_called_once_with("created_at", desc=True)


def test_card_search_ignores_filter_syntax_only():
    db, table = _db(data=[])

    assert CardRepository(db).list(search="(),%") == []
    table.or_.assert_not_called()


def test_status_count():
    db, table = _db(data=[], count=7)

    assert CardRepository(db).count(status="activated") == 7
    table.select.assert_called_once_with("id", count="exact")
    table.eq.assert_called_once_with("status", "activated")
