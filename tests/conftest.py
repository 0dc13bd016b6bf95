import os
from types import SimpleNamespace

import pytest

# Never pick up real credentials from the environment or Doppler
os.environ.pop("DOPPLER_TOKEN", None)
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SECRET_KEY"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = ""

from fastapi import HTTPException  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from tests.fakes import (  # noqa: E402
    FakeAccountRepository,
    FakeActivationBatchRepository,
    FakeAnalyticsRepository,
    FakeCardRepository,
    FakeGateway,
    FakeOrderRepository,
    FakeProfileRepository,
    FakeStorageService,
    FakeSubscriptionRepository,
    FakeUserRoleRepository,
)

TEST_USER = {"id": "user-1", "email": "owner@example.com"}


@pytest.fixture
def store():
    """One fresh set of in-memory tables per test."""
    return SimpleNamespace(
        cards=FakeCardRepository(),
        orders=FakeOrderRepository(),
        accounts=FakeAccountRepository(),
        profiles=FakeProfileRepository(),
        subscriptions=FakeSubscriptionRepository(),
        roles=FakeUserRoleRepository(),
        batches=FakeActivationBatchRepository(),
        analytics=FakeAnalyticsRepository(),
        storage=FakeStorageService(),
        gateway=FakeGateway(),
    )


@pytest.fixture
def activation_service(store):
    from app.services.activation import ActivationService
    return ActivationService(
        cards=store.cards,
        accounts=store.accounts,
        profiles=store.profiles,
        roles=store.roles,
    )


@pytest.fixture
def order_service(store):
    from app.services.orders import OrderService
    return OrderService(
        orders=store.orders,
        cards=store.cards,
        accounts=store.accounts,
        subscriptions=store.subscriptions,
        gateway=store.gateway,
    )


@pytest.fixture
def app(store, activation_service, order_service):
    """The FastAPI app with every Supabase/Stripe dependency swapped for fakes.

    Requests are authenticated as TEST_USER; give them the admin role with
    store.roles.roles[TEST_USER["id"]] = "admin".
    """
    from app.api import deps
    from app.core import entitlements, permissions
    from app.main import app as fastapi_app
    from app.services.card_issuer import CardIssuer
    from app.services.payments import get_payment_gateway
    from database.connection import get_db

    def require_admin():
        if store.roles.get_role(TEST_USER["id"]) != "admin":
            raise HTTPException(status_code=403, detail="Admin access required")
        return dict(TEST_USER)

    overrides = {
        get_db: lambda: None,
        permissions.get_current_user: lambda: dict(TEST_USER),
        permissions.require_admin: require_admin,
        entitlements.get_current_permissions: lambda: entitlements.resolve_permissions(
            store.subscriptions.get_by_user_id(TEST_USER["id"])
        ),
        deps.get_card_repository: lambda: store.cards,
        deps.get_order_repository: lambda: store.orders,
        deps.get_profile_repository: lambda: store.profiles,
        deps.get_subscription_repository: lambda: store.subscriptions,
        deps.get_analytics_repository: lambda: store.analytics,
        deps.get_storage_service: lambda: store.storage,
        deps.get_activation_service: lambda: activation_service,
        deps.get_order_service: lambda: order_service,
        deps.get_card_issuer: lambda: CardIssuer(store.cards, store.batches),
        get_payment_gateway: lambda: store.gateway,
    }
    fastapi_app.dependency_overrides.update(overrides)
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)

