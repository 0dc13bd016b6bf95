"""FastAPI providers wiring repositories and services to the request's Supabase client.

Tests swap any of these through app.dependency_overrides.
"""
from fastapi import Depends
from supabase import Client

from app.repositories.account import AccountRepository
from app.repositories.activation_batch import ActivationBatchRepository
from app.repositories.analytics import AnalyticsRepository
from app.repositories.card import CardRepository
from app.repositories.order import OrderRepository
from app.repositories.profile import ProfileRepository
from app.repositories.subscription import SubscriptionRepository
from app.repositories.user_role import UserRoleRepository
from app.services.activation import ActivationService
from app.services.card_issuer import CardIssuer
from app.services.orders import OrderService
from app.services.payments import StripeGateway, get_payment_gateway
from app.services.storage import StorageService
from database.connection import get_db


def get_card_repository(db: Client = Depends(get_db)) -> CardRepository:
    return CardRepository(db)


def get_order_repository(db: Client = Depends(get_db)) -> OrderRepository:
    return OrderRepository(db)


def get_profile_repository(db: Client = Depends(get_db)) -> ProfileRepository:
    return ProfileRepository(db)


def get_subscription_repository(db: Client = Depends(get_db)) -> SubscriptionRepository:
    return SubscriptionRepository(db)


def get_analytics_repository(db: Client = Depends(get_db)) -> AnalyticsRepository:
    return AnalyticsRepository(db)


def get_storage_service(db: Client = Depends(get_db)) -> StorageService:
    return StorageService(db)


def get_activation_service(db: Client = Depends(get_db)) -> ActivationService:
    return ActivationService(
        cards=CardRepository(db),
        accounts=AccountRepository(db),
        profiles=ProfileRepository(db),
        roles=UserRoleRepository(db),
    )


def get_order_service(
    db: Client = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
) -> OrderService:
    return OrderService(
        orders=OrderRepository(db),
        cards=CardRepository(db),
        accounts=AccountRepository(db),
        subscriptions=SubscriptionRepository(db),
        gateway=gateway,
    )


def get_card_issuer(db: Client = Depends(get_db)) -> CardIssuer:
    return CardIssuer(CardRepository(db), ActivationBatchRepository(db))
