from fastapi import APIRouter

from .routes import (
    activation,
    admin,
    health,
    orders,
    payments,
    profiles,
    public,
    subscriptions,
)

api_router = APIRouter()

# Health check
api_router.include_router(health.router, tags=["health"])

# Card activation and checkout (called anonymously by the web app)
api_router.include_router(activation.router, prefix="/cards", tags=["cards"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])

# Authenticated user resources
api_router.include_router(subscriptions.router, prefix="/subscriptions", tags=["subscriptions"])
api_router.include_router(profiles.router, prefix="/profiles", tags=["profiles"])

# Public endpoints (no auth required)
api_router.include_router(public.router, prefix="/public", tags=["public"])

# Admin: card inventory, orders and dashboard
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
