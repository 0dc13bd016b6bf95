"""Admin-only API routes: card inventory, orders and dashboard counts."""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.api.deps import get_card_issuer, get_card_repository, get_order_repository
from app.core.features import TierType
from app.core.permissions import require_admin
from app.domain.errors import WorkflowError
from app.domain.schemas import (
    AdminOrderResponse,
    AdminStats,
    CardBatchCreate,
    CardBatchResponse,
    CardResponse,
    CardStatus,
    CardStatusUpdate,
    ErrorResponse,
    OrderStatus,
    OrderStatusUpdate,
    PaymentStatus,
)
from app.repositories.card import CardRepository
from app.repositories.order import OrderRepository
from app.services.card_issuer import CardIssuer

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_PAGE_SIZE = 1000


# ============ Cards ============

@router.get("/cards", response_model=list[CardResponse])
def list_cards(
    status: Optional[CardStatus] = None,
    tier: Optional[TierType] = None,
    reseller_id: Optional[str] = None,
    search: Optional[str] = Query(default=None, description="Part of a card or activation code"),
    limit: int = Query(default=100, ge=1, le=MAX_PAGE_SIZE),
    admin: dict = Depends(require_admin),
    cards: CardRepository = Depends(get_card_repository),
):
    """List cards, newest first."""
    rows = cards.list(
        status=status,
        tier=tier.value if tier else None,
        reseller_id=reseller_id,
        search=search,
        limit=limit,
    )
    return [CardResponse(**row) for row in rows]


@router.patch(
    "/cards/{card_id}",
    response_model=CardResponse,
    responses={404: {"model": ErrorResponse}},
)
def update_card_status(
    card_id: str,
    data: CardStatusUpdate,
    admin: dict = Depends(require_admin),
    cards: CardRepository = Depends(get_card_repository),
):
    """Mark a card as shipped or deactivated, or put it back to pending."""
    card = cards.get_by_id(card_id)
    if not card:
        return JSONResponse(status_code=404, content={"error": "Card not found"})
    if card["status"] == "activated":
        # Activated cards are linked to a profile; unlinking is not supported
        return JSONResponse(status_code=400, content={"error": "Activated cards cannot change status"})

    updated = cards.update(card_id, status=data.status)
    if not updated:
        return JSONResponse(status_code=500, content={"error": "Failed to update card"})

    logger.info(f"Admin {admin['id']} set card {card_id} from {card['status']} to {data.status}")
    return CardResponse(**updated)


@router.post(
    "/cards/batches",
    response_model=CardBatchResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def generate_card_batch(
    data: CardBatchCreate,
    admin: dict = Depends(require_admin),
    issuer: CardIssuer = Depends(get_card_issuer),
):
    """Generate a batch of pending cards with fresh activation codes (admin only)."""
    try:
        batch, cards = issuer.issue_batch(
            tier=data.tier,
            quantity=data.quantity,
            batch_name=data.batch_name,
            created_by=admin["id"],
            reseller_id=data.reseller_id,
            notes=data.notes,
        )
    except WorkflowError as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})
    except Exception:
        logger.exception("Failed to generate card batch")
        return JSONResponse(status_code=500, content={"error": "Failed to generate cards"})

    return CardBatchResponse(
        batch_id=batch["id"],
        cards=[CardResponse(**card) for card in cards],
        message=f"{len(cards)} cards generated",
    )


# ============ Orders ============

@router.get("/orders", response_model=list[AdminOrderResponse])
def list_orders(
    status: Optional[OrderStatus] = None,
    payment_status: Optional[PaymentStatus] = None,
    search: Optional[str] = Query(default=None, description="Part of an order number, customer email or name"),
    limit: int = Query(default=100, ge=1, le=MAX_PAGE_SIZE),
    admin: dict = Depends(require_admin),
    orders: OrderRepository = Depends(get_order_repository),
):
    """List orders, newest first."""
    rows = orders.list(status=status, payment_status=payment_status, search=search, limit=limit)
    return [AdminOrderResponse(**row) for row in rows]


@router.patch(
    "/orders/{order_id}",
    response_model=AdminOrderResponse,
    responses={404: {"model": ErrorResponse}},
)
def update_order_status(
    order_id: str,
    data: OrderStatusUpdate,
    admin: dict = Depends(require_admin),
    orders: OrderRepository = Depends(get_order_repository),
):
    """Move an order through shipping. Shipping an order stamps shipped_at once."""
    order = orders.get_by_id(order_id)
    if not order:
        return JSONResponse(status_code=404, content={"error": "Order not found"})

    changes = {"status": data.status}
    if data.status == "shipped" and not order.get("shipped_at"):
        changes["shipped_at"] = datetime.now(timezone.utc).isoformat()

    updated = orders.update(order_id, **changes)
    if not updated:
        return JSONResponse(status_code=500, content={"error": "Failed to update order"})

    logger.info(f"Admin {admin['id']} set order {order['order_number']} from {order['status']} to {data.status}")
    return AdminOrderResponse(**updated)


# ============ Dashboard ============

@router.get("/stats", response_model=AdminStats)
def get_stats(
    admin: dict = Depends(require_admin),
    cards: CardRepository = Depends(get_card_repository),
    orders: OrderRepository = Depends(get_order_repository),
):
    """Card and order counts for the admin dashboard."""
    return AdminStats(
        total_cards=cards.count(),
        activated_cards=cards.count(status="activated"),
        pending_cards=cards.count(status="pending"),
        total_orders=orders.count(),
        pending_orders=orders.count(status="pending"),
        completed_orders=orders.count(status="completed"),
    )
