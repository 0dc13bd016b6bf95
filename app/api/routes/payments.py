"""Checkout and Stripe webhook endpoints."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.api.deps import get_order_service
from app.domain.errors import ValidationFailed
from app.domain.schemas import ErrorResponse, PaymentIntentCreate, PaymentIntentResponse, WebhookAck
from app.services.orders import OrderService
from app.services.payments import (
    InvalidWebhookPayload,
    PaymentsNotConfigured,
    StripeGateway,
    get_payment_gateway,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/intents",
    response_model=PaymentIntentResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def create_payment_intent(
    data: PaymentIntentCreate,
    service: OrderService = Depends(get_order_service),
):
    """Start checkout for physical cards; returns the client secret for Stripe Elements."""
    result = service.create_payment_intent(data)
    if not result.success:
        return JSONResponse(status_code=result.status_code, content={"error": result.error})

    return PaymentIntentResponse(
        client_secret=result.client_secret,
        payment_intent_id=result.payment_intent_id,
    )


@router.post(
    "/webhook",
    response_model=WebhookAck,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def stripe_webhook(
    request: Request,
    service: OrderService = Depends(get_order_service),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    """
    Handle Stripe webhook events.

    Events handled:
    - payment_intent.succeeded: create the order, its cards, and the buyer's subscription

    Returns 500 on backend failures so Stripe redelivers; fulfillment is
    idempotent per payment intent.
    """
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = gateway.parse_event(payload, signature)
    except PaymentsNotConfigured:
        logger.error("Stripe webhook received but STRIPE_WEBHOOK_SECRET is not set")
        return JSONResponse(status_code=500, content={"error": "Webhooks are not configured"})
    except InvalidWebhookPayload as e:
        logger.error(f"Rejected Stripe webhook: {e}")
        return JSONResponse(status_code=400, content={"error": str(e)})

    logger.info(f"Received Stripe webhook: {event.get('type')} ({event.get('id')})")

    try:
        await run_in_threadpool(service.handle_event, event)
    except ValidationFailed as e:
        # Redelivery cannot fix bad metadata, so acknowledge it
        logger.error(f"Unprocessable Stripe event {event.get('id')}: {e.message}")
    except Exception:
        logger.exception(f"Error handling webhook {event.get('type')}")
        return JSONResponse(status_code=500, content={"error": "Webhook processing failed"})

    return WebhookAck(received=True)
