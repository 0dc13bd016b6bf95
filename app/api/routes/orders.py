from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_order_service
from app.domain.errors import NotFound
from app.domain.schemas import ErrorResponse, OrderResponse
from app.services.orders import OrderService

router = APIRouter()


@router.get("/{order_number}", response_model=OrderResponse, responses={404: {"model": ErrorResponse}})
def get_order(order_number: str, service: OrderService = Depends(get_order_service)):
    """Get an order for the confirmation page.

    Card and activation codes are never included.
    """
    try:
        order = service.get_order(order_number)
    except NotFound as e:
        return JSONResponse(status_code=e.status_code, content={"error": e.message})
    return OrderResponse(**order)
