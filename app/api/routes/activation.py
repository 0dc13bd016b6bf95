"""Card activation endpoint (no authentication required)."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_activation_service
from app.domain.schemas import ActivateCardRequest, ActivateCardResponse, ErrorResponse
from app.services.activation import ActivationService

router = APIRouter()


@router.post(
    "/activate",
    response_model=ActivateCardResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def activate_card(
    data: ActivateCardRequest,
    service: ActivationService = Depends(get_activation_service),
):
    """
    Redeem a card's activation code for an email address.

    Creates the account and an empty profile when the email is new, in which
    case `shouldOnboard` tells the web app to send the user to onboarding.
    """
    result = service.activate(data.activation_code, data.email)
    if not result.success:
        return JSONResponse(status_code=result.status_code, content={"error": result.error})

    return ActivateCardResponse(
        success=True,
        message=result.message,
        profile_id=result.profile_id,
        should_onboard=result.should_onboard,
    )
