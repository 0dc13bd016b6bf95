"""
Public (unauthenticated) profile endpoints used by the profile page at
{web_app_url}/{username}.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from app.api.deps import get_analytics_repository, get_profile_repository, get_subscription_repository
from app.core.config import get_public_profile_url
from app.core.entitlements import resolve_permissions
from app.core.features import TIER_CONFIGS, TIER_ORDER, get_feature_comparison
from app.domain.schemas import ProfileEventCreate, PublicProfileResponse
from app.repositories.analytics import AnalyticsRepository
from app.repositories.profile import ProfileRepository
from app.repositories.subscription import SubscriptionRepository
from app.services.analytics import EVENT_VIEW, detect_device_type, hash_ip
from app.services.profiles import to_public_profile
from app.services.qr_generator import generate_qr_code_png
from app.services.vcard import generate_vcard

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_active_profile(profiles: ProfileRepository, username: str) -> dict:
    profile = profiles.get_by_username(username.lower())
    if not profile or not profile.get("is_active", True):
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


@router.get("/profiles/{username}", response_model=PublicProfileResponse)
def get_public_profile(
    username: str,
    profiles: ProfileRepository = Depends(get_profile_repository),
    subscriptions: SubscriptionRepository = Depends(get_subscription_repository),
):
    """Get a profile as anonymous visitors see it."""
    profile = _get_active_profile(profiles, username)
    owner_permissions = resolve_permissions(subscriptions.get_by_user_id(profile["user_id"]))
    return PublicProfileResponse(**to_public_profile(profile, owner_permissions))


@router.get("/profiles/{username}/vcard")
def download_vcard(
    username: str,
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    """Download the profile as a .vcf contact file."""
    profile = _get_active_profile(profiles, username)
    return Response(
        content=generate_vcard(profile),
        media_type="text/vcard; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{profile["username"]}.vcf"'},
    )


@router.get("/profiles/{username}/qr")
def get_qr_code(
    username: str,
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    """QR code (PNG) pointing at the public profile URL."""
    profile = _get_active_profile(profiles, username)
    png = generate_qr_code_png(get_public_profile_url(profile["username"]))
    return Response(content=png, media_type="image/png")


@router.post("/profiles/{profile_id}/events", status_code=201)
def track_event(
    profile_id: str,
    data: ProfileEventCreate,
    request: Request,
    profiles: ProfileRepository = Depends(get_profile_repository),
    analytics: AnalyticsRepository = Depends(get_analytics_repository),
):
    """Record a view, vCard download or link click on a public profile."""
    profile = profiles.get_by_id(profile_id)
    if not profile or not profile.get("is_active", True):
        raise HTTPException(status_code=404, detail="Profile not found")

    user_agent = request.headers.get("user-agent", "")
    analytics.record(
        profile_id=profile_id,
        event_type=data.event_type,
        device_type=detect_device_type(user_agent),
        user_agent=user_agent,
        referrer=request.headers.get("referer", ""),
        ip_hash=hash_ip(_client_ip(request)),
        metadata=data.metadata,
    )

    if data.event_type == EVENT_VIEW:
        try:
            profiles.increment_view_count(profile_id)
        except Exception as e:
            logger.warning(f"Failed to increment view count for {profile_id}: {e}")

    return {"success": True}


@router.get("/tiers")
def list_tiers():
    """Tier catalogue and feature matrix for the pricing page."""
    return {
        "tiers": [
            {
                "tier": config.tier.value,
                "display_name": config.display_name,
                "monthly_price": str(config.monthly_price),
                "card_price": config.card_price,
                "highlighted": config.highlighted,
                "description": list(config.description),
            }
            for config in (TIER_CONFIGS[tier] for tier in TIER_ORDER)
        ],
        "comparison": get_feature_comparison(),
    }
