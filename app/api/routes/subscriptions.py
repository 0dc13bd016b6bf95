from fastapi import APIRouter, Depends

from app.api.deps import get_profile_repository
from app.core.entitlements import TierPermissions, get_current_permissions
from app.core.permissions import get_current_user
from app.domain.schemas import EntitlementsResponse
from app.repositories.profile import ProfileRepository

router = APIRouter()


@router.get("/me", response_model=EntitlementsResponse)
def get_my_entitlements(
    user: dict = Depends(get_current_user),
    permissions: TierPermissions = Depends(get_current_permissions),
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    """Get the current user's tier, feature flags, limits and profile usage."""
    profiles_used = profiles.count_for_user(user["id"])
    return EntitlementsResponse(
        **permissions.to_dict(),
        profiles_used=profiles_used,
        remaining_profiles=permissions.get_remaining_profiles(profiles_used),
        can_add_profile=permissions.can_add_profile(profiles_used),
    )
