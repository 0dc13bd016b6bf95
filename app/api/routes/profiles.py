"""Authenticated profile management: profiles, custom fields, media and analytics."""

import logging
import math

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from app.api.deps import get_analytics_repository, get_profile_repository, get_storage_service
from app.core.entitlements import (
    FREE_PROFILE_ALLOWANCE,
    FeatureNotAvailableError,
    LimitExceededError,
    TierPermissions,
    get_current_permissions,
    require_feature,
)
from app.core.permissions import get_current_user, require_profile_owner
from app.domain.schemas import (
    AnalyticsSummary,
    CustomFieldsUpdate,
    ProfileCreate,
    ProfileResponse,
    ProfileUpdate,
)
from app.repositories.analytics import AnalyticsRepository
from app.repositories.profile import ProfileRepository
from app.services.analytics import summarize
from app.services.custom_fields import validate_custom_fields
from app.services.profiles import build_empty_profile
from app.services.storage import PHOTO_EXTENSIONS, VIDEO_EXTENSIONS, StorageService

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_PHOTO_SIZE = 2 * 1024 * 1024
MAX_VIDEO_SIZE = 100 * 1024 * 1024
BYTES_PER_MB = 1024 * 1024

# Changing any of these is gated by custom theming
THEME_FIELDS = ("design_template", "theme_color")


@router.get("", response_model=list[ProfileResponse])
def list_my_profiles(
    user: dict = Depends(get_current_user),
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    """List the current user's profiles, oldest (primary) first."""
    return [ProfileResponse(**p) for p in profiles.list_for_user(user["id"])]


@router.post("", response_model=ProfileResponse, status_code=201)
def create_profile(
    data: ProfileCreate,
    user: dict = Depends(get_current_user),
    permissions: TierPermissions = Depends(get_current_permissions),
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    """Create an additional profile, within the tier's profile limit."""
    count = profiles.count_for_user(user["id"])
    if not permissions.can_add_profile(count):
        limit = permissions.get_profile_limit() if permissions.tier else FREE_PROFILE_ALLOWANCE
        raise LimitExceededError("profiles", limit, count)

    if profiles.get_by_username(data.username):
        raise HTTPException(status_code=400, detail="Username is already taken")

    defaults = build_empty_profile()
    defaults.update(full_name=data.full_name, title=data.title)
    profile = profiles.create(
        user_id=user["id"],
        username=data.username,
        email=user["email"],
        **defaults,
    )
    if not profile:
        raise HTTPException(status_code=500, detail="Failed to create profile")

    logger.info(f"Created profile {profile['id']} ({data.username}) for user {user['id']}")
    return ProfileResponse(**profile)


@router.get("/{profile_id}", response_model=ProfileResponse)
def get_profile(
    profile_id: str,
    user: dict = Depends(get_current_user),
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    profile = require_profile_owner(profiles.get_by_id(profile_id), user)
    return ProfileResponse(**profile)


@router.put("/{profile_id}", response_model=ProfileResponse)
def update_profile(
    profile_id: str,
    data: ProfileUpdate,
    user: dict = Depends(get_current_user),
    permissions: TierPermissions = Depends(get_current_permissions),
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    """Edit a profile's main fields. Fields left out of the body are unchanged.

    Changing the design template or the theme color needs a tier with
    custom theming.
    """
    profile = require_profile_owner(profiles.get_by_id(profile_id), user)

    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")

    restyled = any(
        key in changes and changes[key] != profile.get(key)
        for key in THEME_FIELDS
    )
    if restyled and not permissions.can_customize_theme():
        raise FeatureNotAvailableError("custom_theme_color")

    updated = profiles.update(profile_id, **changes)
    if not updated:
        raise HTTPException(status_code=500, detail="Failed to update profile")

    logger.info(f"Updated profile {profile_id}: {', '.join(sorted(changes))}")
    return ProfileResponse(**updated)


@router.put("/{profile_id}/custom-fields", response_model=ProfileResponse)
def update_custom_fields(
    profile_id: str,
    data: CustomFieldsUpdate,
    user: dict = Depends(get_current_user),
    permissions: TierPermissions = Depends(get_current_permissions),
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    """Replace a profile's custom fields.

    The whole list is sent each time; its length is checked against the
    tier's custom field limit and every value against its field type.
    """
    require_profile_owner(profiles.get_by_id(profile_id), user)

    fields = [f.model_dump(by_alias=True) for f in data.custom_fields]
    limit = permissions.get_custom_fields_limit()
    if len(fields) > limit:
        raise LimitExceededError("custom fields", limit, len(fields))

    errors = validate_custom_fields(fields)
    if errors:
        raise HTTPException(status_code=400, detail={"fields": errors})

    updated = profiles.update(profile_id, custom_fields=fields)
    if not updated:
        raise HTTPException(status_code=500, detail="Failed to update custom fields")
    return ProfileResponse(**updated)


@router.post("/{profile_id}/photo")
async def upload_photo(
    profile_id: str,
    file: UploadFile = File(...),
    user: dict = Depends(get_current_user),
    profiles: ProfileRepository = Depends(get_profile_repository),
    storage: StorageService = Depends(get_storage_service),
):
    """Upload the profile photo (PNG or JPEG, 2MB max)."""
    require_profile_owner(profiles.get_by_id(profile_id), user)

    if file.content_type not in PHOTO_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Only PNG and JPG are allowed."
        )

    file_data = await file.read()
    if len(file_data) > MAX_PHOTO_SIZE:
        raise HTTPException(
            status_code=400,
            detail="File too large. Maximum size is 2MB."
        )

    try:
        url = storage.upload_profile_photo(profile_id, file_data, file.content_type)
    except Exception:
        logger.exception(f"Failed to upload photo for profile {profile_id}")
        raise HTTPException(status_code=500, detail="Failed to upload photo")

    if not profiles.update(profile_id, profile_photo_url=url):
        raise HTTPException(status_code=500, detail="Failed to save profile photo")
    return {"url": url}


@router.post("/{profile_id}/video")
async def upload_video(
    profile_id: str,
    file: UploadFile = File(...),
    user: dict = Depends(get_current_user),
    permissions: TierPermissions = Depends(require_feature("video_pitch")),
    profiles: ProfileRepository = Depends(get_profile_repository),
    storage: StorageService = Depends(get_storage_service),
):
    """Upload the profile's video pitch, replacing any previous one.

    The new video counts against the tier's video storage quota; the size
    of the video it replaces is released first.
    """
    profile = require_profile_owner(profiles.get_by_id(profile_id), user)

    if file.content_type not in VIDEO_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail="Invalid file type. Only MP4, WebM and MOV are allowed."
        )

    file_data = await file.read()
    size = len(file_data)
    if size > MAX_VIDEO_SIZE:
        raise HTTPException(
            status_code=400,
            detail="File too large. Maximum size is 100MB."
        )

    replaced = profile.get("video_file_size") or 0
    used = max(0, (profile.get("total_video_storage") or 0) - replaced)
    limit_mb = permissions.get_video_storage_limit()
    if used + size > limit_mb * BYTES_PER_MB:
        raise LimitExceededError("MB of video storage", limit_mb, math.ceil((used + size) / BYTES_PER_MB))

    try:
        url = storage.upload_profile_video(profile_id, file_data, file.content_type)
    except Exception:
        logger.exception(f"Failed to upload video for profile {profile_id}")
        raise HTTPException(status_code=500, detail="Failed to upload video")

    updated = profiles.update(
        profile_id,
        video_url=url,
        video_file_size=size,
        total_video_storage=used + size,
    )
    if not updated:
        raise HTTPException(status_code=500, detail="Failed to save profile video")
    return {"url": url, "file_size": size, "total_video_storage": used + size}


@router.get("/{profile_id}/analytics", response_model=AnalyticsSummary)
def get_profile_analytics(
    profile_id: str,
    user: dict = Depends(get_current_user),
    permissions: TierPermissions = Depends(require_feature("advanced_analytics")),
    profiles: ProfileRepository = Depends(get_profile_repository),
    analytics: AnalyticsRepository = Depends(get_analytics_repository),
):
    """Views, downloads, clicks and device breakdown for one of the user's profiles."""
    require_profile_owner(profiles.get_by_id(profile_id), user)
    return AnalyticsSummary(**summarize(analytics.list_for_profile(profile_id)))
