"""
Entitlement checking for subscription-gated features.

resolve_permissions() turns a user's subscription row into a TierPermissions
object. The FastAPI dependencies at the bottom load the caller's subscription
and reject requests their plan does not cover.

Usage:
    @router.post("/{profile_id}/video")
    def upload_video(
        permissions: TierPermissions = Depends(require_feature("video_pitch")),
    ):
        # Only executes if the caller's active tier includes video pitch
        pass
"""
import logging

from fastapi import Depends, HTTPException, status
from supabase import Client

from app.core.features import (
    FEATURE_FLAGS,
    SubscriptionTier,
    TierConfig,
    TierType,
    get_next_tier,
    get_tier_config,
    to_card_tier,
)
from app.core.permissions import get_current_user
from app.repositories.subscription import SubscriptionRepository
from database.connection import get_db

logger = logging.getLogger(__name__)

# Shown when the user has no active tier; grants nothing by itself
DEFAULT_DISPLAY_TIER = TierType.ROC

# Profiles a user may own without any active tier
FREE_PROFILE_ALLOWANCE = 1


class LimitExceededError(HTTPException):
    """Raised when a plan limit would be exceeded by an operation."""

    def __init__(self, resource: str, limit: int, current: int):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "code": "LIMIT_EXCEEDED",
                "resource": resource,
                "limit": limit,
                "current": current,
                "message": f"Your plan allows {limit} {resource}. You currently have {current}.",
                "upgrade_required": True,
            }
        )


class FeatureNotAvailableError(HTTPException):
    """Raised when a feature is not available in the user's plan."""

    def __init__(self, feature: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "code": "FEATURE_NOT_AVAILABLE",
                "feature": feature,
                "message": f"The '{feature}' feature is not included in your plan.",
                "upgrade_required": True,
            }
        )


class TierPermissions:
    """Permission surface derived from one subscription.

    With no active tier every feature predicate is False, but the user still
    gets FREE_PROFILE_ALLOWANCE profiles. Limits are read from the roc config
    so the dashboard has something to display.
    """

    def __init__(self, subscription_tier: SubscriptionTier):
        self.subscription_tier = subscription_tier
        self.tier: TierType | None = to_card_tier(subscription_tier)
        self.config: TierConfig | None = get_tier_config(self.tier) if self.tier else None
        self._active_config = self.config or get_tier_config(DEFAULT_DISPLAY_TIER)

    # Feature predicates

    def can_access_feature(self, feature: str) -> bool:
        if feature not in FEATURE_FLAGS:
            raise ValueError(f"Unknown feature flag: {feature}")
        if self.tier is None:
            return False
        return getattr(self._active_config.features, feature)

    def can_upload_video(self) -> bool:
        return self.can_access_feature("video_pitch")

    def can_access_crm(self) -> bool:
        return self.can_access_feature("crm")

    def can_access_advanced_analytics(self) -> bool:
        return self.can_access_feature("advanced_analytics")

    def can_customize_logo(self) -> bool:
        return self.can_access_feature("custom_logo")

    def can_access_vip_club(self) -> bool:
        return self.can_access_feature("vip_club")

    def can_access_priority_support(self) -> bool:
        return self.can_access_feature("priority_support")

    def can_customize_theme(self) -> bool:
        return self.can_access_feature("custom_theme_color")

    # Limits

    def get_profile_limit(self) -> int | None:
        return self._active_config.features.profiles

    def get_video_storage_limit(self) -> int:
        """Video storage quota in MB."""
        return self._active_config.features.video_storage_mb

    def get_custom_fields_limit(self) -> int:
        return self._active_config.features.custom_fields

    def can_add_profile(self, current_count: int) -> bool:
        if self.tier is None:
            return current_count < FREE_PROFILE_ALLOWANCE
        limit = self.get_profile_limit()
        if limit is None:
            return True
        return current_count < limit

    def get_remaining_profiles(self, current_count: int) -> int | None:
        """Profiles left before the limit, or None when unlimited."""
        limit = self.get_profile_limit()
        if limit is None:
            return None
        return max(0, limit - current_count)

    def can_add_custom_field(self, current_count: int) -> bool:
        return current_count < self.get_custom_fields_limit()

    # Upgrade path

    @property
    def next_tier(self) -> TierType | None:
        if self.tier is None:
            return DEFAULT_DISPLAY_TIER
        next_config = get_next_tier(self.tier)
        return next_config.tier if next_config else None

    @property
    def can_upgrade(self) -> bool:
        return self.next_tier is not None

    @property
    def is_free_tier(self) -> bool:
        return self.subscription_tier == SubscriptionTier.FREE

    @property
    def is_premium_tier(self) -> bool:
        return self.subscription_tier == SubscriptionTier.PREMIUM

    @property
    def is_premium_plus_tier(self) -> bool:
        return self.subscription_tier == SubscriptionTier.PREMIUM_PLUS

    @property
    def is_emeraude_tier(self) -> bool:
        return self.subscription_tier == SubscriptionTier.EMERAUDE

    def to_dict(self) -> dict:
        """Serializable summary for the dashboard."""
        return {
            "tier": self.tier.value if self.tier else None,
            "subscription_tier": self.subscription_tier.value,
            "display_name": self._active_config.display_name,
            "features": {flag: self.can_access_feature(flag) for flag in sorted(FEATURE_FLAGS)},
            "limits": {
                "profiles": self.get_profile_limit(),
                "video_storage_mb": self.get_video_storage_limit(),
                "custom_fields": self.get_custom_fields_limit(),
            },
            "next_tier": self.next_tier.value if self.next_tier else None,
            "can_upgrade": self.can_upgrade,
        }


def resolve_subscription_tier(subscription: dict | None) -> SubscriptionTier:
    """Tier a subscription row currently grants.

    Anything other than an active subscription with a known tier is free.
    """
    if not subscription or subscription.get("status") != "active":
        return SubscriptionTier.FREE
    try:
        return SubscriptionTier(subscription.get("tier"))
    except ValueError:
        logger.warning(f"Unknown subscription tier {subscription.get('tier')!r}, treating as free")
        return SubscriptionTier.FREE


def resolve_permissions(subscription: dict | None) -> TierPermissions:
    return TierPermissions(resolve_subscription_tier(subscription))


def get_current_permissions(
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_db),
) -> TierPermissions:
    """Dependency resolving the caller's permissions from their subscription."""
    subscription = SubscriptionRepository(db).get_by_user_id(user["id"])
    return resolve_permissions(subscription)


def require_feature(feature: str):
    """Factory to create a dependency that requires a specific feature.

    Args:
        feature: A name from FEATURE_FLAGS (e.g., 'video_pitch', 'advanced_analytics')

    Returns:
        A FastAPI dependency function returning the caller's TierPermissions
    """
    if feature not in FEATURE_FLAGS:
        raise ValueError(f"Unknown feature flag: {feature}")

    def dependency(
        permissions: TierPermissions = Depends(get_current_permissions),
    ) -> TierPermissions:
        if not permissions.can_access_feature(feature):
            raise FeatureNotAvailableError(feature)
        return permissions

    return dependency
