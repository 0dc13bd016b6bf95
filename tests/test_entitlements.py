import pytest

from app.core.entitlements import (
    FeatureNotAvailableError,
    LimitExceededError,
    TierPermissions,
    require_feature,
    resolve_permissions,
    resolve_subscription_tier,
)
from app.core.features import FEATURE_FLAGS, SubscriptionTier, TierType


class TestFreeTier:
    """A user without an active subscription."""

    def setup_method(self):
        self.permissions = TierPermissions(SubscriptionTier.FREE)

    def test_no_feature_is_granted(self):
        for flag in FEATURE_FLAGS:
            assert self.permissions.can_access_feature(flag) is False
        assert not self.permissions.can_upload_video()
        assert not self.permissions.can_access_crm()

    def test_one_profile_allowed(self):
        assert self.permissions.can_add_profile(0) is True
        assert self.permissions.can_add_profile(1) is False

    def test_upgrade_path_starts_at_roc(self):
        assert self.permissions.tier is None
        assert self.permissions.next_tier == TierType.ROC
        assert self.permissions.can_upgrade
        assert self.permissions.is_free_tier

    def test_to_dict(self):
        data = self.permissions.to_dict()
        assert data["tier"] is None
        assert data["subscription_tier"] == "free"
        assert data["next_tier"] == "roc"
        assert not any(data["features"].values())


class TestPaidTiers:

    def test_premium_plus_is_saphir(self):
        permissions = TierPermissions(SubscriptionTier.PREMIUM_PLUS)
        assert permissions.tier == TierType.SAPHIR
        assert permissions.can_upload_video()
        assert permissions.can_access_advanced_analytics()
        assert not permissions.can_access_vip_club()
        assert permissions.get_video_storage_limit() == 100
        assert permissions.get_custom_fields_limit() == 10
        assert permissions.next_tier == TierType.EMERAUDE

    def test_profile_limit(self):
        permissions = TierPermissions(SubscriptionTier.PREMIUM_PLUS)
        assert permissions.can_add_profile(2)
        assert not permissions.can_add_profile(3)
        assert permissions.get_remaining_profiles(1) == 2
        assert permissions.get_remaining_profiles(5) == 0

    def test_emeraude_is_unlimited(self):
        permissions = TierPermissions(SubscriptionTier.EMERAUDE)
        assert permissions.get_profile_limit() is None
        assert permissions.get_remaining_profiles(50) is None
        assert permissions.can_add_profile(1000)
        assert permissions.next_tier is None
        assert not permissions.can_upgrade
        assert permissions.is_emeraude_tier

    def test_custom_field_limit(self):
        permissions = TierPermissions(SubscriptionTier.PREMIUM)
        assert permissions.can_add_custom_field(2)
        assert not permissions.can_add_custom_field(3)


def test_unknown_feature_raises():
    with pytest.raises(ValueError):
        TierPermissions(SubscriptionTier.EMERAUDE).can_access_feature("teleport")
    with pytest.raises(ValueError):
        require_feature("teleport")


@pytest.mark.parametrize("subscription, expected", [
    (None, SubscriptionTier.FREE),
    ({"tier": "emeraude", "status": "cancelled"}, SubscriptionTier.FREE),
    ({"tier": "platinum", "status": "active"}, SubscriptionTier.FREE),
    ({"tier": "premium", "status": "active"}, SubscriptionTier.PREMIUM),
])
def test_resolve_subscription_tier(subscription, expected):
    assert resolve_subscription_tier(subscription) == expected


def test_require_feature_dependency():
    check = require_feature("video_pitch")
    saphir = resolve_permissions({"tier": "premium_plus", "status": "active"})
    assert check(permissions=saphir) is saphir

    with pytest.raises(FeatureNotAvailableError) as exc:
        check(permissions=resolve_permissions(None))
    assert exc.value.status_code == 403
    assert exc.value.detail["code"] == "FEATURE_NOT_AVAILABLE"


def test_limit_exceeded_detail():
    error = LimitExceededError("profiles", 3, 3)
    assert error.status_code == 403
    assert error.detail["code"] == "LIMIT_EXCEEDED"
    assert error.detail["upgrade_required"] is True


@pytest.mark.parametrize("status", ["cancelled", "expired", "trial"])
def test_inactive_subscription_grants_nothing(status):
    permissions = resolve_permissions({"tier": "emeraude", "status": status})
    assert not any(permissions.can_access_feature(flag) for flag in FEATURE_FLAGS)
    assert permissions.can_add_profile(0)
    assert not permissions.can_add_profile(1)
