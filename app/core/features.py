"""
Tier definitions and entitlements.
Single source of truth for what each card tier unlocks.

Two vocabularies exist side by side:
- TierType: the tier printed on a card and sold on the pricing page
  (roc < saphir < emeraude)
- SubscriptionTier: the value stored in the subscriptions table
  (free, premium, premium_plus, emeraude)

They are bridged by to_card_tier() / to_subscription_tier(). Adding a member
to either enum without extending both mappings fails at import time.

The frontend mirrors these definitions in src/config/tier-config.ts
"""
from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum


class TierType(str, Enum):
    """Card tier identifiers, in ascending order."""
    ROC = "roc"
    SAPHIR = "saphir"
    EMERAUDE = "emeraude"


class SubscriptionTier(str, Enum):
    """Tier values stored on subscriptions."""
    FREE = "free"
    PREMIUM = "premium"
    PREMIUM_PLUS = "premium_plus"
    EMERAUDE = "emeraude"


@dataclass(frozen=True)
class TierFeatures:
    """Entitlements of a tier. Limits of None mean unlimited."""
    profiles: int | None
    nfc_card: bool
    unlimited_sharing: bool
    dynamic_qr: bool
    video_pitch: bool
    crm: bool
    advanced_analytics: bool
    custom_logo: bool
    vip_club: bool
    priority_support: bool
    exclusive_events: bool
    custom_theme_color: bool
    video_storage_mb: int
    custom_fields: int
    export_options: tuple[str, ...] = ()


@dataclass(frozen=True)
class TierConfig:
    tier: TierType
    display_name: str
    monthly_price: Decimal  # EUR per month, billed for 12 months
    card_price: int  # Minor units (cents) per physical card
    highlighted: bool
    features: TierFeatures
    description: tuple[str, ...] = ()


# Boolean entitlements that can be checked with can_access_feature()
FEATURE_FLAGS: frozenset[str] = frozenset(
    f.name for f in fields(TierFeatures) if f.type is bool
)


TIER_ORDER: list[TierType] = [TierType.ROC, TierType.SAPHIR, TierType.EMERAUDE]

# Tier configuration - edit here to change entitlements
TIER_CONFIGS: dict[TierType, TierConfig] = {
    TierType.ROC: TierConfig(
        tier=TierType.ROC,
        display_name="Pack Roc",
        monthly_price=Decimal("19.90"),
        card_price=2990,
        highlighted=False,
        description=(
            "1 custom profile",
            "1 premium NFC card",
            "Unlimited sharing",
            "Dynamic QR code",
        ),
        features=TierFeatures(
            profiles=1,
            nfc_card=True,
            unlimited_sharing=True,
            dynamic_qr=True,
            video_pitch=False,
            crm=False,
            advanced_analytics=False,
            custom_logo=False,
            vip_club=False,
            priority_support=False,
            exclusive_events=False,
            custom_theme_color=False,
            video_storage_mb=0,
            custom_fields=3,
        ),
    ),
    TierType.SAPHIR: TierConfig(
        tier=TierType.SAPHIR,
        display_name="Pack Saphir",
        monthly_price=Decimal("24.90"),
        card_price=4990,
        highlighted=True,
        description=(
            "Everything in Pack Roc",
            "3 custom profiles",
            "Video pitch",
            "Built-in CRM",
            "Advanced analytics",
        ),
        features=TierFeatures(
            profiles=3,
            nfc_card=True,
            unlimited_sharing=True,
            dynamic_qr=True,
            video_pitch=True,
            crm=True,
            advanced_analytics=True,
            custom_logo=False,
            vip_club=False,
            priority_support=False,
            exclusive_events=False,
            custom_theme_color=True,
            video_storage_mb=100,
            custom_fields=10,
            export_options=("csv",),
        ),
    ),
    TierType.EMERAUDE: TierConfig(
        tier=TierType.EMERAUDE,
        display_name="Pack Emeraude",
        monthly_price=Decimal("34.90"),
        card_price=7990,
        highlighted=False,
        description=(
            "Everything in Pack Roc & Saphir",
            "Custom logo on the card",
            "VIP club membership",
            "Priority support",
            "Exclusive events",
        ),
        features=TierFeatures(
            profiles=None,  # unlimited
            nfc_card=True,
            unlimited_sharing=True,
            dynamic_qr=True,
            video_pitch=True,
            crm=True,
            advanced_analytics=True,
            custom_logo=True,
            vip_club=True,
            priority_support=True,
            exclusive_events=True,
            custom_theme_color=True,
            video_storage_mb=500,
            custom_fields=9999,
            export_options=("csv", "pdf", "excel"),
        ),
    ),
}

_CARD_TO_SUBSCRIPTION: dict[TierType, SubscriptionTier] = {
    TierType.ROC: SubscriptionTier.PREMIUM,
    TierType.SAPHIR: SubscriptionTier.PREMIUM_PLUS,
    TierType.EMERAUDE: SubscriptionTier.EMERAUDE,
}

_SUBSCRIPTION_TO_CARD: dict[SubscriptionTier, TierType | None] = {
    SubscriptionTier.FREE: None,
    SubscriptionTier.PREMIUM: TierType.ROC,
    SubscriptionTier.PREMIUM_PLUS: TierType.SAPHIR,
    SubscriptionTier.EMERAUDE: TierType.EMERAUDE,
}

if set(_CARD_TO_SUBSCRIPTION) != set(TierType) or set(_SUBSCRIPTION_TO_CARD) != set(SubscriptionTier):
    raise RuntimeError("Tier vocabularies are not fully bridged")
if set(TIER_CONFIGS) != set(TierType) or set(TIER_ORDER) != set(TierType):
    raise RuntimeError("Every TierType needs a TierConfig and a position in TIER_ORDER")


def get_tier_config(tier: TierType | str) -> TierConfig:
    """Get the configuration for a card tier.

    Args:
        tier: A TierType or its string value ('roc', 'saphir', 'emeraude')

    Raises:
        ValueError: If the string is not a tier identifier
    """
    return TIER_CONFIGS[TierType(tier)]


def get_tier_index(tier: TierType | str) -> int:
    """Position of a tier in the fixed order roc < saphir < emeraude."""
    return TIER_ORDER.index(TierType(tier))


def get_next_tier(tier: TierType | str) -> TierConfig | None:
    """Get the tier above this one, or None at the top of the order."""
    index = get_tier_index(tier)
    if index >= len(TIER_ORDER) - 1:
        return None
    return TIER_CONFIGS[TIER_ORDER[index + 1]]


def is_higher_tier(tier: TierType | str, other: TierType | str) -> bool:
    """True if `tier` ranks strictly above `other`."""
    return get_tier_index(tier) > get_tier_index(other)


def get_tier_price(tier: TierType | str) -> int:
    """Price of one physical card of this tier, in minor currency units."""
    return get_tier_config(tier).card_price


def to_card_tier(subscription_tier: SubscriptionTier | str) -> TierType | None:
    """Map a stored subscription tier onto a card tier ('free' maps to None)."""
    return _SUBSCRIPTION_TO_CARD[SubscriptionTier(subscription_tier)]


def to_subscription_tier(tier: TierType | str) -> SubscriptionTier:
    """Map a card tier onto the value stored on subscriptions."""
    return _CARD_TO_SUBSCRIPTION[TierType(tier)]


def get_subscription_tier_config(subscription_tier: SubscriptionTier | str) -> TierConfig | None:
    card_tier = to_card_tier(subscription_tier)
    return TIER_CONFIGS[card_tier] if card_tier else None


def get_feature_comparison() -> list[dict]:
    """Feature-by-tier matrix for the pricing page.

    Each row holds the entitlement name and its value for every tier,
    with unlimited profile counts rendered as "unlimited".
    """
    rows = []
    for field in fields(TierFeatures):
        if field.name == "export_options":
            continue
        row = {"feature": field.name}
        for tier in TIER_ORDER:
            value = getattr(TIER_CONFIGS[tier].features, field.name)
            row[tier.value] = "unlimited" if value is None else value
        rows.append(row)
    return rows
