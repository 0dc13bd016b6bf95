from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.features import TierType


class CamelModel(BaseModel):
    """Model whose JSON keys are camelCase, as the web client sends them."""
    model_config = ConfigDict(populate_by_name=True)


# ============================================
# Card Activation Schemas
# ============================================

class ActivateCardRequest(CamelModel):
    """Request body for redeeming an activation code."""
    activation_code: Optional[str] = Field(default=None, alias="activationCode")
    email: Optional[str] = None


class ActivateCardResponse(CamelModel):
    success: bool
    message: str
    profile_id: str = Field(alias="profileId")
    should_onboard: bool = Field(alias="shouldOnboard")


# ============================================
# Payment / Order Schemas
# ============================================

class ShippingAddress(BaseModel):
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class PaymentIntentCreate(CamelModel):
    """Request body for starting a card checkout."""
    tier: TierType
    quantity: int = Field(..., ge=1, le=1000)
    customer_email: EmailStr = Field(alias="customerEmail")
    customer_name: str = Field(..., min_length=1, alias="customerName")
    customer_phone: Optional[str] = Field(default=None, alias="customerPhone")
    shipping_address: ShippingAddress = Field(alias="shippingAddress")


class PaymentIntentResponse(CamelModel):
    client_secret: str = Field(alias="clientSecret")
    payment_intent_id: str = Field(alias="paymentIntentId")


class WebhookAck(BaseModel):
    received: bool = True


class OrderResponse(BaseModel):
    """Order as shown on the confirmation page (no card codes)."""
    id: str
    order_number: str
    customer_email: str
    customer_name: str
    tier: TierType
    quantity: int
    total_amount: int
    status: str
    payment_status: str
    created_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None


# ============================================
# Admin Schemas
# ============================================

class CardBatchCreate(CamelModel):
    """Request body for generating a batch of activation codes."""
    tier: TierType
    quantity: int = Field(..., ge=1, le=1000)
    batch_name: str = Field(..., min_length=1, alias="batchName")
    reseller_id: Optional[str] = Field(default=None, alias="resellerId")
    notes: Optional[str] = None


class CardResponse(BaseModel):
    id: str
    card_code: str
    activation_code: str
    tier: TierType
    status: str
    order_id: Optional[str] = None
    profile_id: Optional[str] = None
    reseller_id: Optional[str] = None
    activated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


CardStatus = Literal["pending", "activated", "deactivated", "shipped"]
OrderStatus = Literal["pending", "confirmed", "shipped", "completed", "cancelled"]
PaymentStatus = Literal["pending", "succeeded", "failed", "refunded"]


class CardStatusUpdate(BaseModel):
    """Admin status change. Activation only happens through a redeemed code."""
    status: Literal["pending", "deactivated", "shipped"]


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class AdminOrderResponse(OrderResponse):
    """Order as shown in the admin back office."""
    customer_phone: Optional[str] = None
    shipping_address: dict = {}
    user_id: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None
    cards_issued: bool = False


class AdminStats(CamelModel):
    total_cards: int = Field(alias="totalCards")
    activated_cards: int = Field(alias="activatedCards")
    pending_cards: int = Field(alias="pendingCards")
    total_orders: int = Field(alias="totalOrders")
    pending_orders: int = Field(alias="pendingOrders")
    completed_orders: int = Field(alias="completedOrders")


class CardBatchResponse(CamelModel):
    success: bool = True
    batch_id: str = Field(alias="batchId")
    cards: list[CardResponse]
    message: str


# ============================================
# Profile Schemas
# ============================================

CustomFieldType = Literal["text", "textarea", "url", "email", "phone", "date"]


class CustomField(CamelModel):
    id: str
    label: str = Field(..., min_length=1, max_length=100)
    type: CustomFieldType = "text"
    value: str = ""
    required: bool = False
    order: int = 0
    is_public: bool = Field(default=True, alias="isPublic")
    rows: Optional[int] = None


class CustomFieldsUpdate(CamelModel):
    custom_fields: list[CustomField] = Field(alias="customFields")


class ProfileCreate(BaseModel):
    username: str = Field(..., pattern=r'^[a-z0-9._-]+$', min_length=3, max_length=50)
    full_name: str = ""
    title: str = ""


class ProfileUpdate(BaseModel):
    """Editable profile fields. Only the fields sent are changed."""
    full_name: Optional[str] = Field(default=None, max_length=100)
    title: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=1000)
    phone: Optional[str] = Field(default=None, max_length=30)
    email: Optional[str] = Field(default=None, max_length=254)
    website: Optional[str] = Field(default=None, max_length=500)
    social_links: Optional[dict[str, str]] = None
    sector: Optional[str] = Field(default=None, max_length=100)
    tagline: Optional[str] = Field(default=None, max_length=200)
    is_active: Optional[bool] = None
    design_template: Optional[str] = Field(default=None, min_length=1, max_length=50)
    theme_color: Optional[str] = Field(default=None, pattern=r'^#[0-9A-Fa-f]{6}$')


class ProfileResponse(BaseModel):
    id: str
    user_id: str
    username: str
    full_name: str = ""
    title: str = ""
    bio: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    profile_photo_url: str = ""
    video_url: str = ""
    social_links: dict = {}
    sector: Optional[str] = ""
    tagline: Optional[str] = ""
    design_template: Optional[str] = "minimal"
    theme_color: Optional[str] = None
    custom_fields: list[dict] = []
    is_active: bool = True
    view_count: int = 0
    video_file_size: Optional[int] = 0
    total_video_storage: Optional[int] = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PublicProfileResponse(BaseModel):
    """Profile as rendered at {origin}/{username}."""
    id: str
    username: str
    full_name: str = ""
    title: str = ""
    bio: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    profile_photo_url: str = ""
    video_url: Optional[str] = None
    social_links: dict = {}
    custom_fields: list[dict] = []
    tier: Optional[TierType] = None
    public_url: str


class ProfileEventCreate(BaseModel):
    event_type: Literal["view", "vcard_download", "link_click"]
    metadata: dict = {}


# ============================================
# Entitlement / Analytics Schemas
# ============================================

class EntitlementsResponse(BaseModel):
    tier: Optional[TierType] = None
    subscription_tier: str
    display_name: str
    features: dict[str, bool]
    limits: dict[str, Optional[int]]
    next_tier: Optional[TierType] = None
    can_upgrade: bool
    profiles_used: int
    remaining_profiles: Optional[int] = None
    can_add_profile: bool


class PeriodStats(BaseModel):
    views: int
    downloads: int
    clicks: int


class AnalyticsSummary(BaseModel):
    total_views: int
    total_downloads: int
    total_link_clicks: int
    conversion_rate: float
    device_breakdown: dict[str, int]
    recent_events: list[dict]
    periods: dict[str, PeriodStats]


class ErrorResponse(BaseModel):
    error: str
