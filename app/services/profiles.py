"""Profile defaults and the public rendering of a profile."""
from app.core.config import get_public_profile_url
from app.core.entitlements import TierPermissions
from app.services.custom_fields import public_fields


def username_from_email(email: str) -> str:
    """Default username: the local part of the email address."""
    return email.strip().lower().split("@")[0]


def build_empty_profile() -> dict:
    """Column defaults for a profile nobody has edited yet."""
    return {
        "full_name": "",
        "title": "",
        "bio": "",
        "phone": "",
        "website": "",
        "profile_photo_url": "",
        "video_url": "",
        "pdf_url": "",
        "social_links": {},
        "design_template": "minimal",
        "qr_customization": {},
        "lead_collection_enabled": False,
        "lead_form_fields": {
            "name": True,
            "email": True,
            "phone": False,
            "message": False,
        },
        "is_active": True,
        "view_count": 0,
        "sector": "",
        "custom_fields": [],
    }


def to_public_profile(profile: dict, owner_permissions: TierPermissions) -> dict:
    """Shape a profile for anonymous visitors.

    Private custom fields are dropped, and the video only shows while the
    owner's tier includes video pitch.
    """
    video_url = profile.get("video_url") or None
    if not owner_permissions.can_upload_video():
        video_url = None

    return {
        "id": profile["id"],
        "username": profile["username"],
        "full_name": profile.get("full_name") or "",
        "title": profile.get("title") or "",
        "bio": profile.get("bio") or "",
        "phone": profile.get("phone") or "",
        "email": profile.get("email") or "",
        "website": profile.get("website") or "",
        "profile_photo_url": profile.get("profile_photo_url") or "",
        "video_url": video_url,
        "social_links": profile.get("social_links") or {},
        "custom_fields": public_fields(profile.get("custom_fields") or []),
        "tier": owner_permissions.tier,
        "public_url": get_public_profile_url(profile["username"]),
    }
