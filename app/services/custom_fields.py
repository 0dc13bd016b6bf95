"""Validation of the custom fields a user adds to their profile."""
import re
from datetime import date
from urllib.parse import urlparse

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s\-+()]{8,}$")


def validate_url(url: str) -> bool:
    if not url:
        return True
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def validate_email(email: str) -> bool:
    if not email:
        return True
    return bool(EMAIL_RE.match(email))


def validate_phone(phone: str) -> bool:
    if not phone:
        return True
    return bool(PHONE_RE.match(phone))


def validate_date(value: str) -> bool:
    if not value:
        return True
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


_VALIDATORS = {
    "url": (validate_url, "Invalid URL"),
    "email": (validate_email, "Invalid email"),
    "phone": (validate_phone, "Invalid phone number"),
    "date": (validate_date, "Invalid date"),
}


def get_validation_error(field_type: str, value: str, required: bool = False) -> str | None:
    """Error message for a field value, or None if it is valid."""
    if required and not value.strip():
        return "This field is required"
    if not value:
        return None

    validator = _VALIDATORS.get(field_type)
    if validator and not validator[0](value):
        return validator[1]
    return None


def validate_custom_fields(fields: list[dict]) -> dict[str, str]:
    """Validate a list of custom field dicts.

    Returns:
        Mapping of field id to error message; empty when all fields are valid
    """
    errors = {}
    seen_ids = set()
    for field in fields:
        field_id = field["id"]
        if field_id in seen_ids:
            errors[field_id] = "Duplicate field id"
            continue
        seen_ids.add(field_id)

        error = get_validation_error(field.get("type", "text"), field.get("value", ""), field.get("required", False))
        if error:
            errors[field_id] = error
    return errors


def public_fields(fields: list[dict]) -> list[dict]:
    """Fields visible on the public profile, in display order."""
    visible = [f for f in fields if f.get("isPublic", f.get("is_public", True))]
    return sorted(visible, key=lambda f: f.get("order", 0))
