"""
Human-readable codes for cards and orders.

Codes use a 32-symbol alphabet without the look-alikes I, O, 0 and 1 and are
drawn with `secrets`. Uniqueness is enforced by the database, not here.
"""
import re
import secrets
from datetime import datetime, timezone

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
GROUP_LENGTH = 4
CARD_CODE_PREFIX = "OBSI"
ORDER_NUMBER_PREFIX = "ORD"

_ACTIVATION_CODE_RE = re.compile(r"^[A-Z0-9]{4}-[A-Z0-9]{4}$")
_CARD_CODE_RE = re.compile(r"^OBSI-[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}$")


def _random_groups(count: int) -> str:
    return "-".join(
        "".join(secrets.choice(CODE_ALPHABET) for _ in range(GROUP_LENGTH))
        for _ in range(count)
    )


def generate_activation_code() -> str:
    """Generate an activation code like AB3D-7XQ2."""
    return _random_groups(2)


def generate_card_code() -> str:
    """Generate a printed card code like OBSI-AB3D-7XQ2-K9ZL."""
    return f"{CARD_CODE_PREFIX}-{_random_groups(3)}"


def generate_order_number(now: datetime | None = None) -> str:
    """Generate an order number like ORD-20261019-0042.

    Only 10,000 numbers exist per day; the unique constraint on
    orders.order_number rejects a collision.
    """
    now = now or datetime.now(timezone.utc)
    return f"{ORDER_NUMBER_PREFIX}-{now:%Y%m%d}-{secrets.randbelow(10000):04d}"


def normalize_code(code: str) -> str:
    return code.strip().upper()


def validate_activation_code(code: str) -> bool:
    """Check the XXXX-XXXX shape (case-insensitive)."""
    return bool(_ACTIVATION_CODE_RE.fullmatch(code.upper()))


def validate_card_code(code: str) -> bool:
    """Check the OBSI-XXXX-XXXX-XXXX shape (case-insensitive)."""
    return bool(_CARD_CODE_RE.fullmatch(code.upper()))
