"""
Card activation: redeem an activation code for an email address.

Steps, each a single backend call, with no rollback if a later one fails:
1. Normalize the code and email
2. Find the card; it must still be pending
3. Find or create the auth user (new users must go through onboarding)
4. Find or create the user's profile
5. Flip the card to activated, conditional on it still being pending
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone

from app.domain.errors import Conflict, NotFound, ValidationFailed, WorkflowError
from app.repositories.account import AccountRepository
from app.repositories.card import CardRepository
from app.repositories.profile import ProfileRepository
from app.repositories.user_role import UserRoleRepository
from app.services.card_codes import normalize_code, validate_activation_code
from app.services.profiles import build_empty_profile, username_from_email

logger = logging.getLogger(__name__)

ACTIVATION_FAILED = "Card activation failed"


@dataclass
class ActivationResult:
    success: bool
    status_code: int = 200
    message: str | None = None
    profile_id: str | None = None
    should_onboard: bool = False
    error: str | None = None

    @classmethod
    def failed(cls, error: str, status_code: int) -> "ActivationResult":
        return cls(success=False, status_code=status_code, error=error)


class ActivationService:

    def __init__(
        self,
        cards: CardRepository,
        accounts: AccountRepository,
        profiles: ProfileRepository,
        roles: UserRoleRepository,
    ):
        self.cards = cards
        self.accounts = accounts
        self.profiles = profiles
        self.roles = roles

    def activate(self, activation_code: str | None, email: str | None) -> ActivationResult:
        """Redeem an activation code. Never raises; failures come back as results."""
        try:
            return self._activate(activation_code, email)
        except WorkflowError as e:
            return ActivationResult.failed(e.message, e.status_code)
        except Exception:
            logger.exception("Card activation failed")
            return ActivationResult.failed(ACTIVATION_FAILED, 500)

    def _activate(self, activation_code: str | None, email: str | None) -> ActivationResult:
        if not activation_code or not email or not activation_code.strip() or not email.strip():
            raise ValidationFailed("Activation code and email are required")

        code = normalize_code(activation_code)
        email = email.strip().lower()

        if not validate_activation_code(code):
            raise ValidationFailed("Invalid activation code format")

        card = self.cards.get_by_activation_code(code)
        if not card:
            raise NotFound("Invalid activation code")
        if card["status"] == "activated":
            raise Conflict("This card has already been activated")
        if card["status"] != "pending":
            raise Conflict("This card cannot be activated")

        user_id, should_onboard = self._find_or_create_account(email)
        profile_id = self._find_or_create_profile(user_id, email)

        activated = self.cards.activate(
            card["id"],
            profile_id=profile_id,
            activated_at=datetime.now(timezone.utc).isoformat(),
        )
        if not activated:
            # Another request redeemed the code between lookup and update
            raise Conflict("This card has already been activated")

        logger.info(f"Activated card {card['id']} for profile {profile_id} (new user: {should_onboard})")

        return ActivationResult(
            success=True,
            message="Card activated successfully",
            profile_id=profile_id,
            should_onboard=should_onboard,
        )

    def _find_or_create_account(self, email: str) -> tuple[str, bool]:
        """Returns (user_id, should_onboard)."""
        account = self.accounts.get_by_email(email)
        if account:
            return account["id"], False

        account = self.accounts.create(email, password=secrets.token_urlsafe(32))
        try:
            self.roles.assign(account["id"], "customer")
        except Exception as e:
            logger.error(f"Failed to assign customer role to {account['id']}: {e}")

        return account["id"], True

    def _find_or_create_profile(self, user_id: str, email: str) -> str:
        profile = self.profiles.get_by_user_id(user_id)
        if profile:
            return profile["id"]

        profile = self.profiles.create(
            user_id=user_id,
            username=username_from_email(email),
            email=email,
            **build_empty_profile(),
        )
        if not profile:
            raise RuntimeError(f"Profile insert for user {user_id} returned no row")
        return profile["id"]
