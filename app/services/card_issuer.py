"""Creation of pending cards, for paid orders and for admin batches."""
import logging

from app.core.features import TierType
from app.domain.errors import UpstreamFailure, ValidationFailed
from app.repositories.activation_batch import ActivationBatchRepository
from app.repositories.card import CardRepository
from app.services.card_codes import generate_activation_code, generate_card_code

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 1000


class CardIssuer:

    def __init__(self, cards: CardRepository, batches: ActivationBatchRepository | None = None):
        self.cards = cards
        self.batches = batches

    @staticmethod
    def build_cards(
        tier: TierType,
        quantity: int,
        order_id: str | None = None,
        reseller_id: str | None = None,
    ) -> list[dict]:
        """Build `quantity` pending card rows with fresh codes."""
        cards = []
        for _ in range(quantity):
            card = {
                "card_code": generate_card_code(),
                "activation_code": generate_activation_code(),
                "tier": tier.value,
                "status": "pending",
            }
            if order_id:
                card["order_id"] = order_id
            if reseller_id:
                card["reseller_id"] = reseller_id
            cards.append(card)
        return cards

    def issue(
        self,
        tier: TierType,
        quantity: int,
        order_id: str | None = None,
        reseller_id: str | None = None,
    ) -> list[dict]:
        """Insert `quantity` pending cards. Returns the created rows."""
        if quantity <= 0:
            return []
        return self.cards.create_many(
            self.build_cards(tier, quantity, order_id=order_id, reseller_id=reseller_id)
        )

    def issue_batch(
        self,
        tier: TierType,
        quantity: int,
        batch_name: str,
        created_by: str,
        reseller_id: str | None = None,
        notes: str | None = None,
    ) -> tuple[dict, list[dict]]:
        """Create an activation batch and its cards.

        Raises:
            ValidationFailed: If the quantity or batch name is invalid
            UpstreamFailure: If the batch row could not be created

        Returns:
            (batch, cards)
        """
        if self.batches is None:
            raise RuntimeError("CardIssuer needs a batch repository to issue batches")
        if not batch_name or not batch_name.strip():
            raise ValidationFailed("Batch name is required")
        if quantity <= 0 or quantity > MAX_BATCH_SIZE:
            raise ValidationFailed(f"Quantity must be between 1 and {MAX_BATCH_SIZE}")

        batch = self.batches.create(
            batch_name=batch_name.strip(),
            tier=tier.value,
            cards_count=quantity,
            created_by=created_by,
            reseller_id=reseller_id,
            notes=notes,
        )
        if not batch:
            raise UpstreamFailure("Failed to create activation batch")

        cards = self.issue(tier, quantity, reseller_id=reseller_id)
        logger.info(f"Generated batch {batch['id']} '{batch_name}' with {len(cards)} {tier.value} cards")
        return batch, cards
