from supabase import Client

from app.repositories.search import ilike_any

SEARCH_COLUMNS = ("card_code", "activation_code")


class CardRepository:
    """Physical cards and their activation codes."""

    def __init__(self, db: Client):
        self.db = db

    def get_by_activation_code(self, activation_code: str) -> dict | None:
        """Get a card by its (normalized) activation code."""
        result = self.db.table("cards").select("*").eq(
            "activation_code", activation_code
        ).limit(1).execute()
        return result.data[0] if result and result.data else None

    def create_many(self, cards: list[dict]) -> list[dict]:
        """Bulk insert cards. Returns the inserted rows."""
        if not cards:
            return []
        result = self.db.table("cards").insert(cards).execute()
        return result.data if result and result.data else []

    def count_for_order(self, order_id: str) -> int:
        result = self.db.table("cards").select("id", count="exact").eq(
            "order_id", order_id
        ).execute()
        return result.count or 0

    def activate(self, card_id: str, profile_id: str, activated_at: str) -> dict | None:
        """Mark a pending card as activated and link it to a profile.

        The update only matches while status is still 'pending', so of two
        concurrent redemptions exactly one gets the row back.

        Returns:
            The updated card, or None if it was no longer pending
        """
        result = self.db.table("cards").update({
            "status": "activated",
            "profile_id": profile_id,
            "activated_at": activated_at,
        }).eq("id", card_id).eq("status", "pending").execute()
        return result.data[0] if result and result.data else None

    def get_by_id(self, card_id: str) -> dict | None:
        result = self.db.table("cards").select("*").eq("id", card_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    def list(
        self,
        status: str | None = None,
        tier: str | None = None,
        reseller_id: str | None = None,
        search: str | None = None,
        limit: int = 100,
    ) -> list[dict]:
        """Newest cards first, optionally filtered.

        `search` matches part of the card code or the activation code.
        """
        query = self.db.table("cards").select("*")
        if status:
            query = query.eq("status", status)
        if tier:
            query = query.eq("tier", tier)
        if reseller_id:
            query = query.eq("reseller_id", reseller_id)
        if search:
            search_filter = ilike_any(SEARCH_COLUMNS, search)
            if search_filter:
                query = query.or_(search_filter)
        result = query.order("created_at", desc=True).limit(limit).execute()
        return result.data if result and result.data else []

    def count(self, status: str | None = None) -> int:
        query = self.db.table("cards").select("id", count="exact")
        if status:
            query = query.eq("status", status)
        result = query.limit(1).execute()
        return result.count or 0

    def update(self, card_id: str, **kwargs) -> dict | None:
        result = self.db.table("cards").update(kwargs).eq("id", card_id).execute()
        return result.data[0] if result and result.data else None
