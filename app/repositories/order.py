from supabase import Client

from app.repositories.search import ilike_any

SEARCH_COLUMNS = ("order_number", "customer_email", "customer_name")


class OrderRepository:
    """Card orders, keyed for idempotency on the Stripe payment intent id."""

    def __init__(self, db: Client):
        self.db = db

    def get_by_id(self, order_id: str) -> dict | None:
        result = self.db.table("orders").select("*").eq("id", order_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    def get_by_payment_intent(self, payment_intent_id: str) -> dict | None:
        result = self.db.table("orders").select("*").eq(
            "stripe_payment_intent_id", payment_intent_id
        ).limit(1).execute()
        return result.data[0] if result and result.data else None

    def get_by_order_number(self, order_number: str) -> dict | None:
        result = self.db.table("orders").select("*").eq(
            "order_number", order_number
        ).limit(1).execute()
        return result.data[0] if result and result.data else None

    def list(
        self,
        status: str | None = None,
        payment_status: str | None = None,
        search: str | None = None,
        limit: int = 100,
    ) -> list[dict]:
        """Newest orders first, optionally filtered.

        `search` matches order number, customer email or customer name.
        """
        query = self.db.table("orders").select("*")
        if status:
            query = query.eq("status", status)
        if payment_status:
            query = query.eq("payment_status", payment_status)
        if search:
            search_filter = ilike_any(SEARCH_COLUMNS, search)
            if search_filter:
                query = query.or_(search_filter)
        result = query.order("created_at", desc=True).limit(limit).execute()
        return result.data if result and result.data else []

    def count(self, status: str | None = None) -> int:
        query = self.db.table("orders").select("id", count="exact")
        if status:
            query = query.eq("status", status)
        result = query.limit(1).execute()
        return result.count or 0

    def create_for_payment(self, data: dict) -> dict | None:
        """Insert an order unless one already exists for its payment intent.

        Relies on the unique constraint on orders.stripe_payment_intent_id.

        Returns:
            The inserted order, or None if the payment intent already had one
        """
        result = self.db.table("orders").upsert(
            data,
            on_conflict="stripe_payment_intent_id",
            ignore_duplicates=True,
        ).execute()
        return result.data[0] if result and result.data else None

    def claim_card_issuance(self, order_id: str) -> dict | None:
        """Flip cards_issued from false to true.

        Returns:
            The order if this call flipped the flag, None if it was already set
        """
        result = self.db.table("orders").update({"cards_issued": True}).eq(
            "id", order_id
        ).eq("cards_issued", False).execute()
        return result.data[0] if result and result.data else None

    def claim_for_user(self, order_id: str, user_id: str) -> dict | None:
        """Link the order to its buyer's account, unless it is already linked.

        Returns:
            The order if this call set user_id, None if another one did first
        """
        result = self.db.table("orders").update({"user_id": user_id}).eq(
            "id", order_id
        ).is_("user_id", "null").execute()
        return result.data[0] if result and result.data else None

    def update(self, order_id: str, **kwargs) -> dict | None:
        result = self.db.table("orders").update(kwargs).eq("id", order_id).execute()
        return result.data[0] if result and result.data else None
