from supabase import Client


class SubscriptionRepository:
    """Subscriptions table (one row per user) and its provisioning procedure."""

    def __init__(self, db: Client):
        self.db = db

    def get_by_user_id(self, user_id: str) -> dict | None:
        result = self.db.table("subscriptions").select("*").eq(
            "user_id", user_id
        ).limit(1).execute()
        return result.data[0] if result and result.data else None

    def provision(self, user_id: str, tier: str, duration_months: int) -> None:
        """Create or extend a user's subscription via the provision_subscription SQL function.

        Args:
            user_id: The auth user id
            tier: Subscription tier ('premium', 'premium_plus', 'emeraude')
            duration_months: Length of the paid period
        """
        self.db.rpc("provision_subscription", {
            "p_user_id": user_id,
            "p_tier": tier,
            "p_duration_months": duration_months,
        }).execute()
