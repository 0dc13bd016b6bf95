from supabase import Client


class ActivationBatchRepository:
    """Admin-generated batches of cards, optionally assigned to a reseller."""

    def __init__(self, db: Client):
        self.db = db

    def create(
        self,
        batch_name: str,
        tier: str,
        cards_count: int,
        created_by: str,
        reseller_id: str | None = None,
        notes: str | None = None,
    ) -> dict | None:
        result = self.db.table("activation_batches").insert({
            "batch_name": batch_name,
            "tier": tier,
            "cards_count": cards_count,
            "status": "assigned" if reseller_id else "ready",
            "created_by": created_by,
            "assigned_to_reseller_id": reseller_id,
            "notes": notes,
        }).execute()
        return result.data[0] if result and result.data else None
