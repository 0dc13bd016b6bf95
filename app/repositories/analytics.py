from supabase import Client


class AnalyticsRepository:
    """Profile analytics events (views, vCard downloads, link clicks)."""

    def __init__(self, db: Client):
        self.db = db

    def record(
        self,
        profile_id: str,
        event_type: str,
        device_type: str,
        user_agent: str = "",
        referrer: str = "",
        ip_hash: str = "",
        metadata: dict | None = None,
    ) -> dict | None:
        result = self.db.table("profile_analytics").insert({
            "profile_id": profile_id,
            "event_type": event_type,
            "device_type": device_type,
            "user_agent": user_agent,
            "referrer": referrer,
            "ip_hash": ip_hash,
            "country_code": "",
            "metadata": metadata or {},
        }).execute()
        return result.data[0] if result and result.data else None

    def list_for_profile(self, profile_id: str) -> list[dict]:
        """All events for a profile, newest first."""
        result = self.db.table("profile_analytics").select("*").eq(
            "profile_id", profile_id
        ).order("created_at", desc=True).execute()
        return result.data if result and result.data else []
