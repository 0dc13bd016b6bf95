from supabase import Client


class ProfileRepository:
    """Public profiles. A user may own several, subject to their tier."""

    def __init__(self, db: Client):
        self.db = db

    def create(self, user_id: str, username: str, email: str, **kwargs) -> dict | None:
        """Create a profile. Extra columns are passed through as-is."""
        result = self.db.table("profiles").insert({
            "user_id": user_id,
            "username": username,
            "email": email,
            **kwargs,
        }).execute()
        return result.data[0] if result and result.data else None

    def get_by_id(self, profile_id: str) -> dict | None:
        result = self.db.table("profiles").select("*").eq("id", profile_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    def get_by_user_id(self, user_id: str) -> dict | None:
        """Get the user's first (primary) profile."""
        result = self.db.table("profiles").select("*").eq(
            "user_id", user_id
        ).order("created_at").limit(1).execute()
        return result.data[0] if result and result.data else None

    def get_by_username(self, username: str) -> dict | None:
        result = self.db.table("profiles").select("*").eq(
            "username", username
        ).limit(1).execute()
        return result.data[0] if result and result.data else None

    def list_for_user(self, user_id: str) -> list[dict]:
        result = self.db.table("profiles").select("*").eq(
            "user_id", user_id
        ).order("created_at").execute()
        return result.data if result and result.data else []

    def count_for_user(self, user_id: str) -> int:
        result = self.db.table("profiles").select("id", count="exact").eq(
            "user_id", user_id
        ).execute()
        return result.count or 0

    def update(self, profile_id: str, **kwargs) -> dict | None:
        result = self.db.table("profiles").update({
            **kwargs,
            "updated_at": "now()",
        }).eq("id", profile_id).execute()
        return result.data[0] if result and result.data else None

    def increment_view_count(self, profile_id: str) -> None:
        """Atomically bump view_count via the increment_view_count SQL function."""
        self.db.rpc("increment_view_count", {"profile_id": profile_id}).execute()
