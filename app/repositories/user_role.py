from supabase import Client


class UserRoleRepository:

    def __init__(self, db: Client):
        self.db = db

    def get_role(self, user_id: str) -> str | None:
        """Get a user's role ('customer', 'admin' or 'reseller')."""
        result = self.db.table("user_roles").select("role").eq(
            "user_id", user_id
        ).limit(1).execute()
        return result.data[0]["role"] if result and result.data else None

    def assign(self, user_id: str, role: str) -> None:
        self.db.table("user_roles").insert({"user_id": user_id, "role": role}).execute()
