from supabase import Client

# Page size when scanning auth users
_PAGE_SIZE = 1000


class AccountRepository:
    """Supabase Auth users, managed through the admin API.

    Accounts are returned as plain {"id", "email"} dicts.
    """

    def __init__(self, db: Client):
        self.db = db

    def get_by_email(self, email: str) -> dict | None:
        """Find an auth user by (lowercased) email.

        The admin API has no email filter, so this pages through users.
        """
        page = 1
        while True:
            users = self.db.auth.admin.list_users(page=page, per_page=_PAGE_SIZE)
            for user in users:
                if user.email and user.email.lower() == email:
                    return {"id": user.id, "email": user.email}
            if len(users) < _PAGE_SIZE:
                return None
            page += 1

    def create(self, email: str, password: str) -> dict:
        """Create a confirmed auth user.

        The password is a throwaway; users sign in with magic links.
        """
        response = self.db.auth.admin.create_user({
            "email": email,
            "password": password,
            "email_confirm": True,
        })
        return {"id": response.user.id, "email": response.user.email}
