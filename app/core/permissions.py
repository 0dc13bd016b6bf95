from fastapi import Depends, HTTPException, status
from supabase import Client

from app.core.security import require_auth
from app.repositories.user_role import UserRoleRepository
from database.connection import get_db


def get_current_user(auth_payload: dict = Depends(require_auth)) -> dict:
    """Get the authenticated user from the JWT claims.

    Returns:
        {"id": auth user id, "email": lowercased email}

    Raises:
        HTTPException 401 if the token has no sub claim
    """
    user_id = auth_payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload: missing sub claim"
        )
    return {"id": user_id, "email": (auth_payload.get("email") or "").lower()}


def require_admin(
    user: dict = Depends(get_current_user),
    db: Client = Depends(get_db),
) -> dict:
    """Require the 'admin' role in user_roles - raises 403 otherwise."""
    role = UserRoleRepository(db).get_role(user["id"])
    if role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def require_profile_owner(profile: dict | None, user: dict) -> dict:
    """Check that a fetched profile exists and belongs to the caller.

    Missing and foreign profiles both yield 404 so ids cannot be probed.
    """
    if not profile or profile.get("user_id") != user["id"]:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Profile not found"
        )
    return profile
