"""
Auth Module - Dependencies
===========================
FastAPI dependencies for authentication, role checks and cart identity.
These are injected into route handlers via Depends().

Roles are ranked: a user holding a higher role passes every check for a
lower one (admin implies user).
"""

from typing import Optional

from fastapi import Request, Response, Depends, HTTPException, status
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import AUTH_COOKIE, SESSION_COOKIE
from common.security import decode_token, new_session_id, get_cookie_kwargs
from modules.cart.service import CartIdentity
from modules.user.models import User, UserRole

ROLE_RANKS = {
    UserRole.USER.value: 1,
    UserRole.ADMIN.value: 2,
}


def has_role(user: Optional[User], required_role: str) -> bool:
    """Capability check used by every role-gated dependency."""
    if not user:
        return False
    required = ROLE_RANKS.get(UserRole(required_role).value)
    return ROLE_RANKS.get(user.role, 0) >= required


def get_current_active_user(request: Request, db: Session = Depends(get_db)) -> Optional[User]:
    """
    Identify the current user from the auth_token cookie.
    Returns User object or None.
    """
    token = request.cookies.get(AUTH_COOKIE)
    if not token:
        return None

    payload = decode_token(token)
    if not payload:
        return None

    user_id = payload.get("sub")
    if not user_id:
        return None

    return db.query(User).filter(User.id == user_id).first()


def require_login(user=Depends(get_current_active_user)):
    """Require any authenticated user. Raises 401 if not logged in."""
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


def require_role(required_role: str):
    """
    Factory: returns a dependency that lets through users holding at least
    `required_role`. 401 when anonymous, 403 when the role is too low.

    Usage:
      user=Depends(require_role("admin"))
    """
    def dependency(user=Depends(get_current_active_user)):
        if not user:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
        if not has_role(user, required_role):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return user

    return dependency


require_admin = require_role(UserRole.ADMIN.value)


def get_cart_identity(
    request: Request,
    response: Response,
    user=Depends(get_current_active_user),
) -> CartIdentity:
    """
    Cart owner for this request. Visitors without a session cookie get a
    fresh guest session id, set on the response.
    """
    session_id = request.cookies.get(SESSION_COOKIE)
    if not session_id:
        session_id = new_session_id()
        response.set_cookie(SESSION_COOKIE, session_id, **get_cookie_kwargs())

    return CartIdentity(user_id=user.id if user else None, session_id=session_id)
