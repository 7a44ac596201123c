"""
Auth Routes
=============
Register, login, logout and current user.

A successful register/login sets the auth_token cookie and merges the
visitor's guest cart (session_id cookie) into the account.
"""

from fastapi import APIRouter, Request, Depends, Response
from sqlalchemy.orm import Session

from config.database import get_db
from config.settings import AUTH_COOKIE, SESSION_COOKIE
from common.security import get_cookie_kwargs
from modules.auth.deps import require_login
from modules.auth.service import auth_service
from modules.user.models import User
from modules.user.schemas import RegisterRequest, LoginRequest

router = APIRouter(prefix="/api", tags=["auth"])


def _login_payload(user: User) -> dict:
    return {"id": user.id, "email": user.email, "name": user.name, "role": user.role}


@router.post("/register")
async def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    user = auth_service.register(db, body, session_id=request.cookies.get(SESSION_COOKIE))
    db.commit()

    response.set_cookie(AUTH_COOKIE, auth_service.issue_token(user), **get_cookie_kwargs())
    return {"success": True, "user": _login_payload(user)}


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    user = auth_service.login(db, body, session_id=request.cookies.get(SESSION_COOKIE))
    db.commit()

    response.set_cookie(AUTH_COOKIE, auth_service.issue_token(user), **get_cookie_kwargs())
    return {"success": True, "user": _login_payload(user)}


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(AUTH_COOKIE)
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}


@router.get("/user")
async def current_user(me=Depends(require_login)):
    return {"success": True, "user": me.to_dict()}
