"""
Auth Module - Service Layer
=============================
Registration and email/password login. Both hand the visitor's guest cart
over to the authenticated user.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from common.security import hash_password, verify_password, create_token
from common.exceptions import AuthenticationError, DuplicateError
from modules.cart.service import cart_service
from modules.user.models import User, UserRole
from modules.user.schemas import RegisterRequest, LoginRequest
from modules.user.service import user_service

logger = logging.getLogger("marketplace.auth")


class AuthService:
    """Handles credential checks, account creation and token issuing."""

    def register(self, db: Session, data: RegisterRequest, session_id: Optional[str] = None) -> User:
        if user_service.get_by_email(db, data.email):
            raise DuplicateError("A user with this email already exists")

        user = User(
            email=data.email,
            password_hash=hash_password(data.password),
            name=data.name.strip(),
            phone=(data.phone or "").strip(),
            role=UserRole.USER.value,
        )
        db.add(user)
        try:
            db.flush()
        except IntegrityError:
            # Lost a race against a concurrent registration
            db.rollback()
            raise DuplicateError("A user with this email already exists")

        cart_service.merge_guest_cart(db, session_id, user.id)
        logger.info(f"User registered: {user.email}")
        return user

    def login(self, db: Session, data: LoginRequest, session_id: Optional[str] = None) -> User:
        user = user_service.get_by_email(db, data.email)
        if not user or not verify_password(data.password, user.password_hash):
            logger.info(f"Failed login for {data.email}")
            raise AuthenticationError("Invalid email or password")

        cart_service.merge_guest_cart(db, session_id, user.id)
        logger.info(f"User logged in: {user.email}")
        return user

    def issue_token(self, user: User) -> str:
        return create_token({"sub": user.id})


# Singleton
auth_service = AuthService()
