"""
User Module - Service Layer
==============================
Lookup, profile updates and role management.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from common.exceptions import NotFoundError, AuthorizationError
from modules.user.models import User, UserRole
from modules.user.schemas import UserProfileUpdate

logger = logging.getLogger("marketplace.user")


class UserService:

    def get_by_id(self, db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.strip().lower()).first()

    def list_users(self, db: Session) -> List[User]:
        return db.query(User).order_by(User.created_at.desc(), User.email).all()

    def update_profile(self, db: Session, user: User, changes: UserProfileUpdate) -> User:
        """Apply only the fields explicitly set on `changes`."""
        for field, value in changes.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        db.flush()
        return user

    def set_role(self, db: Session, acting_user: User, user_id: str, role: UserRole) -> User:
        if acting_user.id == user_id:
            raise AuthorizationError("You cannot change your own role")

        user = self.get_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")

        user.role = UserRole(role).value
        db.flush()
        logger.info(f"Role of {user.email} set to {user.role} by {acting_user.email}")
        return user


# Singleton
user_service = UserService()
