"""
User Module - Schemas
======================
Request records for registration, login and profile/role changes.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modules.user.models import UserRole


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field("", max_length=50)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class UserProfileUpdate(BaseModel):
    """Allow-listed profile fields; anything else in the payload is rejected."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None


class RoleUpdate(BaseModel):
    role: UserRole
