"""Pydantic schemas for user registration and authentication."""

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

_UPPERCASE = re.compile(r"[A-Z]")
_LOWERCASE = re.compile(r"[a-z]")
_SPECIAL = re.compile(r"[^A-Za-z0-9]")


class RegisterRequest(BaseModel):
    """Request to create a user account."""

    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(
        ...,
        min_length=8,
        max_length=100,
        description=(
            "Password (8-100 characters) with at least one uppercase letter, "
            "one lowercase letter and one special character"
        ),
    )

    @field_validator("email")
    @classmethod
    def validate_email_length(cls, v: str) -> str:
        if not 3 <= len(v) <= 100:
            raise ValueError("Email should be between 3 to 100 characters")
        return v

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        if not (_UPPERCASE.search(v) and _LOWERCASE.search(v) and _SPECIAL.search(v)):
            raise ValueError(
                "Password must contain at least one uppercase letter, "
                "one lowercase letter, and one special character"
            )
        return v


class LoginRequest(BaseModel):
    """Request for login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Response with a bearer access token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token expiry in seconds")


class UserResponse(BaseModel):
    """Public user profile. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    created_at: datetime
    updated_at: datetime
