"""Auth request and response models with validation."""

import re
from datetime import datetime
from typing import Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, Field, field_validator

from auth_api.models.user import User

USERNAME_PATTERN = re.compile(r"[a-zA-Z0-9_-]+")

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72

MAX_EMAIL_LENGTH = 255


def _check_email(v: str) -> str:
    # Validated but stored as typed: lookups compare emails exactly, so the
    # domain is not lowercased the way EmailStr would.
    if len(v) > MAX_EMAIL_LENGTH:
        raise ValueError(f"Email cannot be longer than {MAX_EMAIL_LENGTH} characters")
    try:
        validate_email(v, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"value is not a valid email address: {e}") from e
    return v


def _check_password(v: str) -> str:
    if not v.strip():
        raise ValueError("Password cannot be empty or whitespace only")
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return v


class RegisterRequest(BaseModel):
    """Registration payload.

    Attributes:
        username: Unique handle (1-50 chars, alphanumeric + underscore/hyphen)
        email: Unique, well-formed email address (max 255 chars)
        display_name: Human-readable name (1-100 chars)
        phone_number: Optional phone number (max 20 chars)
        password: Plain-text password (min 8 chars)
        password_confirmation: Must equal password
    """

    username: str = Field(..., min_length=1, max_length=50)
    email: str
    display_name: str = Field(..., min_length=1, max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=20)
    password: str = Field(..., min_length=8)
    password_confirmation: str

    @field_validator("username")
    @classmethod
    def username_valid_chars(cls, v: str) -> str:
        """Ensure username contains only alphanumeric, underscore, or hyphen."""
        if not USERNAME_PATTERN.fullmatch(v):
            raise ValueError(
                "Username must contain only alphanumeric characters, "
                "underscores, or hyphens"
            )
        return v

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)

    @field_validator("display_name")
    @classmethod
    def display_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Display name cannot be empty or whitespace only")
        return v

    @field_validator("password")
    @classmethod
    def password_valid(cls, v: str) -> str:
        return _check_password(v)


class LoginRequest(BaseModel):
    """Login credentials."""

    email: str
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def email_valid(cls, v: str) -> str:
        return _check_email(v)


class AuthResponse(BaseModel):
    """Response for register and login: the user plus a fresh token."""

    message: str
    user: User
    access_token: str
    token_type: str = "Bearer"


class TokenResponse(BaseModel):
    """Response for refresh.

    Attributes:
        access_token: The only token now valid for the user
        token_type: Always "Bearer"
        expires_at: When the token stops resolving, or None if it never expires
    """

    access_token: str
    token_type: str = "Bearer"
    expires_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str


class PingResponse(BaseModel):
    ok: bool = True
