"""User and access token models."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class User(BaseModel):
    """A registered user. Never carries the password hash."""

    id: UUID
    username: str
    email: str
    display_name: str
    phone_number: Optional[str] = None
    profile_picture_url: Optional[str] = None
    bio: Optional[str] = None
    status: UserStatus = UserStatus.ACTIVE
    last_seen: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


class AccessToken(BaseModel):
    """A stored bearer token. Only the SHA-256 hash of the value is kept."""

    id: UUID
    user_id: UUID
    name: str = "auth_token"
    token_hash: str
    created_at: datetime
    last_used_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class IssuedToken(BaseModel):
    """A freshly minted token: the plaintext is only available here."""

    plaintext: str
    token: AccessToken
