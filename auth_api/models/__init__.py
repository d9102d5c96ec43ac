"""Models package exports."""

from auth_api.models.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    PingResponse,
    RegisterRequest,
    TokenResponse,
)
from auth_api.models.user import AccessToken, IssuedToken, User, UserStatus

__all__ = [
    "AccessToken",
    "AuthResponse",
    "IssuedToken",
    "LoginRequest",
    "MessageResponse",
    "PingResponse",
    "RegisterRequest",
    "TokenResponse",
    "User",
    "UserStatus",
]
