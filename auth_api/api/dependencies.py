"""FastAPI dependencies for service wiring and authentication."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from auth_api.config import get_settings
from auth_api.database import get_pool
from auth_api.exceptions import Unauthorized
from auth_api.models.user import User
from auth_api.services.auth_service import AuthService
from auth_api.services.credential_store import CredentialStore
from auth_api.services.token_service import TokenIssuer

# Missing or non-bearer headers are turned into our own 401 below
bearer_scheme = HTTPBearer(auto_error=False)


async def get_auth_service(request: Request) -> AuthService:
    """Build an AuthService for this request from the shared pool and settings."""
    settings = get_settings()
    pool = await get_pool()
    store = CredentialStore(bcrypt_rounds=settings.bcrypt_rounds)
    issuer = TokenIssuer(store, ttl_minutes=settings.token_ttl_minutes)
    hooks = getattr(request.app.state, "registered_hooks", [])
    return AuthService(pool, store, issuer, registered_hooks=hooks)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve the bearer token in the Authorization header to a user.

    Raises:
        Unauthorized: Header missing, token unknown or expired, user inactive
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized()

    return await auth_service.authenticate(credentials.credentials)
