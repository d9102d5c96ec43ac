"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, status

from auth_api.api.dependencies import get_auth_service, get_current_user
from auth_api.models.auth import (
    AuthResponse,
    LoginRequest,
    MessageResponse,
    PingResponse,
    RegisterRequest,
    TokenResponse,
)
from auth_api.models.user import User
from auth_api.services.auth_service import AuthResult, AuthService

router = APIRouter(tags=["Auth"])


def _auth_response(message: str, result: AuthResult) -> AuthResponse:
    return AuthResponse(
        message=message,
        user=result.user,
        access_token=result.access_token,
        token_type=result.token_type,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Create an account and return it with a first access token.

    Raises:
        ValidationError 422: Invalid fields, mismatched confirmation, or
            username/email already taken
        ServerError 500: The store failed
    """
    result = await auth_service.register(request)
    return _auth_response("User registered successfully", result)


@router.post("/login")
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Login with email and password.

    Raises:
        Unauthorized 401: Credentials invalid (never says which part)
    """
    result = await auth_service.login(request.email, request.password)
    return _auth_response("Login successful", result)


@router.post("/logout")
async def logout(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Revoke every token of the current user, not just the one presented."""
    await auth_service.logout(current_user)
    return MessageResponse(message="Successfully logged out")


@router.get("/user")
async def get_user(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    return auth_service.profile(current_user)


@router.post("/refresh")
async def refresh(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Swap all of the current user's tokens for a single new one."""
    issued = await auth_service.refresh(current_user)
    return TokenResponse(
        access_token=issued.plaintext,
        expires_at=issued.token.expires_at,
    )


@router.get("/ping")
async def ping(current_user: User = Depends(get_current_user)) -> PingResponse:
    return PingResponse(ok=True)
