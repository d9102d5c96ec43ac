"""Authentication service: register, login, logout, refresh and profile."""

from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional

import asyncpg
import structlog

from auth_api.exceptions import (
    AuthApiError,
    Conflict,
    ServerError,
    Unauthorized,
    ValidationError,
)
from auth_api.models.auth import RegisterRequest
from auth_api.models.user import IssuedToken, User
from auth_api.services.credential_store import CredentialStore
from auth_api.services.token_service import TOKEN_TYPE, TokenIssuer

logger = structlog.get_logger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"

RegisteredHook = Callable[[User], Awaitable[None]]


@dataclass(frozen=True)
class AuthResult:
    """A user together with a freshly issued token."""

    user: User
    issued: IssuedToken
    token_type: str = TOKEN_TYPE

    @property
    def access_token(self) -> str:
        return self.issued.plaintext


class AuthService:
    """Orchestrates the credential store and token issuer.

    Holds no per-request state: only the pool, the two collaborators, and
    the hooks to run after a successful registration.
    """

    def __init__(
        self,
        pool: asyncpg.Pool,
        store: CredentialStore,
        issuer: TokenIssuer,
        registered_hooks: Optional[Iterable[RegisteredHook]] = None,
    ):
        self.pool = pool
        self.store = store
        self.issuer = issuer
        self.registered_hooks = list(registered_hooks or [])

    async def register(self, request: RegisterRequest) -> AuthResult:
        """Create a user and issue their first token.

        User creation and token issuance share one transaction, so a failure
        in either leaves nothing behind.

        Raises:
            ValidationError: Passwords differ, or username/email taken
            ServerError: The store failed for any other reason
        """
        if request.password != request.password_confirmation:
            raise ValidationError.for_field(
                "password", "The password confirmation does not match."
            )

        try:
            async with self.pool.acquire() as conn:
                taken = await self.store.taken_fields(
                    conn, request.username, request.email
                )
                if taken:
                    raise Conflict(taken)

                async with conn.transaction():
                    user = await self.store.create(
                        conn,
                        username=request.username,
                        email=request.email,
                        display_name=request.display_name,
                        password=request.password,
                        phone_number=request.phone_number,
                    )
                    issued = await self.issuer.issue(conn, user.id)
        except AuthApiError:
            raise
        except Exception as e:
            logger.error("user_registration_failed", error=str(e))
            raise ServerError("User registration failed", error=str(e)) from e

        logger.info("user_registered", user_id=str(user.id), username=user.username)
        await self._emit_registered(user)

        return AuthResult(user=user, issued=issued)

    async def login(self, email: str, password: str) -> AuthResult:
        """Check credentials and issue an additional token.

        Existing tokens stay valid, so several sessions can be open at once.

        Raises:
            Unauthorized: Unknown email, wrong password, or inactive account,
                all with the same message
        """
        async with self.pool.acquire() as conn:
            result = await self.store.find_by_email(conn, email)

            if result is None:
                self.store.burn_password_check(password)
                logger.warning("login_failed", reason="unknown_email")
                raise Unauthorized(INVALID_CREDENTIALS)

            user, password_hash = result

            if not self.store.verify_password(password, password_hash):
                logger.warning("login_failed", reason="bad_password", user_id=str(user.id))
                raise Unauthorized(INVALID_CREDENTIALS)

            if not user.is_active:
                logger.warning("login_failed", reason="inactive", user_id=str(user.id))
                raise Unauthorized(INVALID_CREDENTIALS)

            issued = await self.issuer.issue(conn, user.id)

        logger.info("user_logged_in", user_id=str(user.id))
        return AuthResult(user=user, issued=issued)

    async def authenticate(self, token: str) -> User:
        """Resolve a bearer token to an active user.

        Raises:
            Unauthorized: Token unknown or expired, or user not active
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                user = await self.issuer.resolve(conn, token)

        if user is None:
            raise Unauthorized()

        if not user.is_active:
            logger.warning("inactive_user_token", user_id=str(user.id))
            raise Unauthorized()

        return user

    async def logout(self, user: User) -> int:
        """Revoke every token of the user, ending all of their sessions.

        Returns:
            Number of tokens revoked

        Raises:
            ServerError: The revoke failed
        """
        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    revoked = await self.issuer.revoke_all(conn, user.id)
        except Exception as e:
            logger.error("logout_failed", user_id=str(user.id), error=str(e))
            raise ServerError("Logout failed", error=str(e)) from e

        logger.info("user_logged_out", user_id=str(user.id), tokens_revoked=revoked)
        return revoked

    async def refresh(self, user: User) -> IssuedToken:
        """Replace all of the user's tokens with exactly one new token.

        Revoke and issue commit together; the user is never left without a
        valid token.

        Raises:
            ServerError: The store failed; the old tokens remain valid
        """
        try:
            async with self.pool.acquire() as conn:
                async with conn.transaction():
                    await self.issuer.revoke_all(conn, user.id)
                    issued = await self.issuer.issue(conn, user.id)
        except Exception as e:
            logger.error("token_refresh_failed", user_id=str(user.id), error=str(e))
            raise ServerError("Token refresh failed", error=str(e)) from e

        logger.info("token_refreshed", user_id=str(user.id))
        return issued

    def profile(self, user: User) -> User:
        return user

    async def _emit_registered(self, user: User) -> None:
        for hook in self.registered_hooks:
            try:
                await hook(user)
            except Exception as e:
                logger.error(
                    "registered_hook_failed",
                    hook=getattr(hook, "__name__", repr(hook)),
                    user_id=str(user.id),
                    error=str(e),
                )
