"""Token issuer: opaque bearer tokens stored as SHA-256 hashes."""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID, uuid4

import asyncpg
import structlog

from auth_api.models.user import AccessToken, IssuedToken, User
from auth_api.services.credential_store import CredentialStore

logger = structlog.get_logger(__name__)

TOKEN_TYPE = "Bearer"
DEFAULT_TOKEN_NAME = "auth_token"
TOKEN_BYTES = 48


def hash_token(plaintext: str) -> str:
    """Return the hex SHA-256 digest stored in place of a token."""
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


class TokenIssuer:
    """Issue, revoke and resolve bearer tokens.

    Tokens are random strings shown to the client once; the database only
    keeps their hash, so a leaked table cannot be replayed.
    """

    def __init__(self, store: CredentialStore, ttl_minutes: int = 0):
        self.store = store
        self.ttl = timedelta(minutes=ttl_minutes) if ttl_minutes > 0 else None

    def _expires_at(self, now: datetime) -> Optional[datetime]:
        return now + self.ttl if self.ttl is not None else None

    async def issue(
        self,
        conn: asyncpg.Connection,
        user_id: UUID,
        name: str = DEFAULT_TOKEN_NAME,
    ) -> IssuedToken:
        """Generate a token for a user and store its hash.

        Args:
            conn: Connection to run on
            user_id: Owner of the new token
            name: Label stored with the token

        Returns:
            IssuedToken holding the plaintext and the stored row
        """
        plaintext = secrets.token_urlsafe(TOKEN_BYTES)
        now = datetime.now(timezone.utc)
        token = AccessToken(
            id=uuid4(),
            user_id=user_id,
            name=name,
            token_hash=hash_token(plaintext),
            created_at=now,
            expires_at=self._expires_at(now),
        )

        await conn.execute(
            """
            INSERT INTO access_tokens (id, user_id, name, token_hash, created_at, expires_at)
            VALUES ($1, $2, $3, $4, $5, $6)
            """,
            token.id,
            token.user_id,
            token.name,
            token.token_hash,
            token.created_at,
            token.expires_at,
        )

        logger.info(
            "token_issued",
            user_id=str(user_id),
            token_id=str(token.id),
            expires_at=token.expires_at.isoformat() if token.expires_at else None,
        )

        return IssuedToken(plaintext=plaintext, token=token)

    async def revoke_all(self, conn: asyncpg.Connection, user_id: UUID) -> int:
        """Delete every token owned by a user. Safe to call when there are none.

        Returns:
            Number of tokens deleted
        """
        result = await conn.execute(
            "DELETE FROM access_tokens WHERE user_id = $1",
            user_id,
        )
        revoked = _affected_rows(result)

        logger.info("tokens_revoked", user_id=str(user_id), count=revoked)
        return revoked

    async def resolve(self, conn: asyncpg.Connection, plaintext: str) -> Optional[User]:
        """Find the user owning a presented token.

        Updates the token's last_used_at and the user's last_seen. An expired
        token's row is deleted on sight.

        Returns:
            The owner, or None if the token is unknown, expired, or its owner
            is gone. Callers decide how to reject, so a surrounding
            transaction still commits the delete.
        """
        row = await conn.fetchrow(
            """
            SELECT id, user_id, expires_at
            FROM access_tokens
            WHERE token_hash = $1
            """,
            hash_token(plaintext),
        )

        if row is None:
            logger.warning("token_not_found")
            return None

        now = datetime.now(timezone.utc)

        if row["expires_at"] is not None and row["expires_at"] <= now:
            await conn.execute("DELETE FROM access_tokens WHERE id = $1", row["id"])
            logger.warning(
                "token_expired",
                user_id=str(row["user_id"]),
                token_id=str(row["id"]),
            )
            return None

        user = await self.store.find_by_id(conn, row["user_id"])
        if user is None:
            logger.warning("token_owner_missing", token_id=str(row["id"]))
            return None

        await conn.execute(
            "UPDATE access_tokens SET last_used_at = $1 WHERE id = $2",
            now,
            row["id"],
        )
        last_seen = await self.store.touch_last_seen(conn, user.id)

        return user.model_copy(update={"last_seen": last_seen})

    async def purge_expired(self, conn: asyncpg.Connection) -> int:
        """Delete all tokens whose expiry has passed.

        Returns:
            Number of tokens deleted
        """
        result = await conn.execute(
            "DELETE FROM access_tokens WHERE expires_at IS NOT NULL AND expires_at <= $1",
            datetime.now(timezone.utc),
        )
        purged = _affected_rows(result)

        if purged:
            logger.info("expired_tokens_purged", count=purged)
        return purged


def _affected_rows(status: str) -> int:
    """Parse the row count out of an asyncpg status string like 'DELETE 3'."""
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0
