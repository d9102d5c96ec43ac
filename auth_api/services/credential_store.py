"""Credential store: the users table and password hashing."""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional
from uuid import UUID, uuid4

import asyncpg
import bcrypt
import structlog

from auth_api.exceptions import Conflict
from auth_api.models.user import User, UserStatus

logger = structlog.get_logger(__name__)

USER_COLUMNS = (
    "id, username, email, display_name, phone_number, profile_picture_url, "
    "bio, status, last_seen, created_at, updated_at"
)

# Unique constraint name -> request field it protects
UNIQUE_CONSTRAINTS = {
    "users_username_key": "username",
    "users_email_key": "email",
}


def _row_to_user(row) -> User:
    return User(
        id=row["id"],
        username=row["username"],
        email=row["email"],
        display_name=row["display_name"],
        phone_number=row["phone_number"],
        profile_picture_url=row["profile_picture_url"],
        bio=row["bio"],
        status=row["status"],
        last_seen=row["last_seen"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


@lru_cache(maxsize=None)
def _dummy_hash(rounds: int) -> str:
    """A throwaway bcrypt hash at the given cost, built once per process."""
    hashed = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


class CredentialStore:
    """Persistence for users and their password hashes.

    Every query method takes the asyncpg connection to run on, so the
    caller decides which operations share a transaction.
    """

    def __init__(self, bcrypt_rounds: int = 12):
        self.bcrypt_rounds = bcrypt_rounds

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string
        """
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            password: Plain-text password to check
            password_hash: Bcrypt hash to verify against

        Returns:
            True if the password matches, False otherwise
        """
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except ValueError:
            # Malformed hash or over-long password
            return False

    def burn_password_check(self, password: str) -> None:
        """Spend one bcrypt comparison without a stored hash.

        Used when no account matches, so a miss costs about as much as a
        wrong password.
        """
        self.verify_password(password, _dummy_hash(self.bcrypt_rounds))

    async def create(
        self,
        conn: asyncpg.Connection,
        username: str,
        email: str,
        display_name: str,
        password: str,
        phone_number: Optional[str] = None,
    ) -> User:
        """Insert a new user with a hashed password.

        Args:
            conn: Connection to run on
            username: Unique username
            email: Unique email address
            display_name: User's display name
            password: Plain-text password (will be hashed)
            phone_number: Optional phone number

        Returns:
            Created User model

        Raises:
            Conflict: If the username or email is already taken
        """
        user_id = uuid4()
        now = datetime.now(timezone.utc)
        password_hash = self.hash_password(password)

        try:
            row = await conn.fetchrow(
                f"""
                INSERT INTO users (id, username, email, display_name, phone_number,
                                   password_hash, status, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                RETURNING {USER_COLUMNS}
                """,
                user_id,
                username,
                email,
                display_name,
                phone_number,
                password_hash,
                UserStatus.ACTIVE.value,
                now,
                now,
            )
        except asyncpg.UniqueViolationError as e:
            field = UNIQUE_CONSTRAINTS.get(getattr(e, "constraint_name", None) or "")
            logger.warning(
                "user_create_conflict",
                constraint=getattr(e, "constraint_name", None),
            )
            raise Conflict([field] if field else ["username", "email"]) from e

        logger.info("user_created", user_id=str(user_id), username=username)
        return _row_to_user(row)

    async def taken_fields(
        self, conn: asyncpg.Connection, username: str, email: str
    ) -> list[str]:
        """Return which of username/email already belong to a user."""
        row = await conn.fetchrow(
            """
            SELECT
                EXISTS(SELECT 1 FROM users WHERE username = $1) AS username_taken,
                EXISTS(SELECT 1 FROM users WHERE email = $2) AS email_taken
            """,
            username,
            email,
        )

        taken = []
        if row["username_taken"]:
            taken.append("username")
        if row["email_taken"]:
            taken.append("email")
        return taken

    async def find_by_email(
        self, conn: asyncpg.Connection, email: str
    ) -> Optional[tuple[User, str]]:
        """Get a user by exact email.

        Returns:
            Tuple of (User, password_hash) or None if not found
        """
        row = await conn.fetchrow(
            f"""
            SELECT {USER_COLUMNS}, password_hash
            FROM users
            WHERE email = $1
            """,
            email,
        )

        if row is None:
            return None

        return _row_to_user(row), row["password_hash"]

    async def find_by_id(
        self, conn: asyncpg.Connection, user_id: UUID
    ) -> Optional[User]:
        row = await conn.fetchrow(
            f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
            user_id,
        )
        return _row_to_user(row) if row is not None else None

    async def touch_last_seen(
        self, conn: asyncpg.Connection, user_id: UUID
    ) -> Optional[datetime]:
        """Record that the user was just active."""
        now = datetime.now(timezone.utc)
        await conn.execute(
            "UPDATE users SET last_seen = $1 WHERE id = $2",
            now,
            user_id,
        )
        return now
