"""
Exception hierarchy for the auth API.

    AuthApiError (base)
    ├── ValidationError   422, field-level detail
    │   └── Conflict      duplicate username/email
    ├── Unauthorized      401, always generic
    └── ServerError       500, wraps unexpected store failures

Services raise these; the HTTP layer turns them into JSON responses via
``auth_api.api.errors``.
"""

from typing import Dict, List, Optional


class AuthApiError(Exception):
    """Base exception for all auth API errors.

    Attributes:
        message: Human-readable error description
        details: Additional context for API responses
    """

    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable response body."""
        body = {"message": self.message}
        body.update(self.details)
        return body


class ValidationError(AuthApiError):
    """Raised when input fails validation.

    ``errors`` maps a field name to the list of messages for that field.
    """

    status_code = 422

    def __init__(
        self,
        errors: Dict[str, List[str]],
        message: str = "The given data was invalid.",
    ):
        self.errors = errors
        super().__init__(message, {"errors": errors})

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls({field: [message]})


class Conflict(ValidationError):
    """Raised when a username or email is already taken."""

    def __init__(self, fields: List[str]):
        self.fields = fields
        super().__init__(
            {field: [f"The {field} has already been taken."] for field in fields}
        )


class Unauthorized(AuthApiError):
    """Raised for bad credentials or a missing, unknown or expired token.

    The message is deliberately generic so callers cannot tell which
    check failed.
    """

    status_code = 401

    def __init__(self, message: str = "Unauthenticated."):
        super().__init__(message)


class ServerError(AuthApiError):
    """Raised when the store fails unexpectedly."""

    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None):
        self.error = error
        super().__init__(message)

    def to_dict(self, include_error: bool = False) -> dict:
        body = {"message": self.message}
        if include_error and self.error:
            body["error"] = self.error
        return body
