"""Services package exports."""

from auth_api.services.auth_service import AuthResult, AuthService
from auth_api.services.credential_store import CredentialStore
from auth_api.services.logging_service import configure_logging, get_logger
from auth_api.services.token_service import TokenIssuer

__all__ = [
    "AuthResult",
    "AuthService",
    "CredentialStore",
    "TokenIssuer",
    "configure_logging",
    "get_logger",
]
