"""API package exports."""

from auth_api.api.auth import router as auth_router
from auth_api.api.middleware import CorrelationIdMiddleware
from auth_api.api.routes import router

__all__ = ["auth_router", "router", "CorrelationIdMiddleware"]
