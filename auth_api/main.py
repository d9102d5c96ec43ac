"""FastAPI application initialization."""

from contextlib import asynccontextmanager

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth_api import __version__, database
from auth_api.api.auth import router as auth_router
from auth_api.api.errors import setup_exception_handlers
from auth_api.api.middleware import CorrelationIdMiddleware
from auth_api.api.routes import router
from auth_api.config import get_settings
from auth_api.services.credential_store import CredentialStore
from auth_api.services.logging_service import configure_logging, get_logger
from auth_api.services.token_service import TokenIssuer


async def purge_expired_tokens(settings) -> int:
    """Drop tokens that expired while the service was down."""
    pool = await database.get_pool()
    issuer = TokenIssuer(CredentialStore(settings.bcrypt_rounds), settings.token_ttl_minutes)
    async with pool.acquire() as conn:
        return await issuer.purge_expired(conn)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    configure_logging(settings.log_level)
    logger = get_logger("main")

    await database.init_database()
    await database.run_migrations()
    logger.info("database_initialized")

    purged = await purge_expired_tokens(settings)

    logger.info(
        "application_started",
        log_level=settings.log_level,
        token_ttl_minutes=settings.token_ttl_minutes,
        expired_tokens_purged=purged,
    )

    yield

    await database.close_database()
    logger.info("application_shutdown")


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="Token Auth API",
        description="Registration, login and bearer-token lifecycle",
        version=__version__,
        lifespan=lifespan,
    )

    # Async callables run with the new User after a successful registration
    app.state.registered_hooks = []

    setup_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(auth_router)
    app.include_router(router)

    return app


app = create_app()
