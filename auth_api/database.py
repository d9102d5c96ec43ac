"""asyncpg pool lifecycle and the schema migration runner.

The pool is process-global: ``init_database`` opens it during application
startup, ``close_database`` drains it on shutdown, and everything in between
asks for it through ``get_pool``.

Migrations are the ``*.sql`` files under ``migrations/``, applied in filename
order. Each applied file is recorded in ``schema_migrations`` and skipped on
later starts. A file runs in one transaction with its ledger row, so a
failing migration leaves no record and is retried on the next start.
"""

from pathlib import Path
from typing import Optional

import asyncpg
import structlog

from auth_api.config import get_settings

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"

LEDGER_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    name TEXT PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""

_pool: Optional[asyncpg.Pool] = None


async def get_pool() -> asyncpg.Pool:
    """Return the shared pool.

    Raises:
        RuntimeError: If init_database() has not run yet
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized; init_database() must run first")
    return _pool


async def init_database(dsn: Optional[str] = None) -> asyncpg.Pool:
    """Open the shared pool. A second call returns the pool already open.

    Args:
        dsn: Connection string, defaults to POSTGRES_URL
    """
    global _pool

    if _pool is not None:
        return _pool

    settings = get_settings()

    try:
        _pool = await asyncpg.create_pool(
            dsn or settings.postgres_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            command_timeout=settings.db_command_timeout,
        )
    except Exception as e:
        logger.error("database_pool_open_failed", error=str(e))
        raise

    logger.info(
        "database_pool_opened",
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
    )
    return _pool


async def close_database() -> None:
    global _pool

    if _pool is None:
        return

    pool, _pool = _pool, None
    await pool.close()
    logger.info("database_pool_closed")


async def run_migrations(migrations_dir: Optional[Path] = None) -> list[str]:
    """Apply every migration not yet recorded in schema_migrations.

    Args:
        migrations_dir: Directory of ``*.sql`` files, defaults to the
            bundled ``migrations/``

    Returns:
        Names of the files applied by this call, in order
    """
    directory = migrations_dir or MIGRATIONS_DIR
    if not directory.is_dir():
        logger.warning("migrations_directory_not_found", path=str(directory))
        return []

    files = sorted(directory.glob("*.sql"))
    if not files:
        logger.info("no_migrations_found", path=str(directory))
        return []

    pool = await get_pool()
    applied: list[str] = []

    async with pool.acquire() as conn:
        await conn.execute(LEDGER_DDL)
        rows = await conn.fetch("SELECT name FROM schema_migrations")
        recorded = {row["name"] for row in rows}

        for path in files:
            if path.name in recorded:
                continue
            try:
                async with conn.transaction():
                    await conn.execute(path.read_text())
                    await conn.execute(
                        "INSERT INTO schema_migrations (name) VALUES ($1)",
                        path.name,
                    )
            except Exception as e:
                logger.error("migration_failed", file=path.name, error=str(e))
                raise
            applied.append(path.name)
            logger.info("migration_applied", file=path.name)

    logger.info("migrations_up_to_date", applied=len(applied), total=len(files))
    return applied


async def health_check() -> bool:
    """Round-trip a trivial query. Never raises; errors count as unhealthy."""
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            return await conn.fetchval("SELECT 1") == 1
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return False
