"""Database configuration and session management.

This module constructs an asynchronous SQLAlchemy engine and session
factory for the application.  The connection string comes from
`DATABASE_URL`; PostgreSQL URLs are normalised to the async psycopg
driver and SQLite URLs to aiosqlite.  When no URL is configured a local
SQLite database is used in development if `DB_DEV_FALLBACK_SQLITE` is
enabled.

Every connection is bounded by `STORE_TIMEOUT_SECONDS` so a slow store
cannot pin a request indefinitely.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator, Dict, Any, Optional

from sqlalchemy.engine.url import make_url, URL
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from vegbills.core.config import settings, get_database_url

logger = logging.getLogger(__name__)

# Declarative base
Base = declarative_base()


def resolve_database_url(raw_url: Optional[str] = None) -> str:
    """Return the async SQLAlchemy URL to connect with.

    Precedence: explicit argument, then `DATABASE_URL`.  Without either the
    SQLite fallback is used when enabled, otherwise a ``RuntimeError`` is
    raised so misconfigured deployments fail fast.
    """
    db_url = raw_url or get_database_url()
    if not db_url:
        if not settings.DB_DEV_FALLBACK_SQLITE:
            raise RuntimeError(
                "No database URL provided via DATABASE_URL and "
                "DB_DEV_FALLBACK_SQLITE=false; a Postgres URL is required."
            )
        db_url = settings.SQLITE_FALLBACK_URL

    url_obj = make_url(db_url)
    driver = url_obj.drivername or ""
    # SQLite: upgrade to aiosqlite
    if driver == "sqlite":
        url_obj = url_obj.set(drivername="sqlite+aiosqlite")
    # PostgreSQL: normalise driver and set query params
    elif driver in {"postgresql", "postgres", "postgresql+psycopg", "postgresql+psycopg2", "postgresql+asyncpg"}:
        url_obj = _normalise_postgres(url_obj)
    return url_obj.render_as_string(hide_password=False)


def _normalise_postgres(url_obj: URL) -> URL:
    q = dict(url_obj.query or {})
    # Always require SSL unless explicitly disabled
    if not q.get("sslmode"):
        q["sslmode"] = "require"
    if not q.get("connect_timeout"):
        q["connect_timeout"] = str(max(1, int(settings.STORE_TIMEOUT_SECONDS)))
    return url_obj.set(drivername="postgresql+psycopg", query=q)


def build_engine(db_url: Optional[str] = None) -> AsyncEngine:
    """Create an async engine with store timeouts applied for the dialect."""
    url = resolve_database_url(db_url)
    backend = make_url(url).get_backend_name()
    connect_args: dict[str, Any] = {}
    engine_kwargs: dict[str, Any] = dict(echo=False, pool_pre_ping=True)
    if backend == "sqlite":
        # Busy timeout for a locked database file
        connect_args["timeout"] = settings.STORE_TIMEOUT_SECONDS
    elif backend == "postgresql":
        timeout_ms = int(settings.STORE_TIMEOUT_SECONDS * 1000)
        connect_args["options"] = f"-c statement_timeout={timeout_ms}"
        engine_kwargs["pool_timeout"] = settings.STORE_TIMEOUT_SECONDS
    logger.info("Creating async engine for %s", make_url(url).render_as_string(hide_password=True))
    return create_async_engine(url, connect_args=connect_args, **engine_kwargs)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = build_engine()

# Create session factory
AsyncSessionLocal = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields a database session.

    This function is intended for FastAPI dependency injection.  Each
    session is scoped to the request and closed after use.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create all tables defined on the declarative `Base`.

    Typically called during application startup; production deployments
    should prefer the Alembic revision under ``backend/alembic``.
    """
    async with (bind or engine).begin() as conn:
        # Import all models to ensure metadata is populated
        from vegbills.models import tables  # noqa: F401
        await conn.run_sync(Base.metadata.create_all)


def get_db_debug_info() -> Dict[str, Any]:
    """Return non-sensitive information about the current DB engine."""
    url_obj = engine.url
    return {
        "environment": settings.ENVIRONMENT,
        "drivername": url_obj.drivername,
        "host": url_obj.host,
        "database": url_obj.database,
        "url": url_obj.render_as_string(hide_password=True),
    }
