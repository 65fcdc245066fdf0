"""Database connection management using SQLModel with async SQLAlchemy."""

from typing import AsyncGenerator, Optional
from urllib.parse import urlparse, urlunparse

from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool, StaticPool
from sqlmodel import SQLModel

from warranty_api.config.settings import settings
from warranty_api.config.logger import app_logger

_engine: Optional[AsyncEngine] = None
_session_maker: Optional[async_sessionmaker] = None


def get_db_url(database_url: Optional[str] = None) -> str:
    """Get database URL for SQLAlchemy with an async driver."""
    db_url = database_url or settings.effective_database_url
    if not db_url:
        raise ValueError("DATABASE_URL not configured")
    if db_url.startswith("sqlite"):
        if db_url.startswith("sqlite://"):
            db_url = db_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return db_url

    # Postgres URLs: strip sslmode (asyncpg takes SSL through connect_args)
    parsed = urlparse(db_url)
    query_parts = [p for p in parsed.query.split("&") if not p.startswith("sslmode=") and p]
    clean_url = urlunparse(
        (
            parsed.scheme,
            parsed.netloc,
            parsed.path,
            parsed.params,
            "&".join(query_parts),
            parsed.fragment,
        )
    )

    if clean_url.startswith("postgresql://"):
        clean_url = clean_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    elif clean_url.startswith("postgres://"):
        clean_url = clean_url.replace("postgres://", "postgresql+asyncpg://", 1)

    return clean_url


def _engine_options(db_url: str) -> dict:
    if db_url.startswith("sqlite"):
        # In-memory databases only exist for the lifetime of one connection
        if ":memory:" in db_url:
            return {"poolclass": StaticPool}
        return {"poolclass": NullPool}
    return {"pool_size": 20, "max_overflow": 0, "pool_pre_ping": True}


async def init_db(database_url: Optional[str] = None) -> None:
    """Initialize the database engine and create tables."""
    global _engine, _session_maker

    try:
        db_url = get_db_url(database_url)
        app_logger.info("Initializing database connection")

        _engine = create_async_engine(db_url, echo=False, **_engine_options(db_url))

        _session_maker = async_sessionmaker(
            _engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        # Import all models to register them with SQLModel
        from warranty_api.models import (  # noqa: F401
            audit_log,
            event,
            product,
            system_settings,
            user,
            warranty,
        )

        async with _engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

        app_logger.info("Database initialized successfully")

    except ValueError:
        app_logger.warning("DATABASE_URL not set; database will not be initialized")
    except Exception as e:
        app_logger.error(f"Failed to initialize database: {e}")
        app_logger.error(f"Error type: {type(e).__name__}")
        app_logger.warning("DATABASE CONNECTION FAILED - Running in limited mode")
        # Don't raise - allow app to start without database


async def close_db() -> None:
    """Close the database engine."""
    global _engine, _session_maker

    if _engine:
        await _engine.dispose()
        _engine = None
        _session_maker = None
        app_logger.info("Database connection closed")


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get a database session."""
    if not _session_maker:
        from fastapi import HTTPException
        raise HTTPException(
            status_code=503,
            detail="Database unavailable. The server is running in limited mode.",
        )

    async with _session_maker() as session:
        yield session


@asynccontextmanager
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Async context manager for scripts and startup tasks."""
    if not _session_maker:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with _session_maker() as session:
        yield session


async def ping_database() -> tuple[bool, str]:
    """Run a lightweight health query against the database."""
    if not _engine or not _session_maker:
        return False, "Database not initialized"

    try:
        from sqlalchemy import text
        async with _session_maker() as session:
            result = await session.execute(text("SELECT 1"))
            row = result.scalar()
            if row == 1:
                return True, "Database connection healthy"
            return False, f"Unexpected response: {row}"
    except Exception as e:
        return False, f"Database query failed: {str(e)}"
