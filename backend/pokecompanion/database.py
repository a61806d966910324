"""
PokéCompanion Backend: Database Session Management
===================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       request-scoped session dependency.
How:   A pooled async engine is created at import time from settings. Route
       handlers receive one session per request that commits on success and
       rolls back on error. Long-lived components (the search history store)
       receive the session factory itself and open their own sessions.

Connection Pooling:
    pool_size=20, max_overflow=10: at most 30 PostgreSQL connections
    pool_pre_ping:                 validates connections before use
    pool_recycle=3600:             recycles connections every hour
    SQLite URLs (tests, local runs) use SQLAlchemy's default pool instead.
"""

from typing import Any, AsyncGenerator, Dict

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from pokecompanion.config import settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine: AsyncEngine = create_async_engine(settings.database_url, **_engine_options())

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False keeps attributes readable after commit, which the
# response mapping relies on once the session is gone.
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers on this shared metadata, which `create_tables()`
    uses to build the schema.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    The factory comes from `app.state.session_factory`, set by `create_app()`,
    so tests can point the whole app at a throwaway database.

    Flow:
        1. Open a session from the app's factory
        2. Yield it to the route handler
        3. Commit on success, roll back on any exception and re-raise
        4. Always close the session

    Example usage in a route:
        @router.get("/favorites")
        async def list_favorites(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_tables(bind: AsyncEngine = engine) -> None:
    """
    What:  Creates every table registered on `Base.metadata` if missing.
    When:  App startup when `db_create_tables` is enabled, and test fixtures.
    """
    # Importing the models package registers every table on the metadata
    import pokecompanion.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Closes all pooled connections. Called during application shutdown."""
    await engine.dispose()
