"""
PokéCompanion Backend: Test Configuration (conftest.py)
========================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own SQLite database file (aiosqlite) with the full
       schema, a HistoryStore on a stepping clock, and an HTTPX client bound
       to an app built by create_app() against that database.

Fixture Hierarchy (all function-scoped):
    db_engine ──▶ session_factory ──▶ history_store ──▶ test_app ──▶ test_client
                                  └─▶ db_session
    clock: FakeClock shared by history_store and tests
    register_user: helper that registers through the API and mints a token
"""

import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Dict

# Override settings for testing BEFORE any application imports
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256-signing"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests
os.environ["BCRYPT_ROUNDS"] = "4"    # Cheapest cost factor keeps hashing fast

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pokecompanion.database import create_tables
from pokecompanion.main import create_app
from pokecompanion.security import create_access_token
from pokecompanion.services.history_store import HistoryStore


class FakeClock:
    """Returns a strictly increasing time, one second per call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """
    A throwaway SQLite database with every table created.

    A file (not :memory:) so sessions opened by background trims see the
    same data as the test.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'pokecompanion.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """A session for calling the request-scoped services directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def history_store(session_factory, clock) -> AsyncGenerator[HistoryStore, None]:
    store = HistoryStore(session_factory, clock=clock)
    yield store
    await store.wait_for_pending_trims()


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_app(session_factory, history_store):
    return create_app(session_factory=session_factory, history_store=history_store)


@pytest_asyncio.fixture
async def test_client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def register_user(test_client):
    """
    Registers a user through the API and returns its id plus auth headers.

    The token is minted directly instead of calling /login so tests stay
    clear of the register/login rate limit.

    Usage:
        ash = await register_user("ash")
        await test_client.get("/api/favorites", headers=ash["headers"])
    """

    async def _register(username: str, password: str = "pikachu123") -> Dict:
        response = await test_client.post(
            "/api/auth/register",
            json={"username": username, "email": f"{username}@example.com", "password": password},
        )
        assert response.status_code == 201, response.text
        user = response.json()["data"]
        token = create_access_token(user["id"], user["username"])
        return {
            "id": user["id"],
            "username": user["username"],
            "headers": {"Authorization": f"Bearer {token}"},
        }

    return _register
