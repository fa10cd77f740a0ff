"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  The production models are used as-is; a
``StaticPool`` keeps every session on the one in-memory connection.
"""

import itertools
from datetime import date, timedelta
from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from rideshare.api.app import create_app
from rideshare.api.dependencies import get_db
from rideshare.api.middleware import limiter
from rideshare.infrastructure.database import Base

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
PASSWORD = "secret1"


# ── Database ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ── App / HTTP ────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def app(session_factory):
    """FastAPI app wired to the SQLite session factory, worker disabled."""

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    with (
        patch(
            "rideshare.workers.completer.start_completion_loop",
            new_callable=AsyncMock,
        ),
        patch(
            "rideshare.workers.completer.stop_completion_loop",
            new_callable=AsyncMock,
        ),
    ):
        limiter.reset()
        application = create_app()
        application.dependency_overrides[get_db] = _test_db
        yield application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ── Helpers ───────────────────────────────────────────────────────────


@pytest.fixture
def register(client):
    """Register an account; returns ``(account_json, auth_headers)``."""
    counter = itertools.count(1)

    async def _register(role: str = "passenger", **overrides):
        n = next(counter)
        body = {
            "name": f"{role.title()} {n}",
            "email": f"{role}{n}@example.com",
            "phone": f"98200{n:05d}",
            "password": PASSWORD,
            "passwordConfirm": PASSWORD,
            **overrides,
        }
        resp = await client.post(f"/api/auth/{role}/register", json=body)
        assert resp.status_code == 201, resp.text
        data = resp.json()
        return data["account"], {"Authorization": f"Bearer {data['token']}"}

    return _register


@pytest.fixture
def create_listing(client):
    """Post a listing a few days out; returns the listing JSON."""

    async def _create(headers, **overrides):
        body = {
            "carType": "Sedan",
            "pickupLocation": "Airport T2",
            "dropLocation": "Andheri East",
            "date": (date.today() + timedelta(days=3)).isoformat(),
            "time": "08:30",
            "totalSeats": 4,
            **overrides,
        }
        resp = await client.post("/api/vehicles", json=body, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


@pytest.fixture
def request_seats(client):
    """Create a booking request; returns the raw response."""

    async def _request(headers, listing_id: int, seats: int = 1, **extra):
        return await client.post(
            "/api/ride-requests",
            json={"listingId": listing_id, "requestedSeats": seats, **extra},
            headers=headers,
        )

    return _request
