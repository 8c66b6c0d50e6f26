"""Shared fixtures: a throwaway SQLite database per test."""

import os
from datetime import datetime

# main builds its module-level app at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from config import Settings
from database import close_db, create_engine, create_session_factory, init_db
from service import BookingService
from store import SQLBookingStore

FIXED_NOW = datetime(2030, 6, 1, 12, 0)


def make_payload(**overrides):
    """Valid booking body; override any field per test."""
    payload = {
        "date": "2999-01-01",
        "time": "19:00",
        "guests": 2,
        "name": "Alex",
        "contact": "1234567890",
        "email": "a@b.com",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'bookings.db'}"


@pytest_asyncio.fixture
async def engine(database_url):
    engine = create_engine(database_url)
    await init_db(engine)
    yield engine
    await close_db(engine)


@pytest_asyncio.fixture
async def session(engine):
    async_session = create_session_factory(engine)
    async with async_session() as session:
        yield session


@pytest.fixture
def store(session):
    return SQLBookingStore(session)


@pytest.fixture
def service(store):
    """Service whose clock is pinned to FIXED_NOW."""
    return BookingService(store, clock=lambda: FIXED_NOW)


@pytest_asyncio.fixture
async def client(database_url):
    """HTTP client against a fully started app (lifespan included)."""
    from main import create_app

    app = create_app(Settings(database_url=database_url))
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
