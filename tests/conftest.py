"""
Shared fixtures: a fresh in-memory SQLite database per test, the FastAPI app
wired to it, and an API client that talks to the app in-process.
"""

import os
from datetime import datetime, timezone

# Must be set before tapgo reads its settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BUSINESS_TIMEZONE"] = "UTC"
os.environ["ENV_MODE"] = "development"

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tapgo.client.api import TapGoClient
from tapgo.database import build_engine, get_db, init_db
from tapgo.main import app
from tapgo.services.order_store import OrderStore


def line(customer="Wang", item="Tea", price=50, quantity=1, table=None, created_at=None):
    """Order line values in the shape OrderStore.insert_batch takes."""
    values = {
        "customer_name": customer,
        "table_number": table,
        "item_name": item,
        "item_price": price,
        "quantity": quantity,
    }
    if created_at is not None:
        values["created_at"] = created_at
    return values


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
async def engine():
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def seed(session_maker):
    """Insert order lines in their own committed session."""
    async def _seed(*lines):
        async with session_maker() as session:
            return await OrderStore(session).insert_batch(list(lines))
    return _seed


@pytest.fixture
async def http(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def api(http):
    async with TapGoClient(client=http) as api:
        yield api
