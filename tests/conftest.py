import pytest
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

# Mock Redis BEFORE importing main.app to ensure middleware uses the mock
import redis.asyncio as redis
mock_redis = AsyncMock()
redis.from_url = MagicMock(return_value=mock_redis)
mock_redis.get.return_value = None
mock_redis.ttl.return_value = 60
mock_redis.incr = MagicMock(return_value=None)  # Queues in pipeline
mock_redis.expire = MagicMock(return_value=None)  # Queues in pipeline
mock_redis.pipeline = MagicMock(return_value=mock_redis)  # Returns self (the mock redis)
mock_redis.execute = AsyncMock(return_value=[1, 1])

from main import app
from dealdesk.core.base import Base
from dealdesk.core.database import create_session_factory
from dealdesk.core.deps import get_deal_repository
from dealdesk.repositories.deal_repo import DealRepository
from dealdesk.schemas.deal import DealDraft

# Use an in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def repo(session_factory) -> DealRepository:
    return DealRepository(session_factory, statement_timeout=5)


@pytest.fixture
async def client(repo) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_deal_repository] = lambda: repo
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# The five sample deals the dashboard ships with
SEED_DEALS = [
    {
        "name": "Enterprise Software License",
        "contact_name": "John Smith",
        "company": "TechCorp Inc.",
        "stage": "Won",
        "value": 50000,
        "close_date": "2024-01-15",
        "description": "Annual enterprise software license renewal for 500 users",
    },
    {
        "name": "Cloud Migration Project",
        "contact_name": "Sarah Johnson",
        "company": "Global Solutions Ltd.",
        "stage": "In Progress",
        "value": 125000,
        "close_date": "2024-03-30",
    },
    {
        "name": "Mobile App Development",
        "contact_name": "Mike Chen",
        "company": "StartupXYZ",
        "stage": "New",
        "value": 75000,
        "close_date": "2024-06-15",
    },
    {
        "name": "Data Analytics Platform",
        "contact_name": "Emily Davis",
        "company": "DataFlow Systems",
        "stage": "Lost",
        "value": 200000,
        "close_date": "2024-02-28",
    },
    {
        "name": "Cybersecurity Audit",
        "contact_name": "Robert Wilson",
        "company": "SecureNet Corp.",
        "stage": "In Progress",
        "value": 45000,
        "close_date": "2024-04-15",
    },
]


def draft_payload(**overrides) -> dict:
    """JSON-ready deal payload; pass it to DealDraft or post it as is."""
    data = {
        "name": "Website Redesign",
        "contact_name": "Ana Lima",
        "company": "Lima & Co",
        "stage": "New",
        "value": 1000,
        "close_date": "2024-05-01",
        "description": None,
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_draft():
    return draft_payload


@pytest.fixture
def seed_payloads() -> list[dict]:
    return [dict(payload) for payload in SEED_DEALS]


@pytest.fixture
async def seeded(repo) -> DealRepository:
    for payload in SEED_DEALS:
        await repo.insert(DealDraft(**payload))
    return repo
