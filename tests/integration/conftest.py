"""Integration fixtures: in-memory SQLite database and an ASGI test client."""

from collections.abc import AsyncGenerator
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from payroll_concepts.api.app import create_app
from payroll_concepts.api.dependencies import get_db_session
from payroll_concepts.database import create_all

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

STANDARD_CONCEPTS = [
    {
        "id": "PRES",
        "name": "Attendance bonus",
        "type": "earning_remunerative",
        "mode": "percentage",
        "value": "10",
    },
    {
        "id": "VIAT",
        "name": "Travel allowance",
        "type": "earning_nonremunerative",
        "mode": "fixed_amount",
        "value": "50",
    },
    {
        "id": "SIND",
        "name": "Union dues",
        "type": "deduction",
        "mode": "percentage",
        "value": "2",
        "phase": "post_tax",
        "priority": 10,
    },
]


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for service-level tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the test database."""
    app = create_app()

    async def override_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def tenant_id() -> UUID:
    return uuid4()


@pytest.fixture
def headers(tenant_id) -> dict[str, str]:
    return {"X-Tenant-ID": str(tenant_id)}
