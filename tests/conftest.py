"""Shared test fixtures for Leadflow API tests.

Uses an in-memory SQLite async engine so tests run without PostgreSQL.
"""

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from leadflow.core.database import Base, get_db
from leadflow.main import app

# Import all models to ensure they're registered with Base.metadata
from leadflow.models.client import Client  # noqa: F401
from leadflow.models.lead import Lead  # noqa: F401
from leadflow.models.project_intake import ProjectIntake  # noqa: F401
from leadflow.models.update_request import UpdateRequest  # noqa: F401
from leadflow.models.request_allowance import RequestAllowance  # noqa: F401
from leadflow.models.pipeline_event import PipelineEvent  # noqa: F401


# Use aiosqlite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSession = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with TestSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session


@pytest_asyncio.fixture
async def converted_client(db):
    """A client promoted from a contact lead."""
    from leadflow.services import conversion, leads

    lead, _ = await leads.submit(db, "contact", {
        "name": "Ada Lovelace",
        "email": "ada@enginesco.com",
        "businessName": "Analytical Engines",
        "projectDescription": "A site for my engine company",
    })
    return await conversion.convert_lead(db, lead.id)
