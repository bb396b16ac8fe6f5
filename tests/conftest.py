"""
Pytest configuration and shared fixtures.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from dealflow import models
from dealflow.api import app
from dealflow.db import get_session
from dealflow.entities import MatchWeights, Provider, Seeker


@pytest.fixture
def base_seeker() -> Seeker:
    """Series A AI company raising $5M."""
    return Seeker(
        id=1,
        name="TestCo",
        description="AI software for supply chain optimization",
        sector="AI/ML",
        stage="Series A",
        geography="San Francisco, CA",
        funding_target=5_000_000,
        revenue=2_500_000,
        revenue_growth=80,
        customers=40,
        business_model="B2B SaaS",
    )


@pytest.fixture
def base_provider() -> Provider:
    """Series A AI investor writing $3M-$7M checks."""
    return Provider(
        id=10,
        name="Vision Capital",
        firm="Vision Capital",
        sector="AI/ML",
        stage="Series A",
        geography="San Francisco, CA",
        check_size_min=3_000_000,
        check_size_max=7_000_000,
        thesis="Investing in AI companies improving supply chains",
    )


@pytest.fixture
def low_fit_provider(base_provider) -> Provider:
    """Differs from base_provider on sector, stage and geography."""
    return base_provider.model_copy(
        update={"id": 11, "sector": "ClimateTech", "stage": "Seed", "geography": "New York, NY"}
    )


@pytest.fixture
def mismatched_provider(base_provider) -> Provider:
    """Wrong sector, a stage three or more rungs away, and another city."""
    return base_provider.model_copy(
        update={"id": 12, "sector": "ClimateTech", "stage": "Growth", "geography": "New York, NY"}
    )


@pytest.fixture
def default_weights() -> MatchWeights:
    return MatchWeights(sector=25, stage=20, traction=20, check_size=15, geography=10, thesis=10)


@pytest.fixture
def db_engine(tmp_path):
    """File-backed SQLite engine with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(models.Base.metadata.create_all)

    asyncio.run(create_tables())
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
def seeded_ids(session_factory, base_seeker, base_provider, low_fit_provider) -> dict:
    """Store the base seeker and both providers; returns their database ids."""

    async def seed():
        async with session_factory() as session:
            seeker = models.Seeker(**base_seeker.model_dump(exclude={"id"}))
            strong = models.Provider(**base_provider.model_dump(exclude={"id"}))
            weak = models.Provider(**low_fit_provider.model_dump(exclude={"id"}))
            weak.name = "Green Ventures"
            weak.firm = "Green Ventures"
            session.add_all([seeker, strong, weak])
            await session.commit()
            return {"seeker": seeker.id, "strong": strong.id, "weak": weak.id}

    return asyncio.run(seed())


@pytest.fixture
def client(session_factory):
    """API client backed by the temporary database."""

    async def override_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    yield TestClient(app)
    app.dependency_overrides.clear()
