"""Pytest configuration and fixtures for receiving tests.

Integration tests run against a fresh in-memory SQLite database per test
(aiosqlite), with the full schema created from the models.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base
from app.models.daily_price import DailyPrice
from app.models.fruit_type import FruitType
from app.models.quality_threshold import QualityThreshold
from app.schemas.reception import ReceptionCreate
from app.services.receptions import create_reception

TEST_USER = "user-001"
RECEPTION_DATE = date(2026, 3, 2)


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory database with every table."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# ── Test Data Fixtures ───────────────────────────────────────────

@pytest_asyncio.fixture
async def cafe(db_session: AsyncSession) -> FruitType:
    """Coffee with limits Violetas 10 / Humedad 15 / Moho 5."""
    fruit_type = FruitType(fruit_type="CAFÉ", subtype="PERGAMINO")
    db_session.add(fruit_type)
    await db_session.flush()

    for metric, limit in (("Violetas", "10"), ("Humedad", "15"), ("Moho", "5")):
        db_session.add(QualityThreshold(
            fruit_type_id=fruit_type.id,
            metric=metric,
            limit_percent=Decimal(limit),
            created_by=TEST_USER,
        ))
    await db_session.flush()
    return fruit_type


@pytest_asyncio.fixture
async def cacao_verde(db_session: AsyncSession) -> FruitType:
    """Wet cacao with a single Humedad limit of 40."""
    fruit_type = FruitType(fruit_type="CACAO", subtype="VERDE")
    db_session.add(fruit_type)
    await db_session.flush()

    db_session.add(QualityThreshold(
        fruit_type_id=fruit_type.id,
        metric="Humedad",
        limit_percent=Decimal("40"),
        created_by=TEST_USER,
    ))
    await db_session.flush()
    return fruit_type


@pytest_asyncio.fixture
async def cafe_price(db_session: AsyncSession, cafe: FruitType) -> DailyPrice:
    """2.50 per kg on RECEPTION_DATE."""
    price = DailyPrice(
        fruit_type_id=cafe.id,
        price_date=RECEPTION_DATE,
        price_per_kg=Decimal("2.50"),
        created_by=TEST_USER,
        created_at=datetime(2026, 3, 2, 6, 0),
    )
    db_session.add(price)
    await db_session.flush()
    return price


@pytest.fixture
def make_reception(db_session: AsyncSession):
    """Factory: register a reception through the intake service."""

    async def _make(fruit_type: FruitType, weight="500", on_date=RECEPTION_DATE):
        result = await create_reception(
            db_session,
            ReceptionCreate(
                fruit_type_id=fruit_type.id,
                original_weight_kg=Decimal(weight),
                reception_date=on_date,
                provider_name="Finca La Esperanza",
            ),
            TEST_USER,
        )
        return result["reception"]

    return _make


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
