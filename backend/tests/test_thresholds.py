"""Threshold store, daily price store, and input schema tests."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, InputValidationError, ResourceNotFoundError
from app.models.fruit_type import FruitType
from app.schemas.pricing import DailyPriceCreate, ThresholdCreate, ThresholdUpdate
from app.schemas.quality import QualityReadingCreate, QualityReadingUpdate
from app.services.prices import (
    create_daily_price,
    deactivate_price,
    get_active_price,
    get_price_history,
)
from app.services.thresholds import (
    create_threshold,
    disable_threshold,
    get_enabled_thresholds,
    list_thresholds,
    update_threshold,
)

TEST_USER = "user-001"


@pytest.mark.integration
@pytest.mark.asyncio
class TestThresholdStore:

    async def test_enabled_thresholds(self, db_session: AsyncSession, cafe):
        specs = await get_enabled_thresholds(db_session, cafe.id)

        assert {s.metric: s.limit_percent for s in specs} == {
            "Violetas": Decimal("10"), "Humedad": Decimal("15"), "Moho": Decimal("5"),
        }

    async def test_disabled_threshold_is_excluded(self, db_session: AsyncSession, cafe):
        moho = next(t for t in await list_thresholds(db_session, cafe.id) if t.metric == "Moho")

        await disable_threshold(db_session, moho.id, TEST_USER)

        specs = await get_enabled_thresholds(db_session, cafe.id)
        assert {s.metric for s in specs} == {"Violetas", "Humedad"}
        # Kept on record
        assert len(await list_thresholds(db_session, cafe.id)) == 3
        assert moho.updated_by == TEST_USER

    async def test_create_threshold(self, db_session: AsyncSession, cacao_verde):
        threshold = await create_threshold(
            db_session,
            ThresholdCreate(fruit_type_id=cacao_verde.id, metric="moho", limit_percent=Decimal("8")),
            TEST_USER,
        )

        assert threshold.metric == "Moho"
        assert threshold.enabled is True
        specs = await get_enabled_thresholds(db_session, cacao_verde.id)
        assert {s.metric for s in specs} == {"Humedad", "Moho"}

    async def test_duplicate_threshold_is_a_conflict(self, db_session: AsyncSession, cafe):
        with pytest.raises(ConflictError) as exc_info:
            await create_threshold(
                db_session,
                ThresholdCreate(fruit_type_id=cafe.id, metric="Humedad", limit_percent=Decimal("12")),
                TEST_USER,
            )

        assert exc_info.value.to_dict()["error"]["code"] == "DUPLICATE_THRESHOLD"

    async def test_threshold_for_inactive_fruit_type(self, db_session: AsyncSession):
        retired = FruitType(fruit_type="MIEL", subtype="", is_active=False)
        db_session.add(retired)
        await db_session.flush()

        with pytest.raises(ResourceNotFoundError):
            await create_threshold(
                db_session,
                ThresholdCreate(fruit_type_id=retired.id, metric="Humedad", limit_percent=Decimal("20")),
                TEST_USER,
            )

    async def test_update_limit(self, db_session: AsyncSession, cafe):
        humedad = next(t for t in await list_thresholds(db_session, cafe.id) if t.metric == "Humedad")

        await update_threshold(
            db_session, humedad.id, ThresholdUpdate(limit_percent=Decimal("12.5")), TEST_USER,
        )

        specs = await get_enabled_thresholds(db_session, cafe.id)
        assert next(s for s in specs if s.metric == "Humedad").limit_percent == Decimal("12.5")

    async def test_empty_update_is_rejected(self, db_session: AsyncSession, cafe):
        threshold = (await list_thresholds(db_session, cafe.id))[0]

        with pytest.raises(InputValidationError):
            await update_threshold(db_session, threshold.id, ThresholdUpdate(), TEST_USER)

    async def test_update_unknown_threshold(self, db_session: AsyncSession):
        with pytest.raises(ResourceNotFoundError):
            await disable_threshold(db_session, "missing", TEST_USER)


@pytest.mark.integration
@pytest.mark.asyncio
class TestDailyPriceStore:

    async def test_create_and_lookup(self, db_session: AsyncSession, cafe):
        price = await create_daily_price(
            db_session,
            DailyPriceCreate(fruit_type_id=cafe.id, price_date=date(2026, 3, 5), price_per_kg="2.75"),
            TEST_USER,
        )

        found = await get_active_price(db_session, cafe.id, date(2026, 3, 5))
        assert found.id == price.id
        assert found.price_per_kg == Decimal("2.75")
        assert await get_active_price(db_session, cafe.id, date(2026, 3, 6)) is None

    async def test_deactivated_price_is_not_used(self, db_session: AsyncSession, cafe, cafe_price):
        await deactivate_price(db_session, cafe_price.id)

        assert await get_active_price(db_session, cafe.id, cafe_price.price_date) is None
        assert [p.id for p in await get_price_history(db_session, cafe.id)] == [cafe_price.id]

    async def test_price_for_unknown_fruit_type(self, db_session: AsyncSession):
        with pytest.raises(ResourceNotFoundError):
            await create_daily_price(
                db_session,
                DailyPriceCreate(fruit_type_id="missing", price_date=date(2026, 3, 5), price_per_kg="1"),
                TEST_USER,
            )


@pytest.mark.unit
class TestSchemas:

    @pytest.mark.parametrize("value", ["-0.1", "100.01", "abc"])
    def test_reading_percentages_are_bounded(self, value):
        with pytest.raises(ValidationError):
            QualityReadingCreate(humedad=value)

    def test_reading_accepts_decimal_strings(self):
        reading = QualityReadingCreate(violetas="12.5", moho=0)

        assert reading.violetas == Decimal("12.5")
        assert reading.humedad is None

    def test_update_needs_a_metric(self):
        with pytest.raises(ValidationError):
            QualityReadingUpdate()

    def test_unknown_metric(self):
        with pytest.raises(ValidationError):
            ThresholdCreate(fruit_type_id="x", metric="Basura", limit_percent=5)

    @pytest.mark.parametrize("price", ["0", "-2"])
    def test_price_must_be_positive(self, price):
        with pytest.raises(ValidationError):
            DailyPriceCreate(fruit_type_id="x", price_date=date(2026, 3, 5), price_per_kg=price)
