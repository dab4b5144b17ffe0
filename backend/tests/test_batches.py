"""Cacao batch aggregation and lifecycle tests."""

from datetime import datetime
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, ResourceNotFoundError
from app.models.reception import Reception
from app.schemas.batch import CacaoBatchComplete, CacaoBatchCreate, ContributionUpdate
from app.services.batches import (
    Contribution,
    complete_batch,
    create_batch,
    distribute_dried_weight,
    dried_weight_from_sacks,
    get_batch_contributions,
    update_contribution,
)

TEST_USER = "user-001"


@pytest_asyncio.fixture
async def receptions(cacao_verde, make_reception):
    """Three cacao verde receptions of 100, 200 and 300 kg."""
    return [await make_reception(cacao_verde, weight) for weight in ("100", "200", "300")]


def _contributions(*weights):
    return [Contribution(f"rec-{i}", Decimal(str(w))) for i, w in enumerate(weights)]


@pytest.mark.unit
class TestDistributeDriedWeight:

    def test_proportional_shares(self):
        shares = distribute_dried_weight(_contributions(100, 200, 300), Decimal("480"))

        assert [s.proportional_dried_weight for s in shares] == [
            Decimal("80"), Decimal("160"), Decimal("240"),
        ]
        assert sum(s.proportional_dried_weight for s in shares) == Decimal("480")
        assert [s.reception_id for s in shares] == ["rec-0", "rec-1", "rec-2"]

    def test_percentages(self):
        shares = distribute_dried_weight(_contributions(100, 200, 300), 480)

        assert [s.percentage_of_total for s in shares] == [
            Decimal("16.6667"), Decimal("33.3333"), Decimal("50.0000"),
        ]

    def test_thirds_sum_exactly(self):
        shares = distribute_dried_weight(_contributions(1, 1, 1), Decimal("100"))

        values = [s.proportional_dried_weight for s in shares]
        assert sum(values) == Decimal("100")
        # The leftover unit goes to the first of the tied shares
        assert values == [Decimal("33.3334"), Decimal("33.3333"), Decimal("33.3333")]

    @pytest.mark.parametrize("weights,dried", [
        ((7, 13, 29, 31), "61.7"),
        ((0.5, 0.25, 1234.5678), "999.9999"),
        ((3, 3, 3, 3, 3, 3, 3), "10"),
        ((1,), "42.42424"),
    ])
    def test_shares_always_sum_to_total(self, weights, dried):
        shares = distribute_dried_weight(_contributions(*weights), Decimal(dried))

        total = Decimal(dried).quantize(Decimal("0.0001"))
        assert sum(s.proportional_dried_weight for s in shares) == total

    def test_largest_remainder_wins_the_leftover(self):
        # raw shares 1.66666…, 3.33333…: the first has the larger fraction
        shares = distribute_dried_weight(_contributions(1, 2), Decimal("5"))

        assert [s.proportional_dried_weight for s in shares] == [
            Decimal("1.6667"), Decimal("3.3333"),
        ]

    def test_zero_wet_weight_gives_zero_shares(self):
        shares = distribute_dried_weight(_contributions(0, 0), Decimal("50"))

        assert all(s.proportional_dried_weight == 0 for s in shares)
        assert all(s.percentage_of_total == 0 for s in shares)

    def test_negative_contribution_counts_as_zero(self):
        shares = distribute_dried_weight(_contributions(-10, 10), Decimal("8"))

        assert [s.proportional_dried_weight for s in shares] == [Decimal("0"), Decimal("8")]

    def test_empty_batch(self):
        assert distribute_dried_weight([], Decimal("10")) == []

    def test_dried_weight_from_sacks(self):
        assert dried_weight_from_sacks(6, Decimal("12.5")) == Decimal("432.5")


@pytest.mark.integration
@pytest.mark.asyncio
class TestBatchLifecycle:
    """Batch creation, completion, and contribution edits."""

    async def _create(self, db_session, receptions):
        return await create_batch(
            db_session,
            CacaoBatchCreate(
                reception_ids=[r.id for r in receptions],
                batch_type="drying",
                start_date=datetime(2026, 3, 3, 8, 0),
                duration_days=7,
            ),
            TEST_USER,
        )

    async def test_create_batch(self, db_session: AsyncSession, receptions):
        batch = await self._create(db_session, receptions)

        assert batch.status == "in_progress"
        assert batch.total_wet_weight_kg == Decimal("600")
        assert batch.expected_completion_date == datetime(2026, 3, 10, 8, 0)
        assert all(r.batch_id == batch.id for r in receptions)

        rows = await get_batch_contributions(db_session, batch.id)
        assert [row.wet_weight_contribution_kg for row in rows] == [
            Decimal("100"), Decimal("200"), Decimal("300"),
        ]
        assert rows[2].percentage_of_total == Decimal("50")

    async def test_reception_cannot_join_two_batches(self, db_session: AsyncSession, receptions):
        await self._create(db_session, receptions)

        with pytest.raises(ConflictError):
            await self._create(db_session, receptions)

    async def test_unknown_reception(self, db_session: AsyncSession, receptions):
        with pytest.raises(ResourceNotFoundError):
            await create_batch(
                db_session,
                CacaoBatchCreate(
                    reception_ids=["missing"],
                    batch_type="both",
                    start_date=datetime(2026, 3, 3),
                    duration_days=5,
                ),
                TEST_USER,
            )

    async def test_complete_batch_distributes_dried_weight(self, db_session: AsyncSession, receptions):
        batch = await self._create(db_session, receptions)

        # 6 sacks × 70 kg + 60 kg = 480 kg
        batch = await complete_batch(
            db_session, batch.id,
            CacaoBatchComplete(sack_count=6, remainder_kg=Decimal("60")),
            TEST_USER,
        )

        assert batch.status == "completed"
        assert batch.total_dried_weight_kg == Decimal("480")

        rows = await get_batch_contributions(db_session, batch.id)
        assert [row.proportional_dried_weight_kg for row in rows] == [
            Decimal("80"), Decimal("160"), Decimal("240"),
        ]
        for reception, row in zip(receptions, rows):
            stored = await db_session.get(Reception, reception.id)
            assert stored.dried_weight_kg == row.proportional_dried_weight_kg

    async def test_update_contribution_redistributes(self, db_session: AsyncSession, receptions):
        batch = await self._create(db_session, receptions)
        await complete_batch(
            db_session, batch.id,
            CacaoBatchComplete(sack_count=1, remainder_kg=Decimal("30")),
            TEST_USER,
        )

        batch = await update_contribution(
            db_session, batch.id, receptions[2].id,
            ContributionUpdate(wet_weight_contribution_kg=Decimal("700")),
            TEST_USER,
        )

        assert batch.total_wet_weight_kg == Decimal("1000")
        rows = await get_batch_contributions(db_session, batch.id)
        assert [row.proportional_dried_weight_kg for row in rows] == [
            Decimal("10"), Decimal("20"), Decimal("70"),
        ]
        assert sum(row.proportional_dried_weight_kg for row in rows) == batch.total_dried_weight_kg

    async def test_update_contribution_of_foreign_reception(self, db_session: AsyncSession, receptions):
        batch = await self._create(db_session, receptions)

        with pytest.raises(ResourceNotFoundError):
            await update_contribution(
                db_session, batch.id, "not-in-batch",
                ContributionUpdate(wet_weight_contribution_kg=Decimal("1")),
                TEST_USER,
            )
