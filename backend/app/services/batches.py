"""Cacao batch service and dried-weight aggregation.

A batch pools the wet cacao of several receptions.  When it finishes
drying, the output is counted in sacks plus a loose remainder and the dried
total is shared back to each reception in proportion to its wet weight:

    share_i = total_dried × wet_i / Σ wet

Shares are stored at 4 decimal places.  Rounding each one independently
could lose or invent a few ten-thousandths of a kg, so they are rounded with
the largest-remainder method: every share is rounded down, and the missing
units go to the shares with the largest discarded fractions (earlier
contributions first on ties).  The stored shares always add up to the
stored total.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from decimal import ROUND_DOWN, Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import ConflictError, InputValidationError, ResourceNotFoundError
from app.models.cacao_batch import BatchReception, CacaoBatch
from app.models.reception import Reception
from app.schemas.batch import CacaoBatchComplete, CacaoBatchCreate, ContributionUpdate
from app.utils.decimals import (
    HUNDRED,
    STORAGE_QUANTUM,
    ZERO,
    quantize_storage,
    to_decimal,
)

logger = logging.getLogger(__name__)


# ── Aggregation (pure) ───────────────────────────────────────

@dataclass(frozen=True)
class Contribution:
    reception_id: str
    wet_weight: Decimal


@dataclass(frozen=True)
class ContributionShare:
    reception_id: str
    wet_weight: Decimal
    percentage_of_total: Decimal
    proportional_dried_weight: Decimal


def distribute_dried_weight(contributions, total_dried_weight) -> list[ContributionShare]:
    """Share a batch's dried weight across its contributions.

    Args:
        contributions: Contribution objects, in batch order.
        total_dried_weight: Dried output of the batch in kg.

    Returns:
        One ContributionShare per contribution, same order.  Percentages and
        shares are at storage precision and the shares sum to the dried total
        rounded to storage precision.  A batch with no wet weight gets zero
        everywhere; negative or malformed weights count as zero.
    """
    contributions = list(contributions)
    wets = []
    for c in contributions:
        wet = to_decimal(c.wet_weight)
        wets.append(wet if wet is not None and wet > ZERO else ZERO)
    total_wet = sum(wets, ZERO)

    total_dried = to_decimal(total_dried_weight)
    if total_dried is None or total_dried < ZERO:
        total_dried = ZERO
    total_dried = quantize_storage(total_dried)

    if total_wet <= ZERO:
        return [
            ContributionShare(c.reception_id, wet, ZERO, ZERO)
            for c, wet in zip(contributions, wets)
        ]

    raw = [total_dried * wet / total_wet for wet in wets]
    shares = [r.quantize(STORAGE_QUANTUM, rounding=ROUND_DOWN) for r in raw]

    missing_units = int((total_dried - sum(shares, ZERO)) / STORAGE_QUANTUM)
    by_remainder = sorted(range(len(raw)), key=lambda i: (-(raw[i] - shares[i]), i))
    for i in by_remainder[:missing_units]:
        shares[i] += STORAGE_QUANTUM

    return [
        ContributionShare(
            reception_id=c.reception_id,
            wet_weight=wet,
            percentage_of_total=quantize_storage(wet / total_wet * HUNDRED),
            proportional_dried_weight=share,
        )
        for c, wet, share in zip(contributions, wets, shares)
    ]


def dried_weight_from_sacks(sack_count: int, remainder_kg) -> Decimal:
    """Full sacks at the configured sack weight plus the loose remainder."""
    remainder = to_decimal(remainder_kg) or ZERO
    return Decimal(sack_count) * settings.sack_weight_kg + remainder


# ── Batch lifecycle ──────────────────────────────────────────

async def _get_batch(db: AsyncSession, batch_id: str) -> CacaoBatch:
    batch = await db.get(CacaoBatch, batch_id)
    if not batch:
        raise ResourceNotFoundError("Batch", batch_id)
    return batch


async def _get_contributions(db: AsyncSession, batch_id: str) -> list[BatchReception]:
    result = await db.execute(
        select(BatchReception)
        .where(BatchReception.batch_id == batch_id)
        .order_by(BatchReception.position)
    )
    return list(result.scalars().all())


async def _apply_shares(
    db: AsyncSession,
    batch: CacaoBatch,
    rows: list[BatchReception],
) -> None:
    """Re-derive totals, percentages and (when known) dried shares."""
    shares = distribute_dried_weight(
        [Contribution(row.reception_id, row.wet_weight_contribution_kg) for row in rows],
        batch.total_dried_weight_kg or ZERO,
    )
    batch.total_wet_weight_kg = sum((s.wet_weight for s in shares), ZERO)

    for row, share in zip(rows, shares):
        row.percentage_of_total = share.percentage_of_total
        if batch.total_dried_weight_kg is None:
            continue
        row.proportional_dried_weight_kg = share.proportional_dried_weight
        reception = await db.get(Reception, row.reception_id)
        reception.dried_weight_kg = share.proportional_dried_weight

    await db.flush()


async def create_batch(
    db: AsyncSession,
    body: CacaoBatchCreate,
    user_id: str,
) -> CacaoBatch:
    """Pool receptions into a new batch.

    Each reception contributes its original weight as wet weight.

    Raises:
        ResourceNotFoundError: a reception does not exist.
        ConflictError: a reception already belongs to a batch.
    """
    receptions = []
    for reception_id in body.reception_ids:
        reception = await db.get(Reception, reception_id)
        if not reception:
            raise ResourceNotFoundError("Reception", reception_id)
        if reception.batch_id:
            raise ConflictError(
                f"Reception {reception.reception_number} already belongs to batch {reception.batch_id}",
                error_code="RECEPTION_IN_BATCH",
            )
        receptions.append(reception)

    batch = CacaoBatch(
        batch_type=body.batch_type,
        start_date=body.start_date,
        duration_days=body.duration_days,
        expected_completion_date=body.start_date + timedelta(days=body.duration_days),
        status="in_progress",
        created_by=user_id,
    )
    db.add(batch)
    await db.flush()  # populate batch.id

    rows = []
    for position, reception in enumerate(receptions):
        row = BatchReception(
            batch_id=batch.id,
            reception_id=reception.id,
            position=position,
            wet_weight_contribution_kg=quantize_storage(Decimal(reception.original_weight_kg)),
        )
        db.add(row)
        rows.append(row)
        reception.batch_id = batch.id

    await _apply_shares(db, batch, rows)

    logger.info(
        "Batch %s (%s) created from %d receptions, %s kg wet",
        batch.id, batch.batch_type, len(rows), batch.total_wet_weight_kg,
    )
    return batch


async def complete_batch(
    db: AsyncSession,
    batch_id: str,
    body: CacaoBatchComplete,
    user_id: str,
) -> CacaoBatch:
    """Record the dried output and share it back to the receptions.

    Completing an already completed batch recounts it.
    """
    batch = await _get_batch(db, batch_id)
    rows = await _get_contributions(db, batch_id)
    if not rows:
        raise InputValidationError(f"Batch {batch_id} has no receptions")

    batch.sack_count = body.sack_count
    batch.remainder_kg = quantize_storage(body.remainder_kg)
    batch.total_dried_weight_kg = quantize_storage(
        dried_weight_from_sacks(body.sack_count, body.remainder_kg)
    )
    batch.status = "completed"

    await _apply_shares(db, batch, rows)

    logger.info(
        "Batch %s completed by %s: %d sacks + %s kg = %s kg dried from %s kg wet",
        batch.id, user_id, body.sack_count, batch.remainder_kg,
        batch.total_dried_weight_kg, batch.total_wet_weight_kg,
    )
    return batch


async def update_contribution(
    db: AsyncSession,
    batch_id: str,
    reception_id: str,
    body: ContributionUpdate,
    user_id: str,
) -> CacaoBatch:
    """Correct one reception's wet weight; every share of the batch follows."""
    batch = await _get_batch(db, batch_id)
    rows = await _get_contributions(db, batch_id)

    target = next((row for row in rows if row.reception_id == reception_id), None)
    if target is None:
        raise ResourceNotFoundError("Batch reception", f"{batch_id}/{reception_id}")

    target.wet_weight_contribution_kg = quantize_storage(body.wet_weight_contribution_kg)
    await _apply_shares(db, batch, rows)

    logger.info(
        "Batch %s: wet contribution of reception %s set to %s kg by %s",
        batch_id, reception_id, target.wet_weight_contribution_kg, user_id,
    )
    return batch


async def get_batch_contributions(db: AsyncSession, batch_id: str) -> list[BatchReception]:
    await _get_batch(db, batch_id)
    return await _get_contributions(db, batch_id)
