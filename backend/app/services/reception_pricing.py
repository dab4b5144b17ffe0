"""Reception pricing orchestrator.

Connects a reception's stored weight, quality reading, lab sample and the
daily price to the discount and pricing calculators, and persists what they
produce:

    QualityReading ───┐
    LaboratorySample ─┴► compute_discount ──► DiscountLineItem rows
                                           └► Reception totals
    DailyPrice ────────► compute_pricing ───► PricingCalculation row

Every function here only flushes.  The caller's session scope commits once
at the end or rolls everything back, so a failed recompute never leaves a
reception without its line items.

Derived data is always rebuilt from scratch: line items are deleted and
reinserted, reception totals are re-derived from the stored items, and the
pricing row is upserted.  Running a recompute twice gives the same rows.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import ConflictError, InputValidationError, ResourceNotFoundError
from app.models.daily_price import DailyPrice
from app.models.discount_line_item import DiscountLineItem
from app.models.fruit_type import FruitType
from app.models.lab_sample import LaboratorySample
from app.models.pricing_calculation import PricingCalculation
from app.models.quality_reading import QualityReading
from app.models.reception import Reception
from app.schemas.quality import (
    DiscountOverride,
    QualityReadingCreate,
    QualityReadingUpdate,
)
from app.services.discounts import DiscountLineResult, compute_discount
from app.services.prices import get_active_price
from app.services.pricing import PricingBreakdown, compute_pricing
from app.services.thresholds import get_enabled_thresholds
from app.utils.decimals import HUNDRED, ZERO, quantize_storage

logger = logging.getLogger(__name__)

# Allowed gap between an override's final weight and the weight invariant
OVERRIDE_TOLERANCE_KG = Decimal("0.01")

PRICED = "priced"
NO_PRICE = "no_price"
NO_WEIGHT = "no_weight"


@dataclass
class PricingOutcome:
    """Result of a pricing attempt.

    ``no_price`` and ``no_weight`` are normal outcomes, not errors: the
    reception simply stays unpriced until a price (or weight) exists.
    """
    status: str
    message: str | None = None
    calculation: PricingCalculation | None = None
    breakdown: PricingBreakdown | None = None

    @property
    def priced(self) -> bool:
        return self.status == PRICED


# ── Loading helpers ──────────────────────────────────────────

async def _get_reception(db: AsyncSession, reception_id: str) -> Reception:
    reception = await db.get(Reception, reception_id)
    if not reception:
        raise ResourceNotFoundError("Reception", reception_id)
    return reception


async def _get_reading(db: AsyncSession, reception_id: str) -> QualityReading | None:
    result = await db.execute(
        select(QualityReading).where(QualityReading.reception_id == reception_id)
    )
    return result.scalar_one_or_none()


async def _get_line_items(db: AsyncSession, reception_id: str) -> list[DiscountLineItem]:
    result = await db.execute(
        select(DiscountLineItem)
        .where(DiscountLineItem.reception_id == reception_id)
        .order_by(DiscountLineItem.position)
    )
    return list(result.scalars().all())


async def _get_completed_sample(
    db: AsyncSession, reception_id: str
) -> LaboratorySample | None:
    result = await db.execute(
        select(LaboratorySample).where(
            LaboratorySample.reception_id == reception_id,
            LaboratorySample.status == "completed",
        )
    )
    return result.scalar_one_or_none()


def _sample_readings(sample: LaboratorySample) -> dict:
    """Quality metrics measured on a dried lab sample.

    Humedad is the water lost while drying as a percentage of the wet
    sample.  It is only known when both weights are positive.
    """
    wet = Decimal(sample.sample_weight_kg)
    dried = Decimal(sample.dried_sample_kg) if sample.dried_sample_kg is not None else ZERO

    humedad = None
    if wet > ZERO and dried > ZERO:
        humedad = quantize_storage((wet - dried) / wet * HUNDRED)

    return {
        "Violetas": sample.violetas_percentage,
        "Humedad": humedad,
        "Moho": sample.moho_percentage,
    }


async def _lab_adjustment(db: AsyncSession, reception: Reception) -> Decimal:
    """Dried minus wet lab sample, for cacao verde only."""
    fruit_type = await db.get(FruitType, reception.fruit_type_id)
    if fruit_type is None or not fruit_type.is_cacao_verde:
        return ZERO
    return reception.lab_adjustment_kg


# ── Line items ───────────────────────────────────────────────

async def replace_line_items(
    db: AsyncSession,
    reception_id: str,
    items: list[DiscountLineResult],
    user_id: str | None,
) -> list[DiscountLineItem]:
    """Delete every line item of the reception, then insert ``items``.

    Both statements run in the caller's transaction; readers never see the
    reception with its old items removed and the new ones missing.
    """
    await db.execute(
        delete(DiscountLineItem).where(DiscountLineItem.reception_id == reception_id)
    )

    rows = []
    for position, item in enumerate(items):
        row = DiscountLineItem(
            reception_id=reception_id,
            position=position,
            parameter=item.parameter,
            threshold_percent=quantize_storage(item.threshold_percent),
            observed_percent=quantize_storage(item.observed_percent),
            discount_percent=quantize_storage(item.discount_percent),
            deducted_weight_kg=quantize_storage(item.deducted_weight),
            created_by=user_id,
        )
        db.add(row)
        rows.append(row)

    await db.flush()
    return rows


# ── Recompute ────────────────────────────────────────────────

async def recompute_reception(
    db: AsyncSession,
    reception_id: str,
    user_id: str | None = None,
) -> Reception:
    """Rebuild a reception's discounts from its current quality and thresholds.

    Quality comes from the completed lab sample when there is one, otherwise
    from the intake reading.  The total discount is the sum of the stored
    (rounded) line items and the final weight is re-derived from it, so

        final = original - total_discount + lab adjustment

    holds exactly on the stored values after every call, except that the
    final weight never goes below zero.
    """
    reception = await _get_reception(db, reception_id)
    thresholds = await get_enabled_thresholds(db, reception.fruit_type_id)

    sample = await _get_completed_sample(db, reception_id)
    if sample is not None:
        readings = _sample_readings(sample)
    else:
        reading = await _get_reading(db, reception_id)
        readings = reading.as_readings() if reading else {}

    result = compute_discount(
        reception.original_weight_kg,
        thresholds,
        readings,
        model=settings.discount_model,
    )
    rows = await replace_line_items(db, reception_id, result.breakdown, user_id)

    total_discount = sum((row.deducted_weight_kg for row in rows), ZERO)
    adjustment = await _lab_adjustment(db, reception)

    final_weight = Decimal(reception.original_weight_kg) - total_discount + adjustment

    reception.total_discount_kg = total_discount
    reception.final_weight_kg = quantize_storage(max(final_weight, ZERO))
    await db.flush()

    logger.info(
        "Recomputed reception %s from %s: original=%s discount=%s adjustment=%s final=%s (%d items)",
        reception.reception_number, "lab sample" if sample is not None else "reading",
        reception.original_weight_kg, total_discount, adjustment,
        reception.final_weight_kg, len(rows),
    )
    return reception


# ── Pricing ──────────────────────────────────────────────────

async def upsert_pricing_calculation(
    db: AsyncSession,
    reception: Reception,
    breakdown: PricingBreakdown,
    daily_price_id: str | None = None,
    calculation_data: dict | None = None,
    user_id: str | None = None,
) -> PricingCalculation:
    """Write the one pricing row of a reception, creating it if needed."""
    calc = (
        await db.execute(
            select(PricingCalculation).where(
                PricingCalculation.reception_id == reception.id
            )
        )
    ).scalar_one_or_none()

    if calc is None:
        calc = PricingCalculation(reception_id=reception.id, created_by=user_id)
        db.add(calc)

    calc.daily_price_id = daily_price_id
    calc.base_price_per_kg = breakdown.price_per_kg
    calc.total_weight_kg = quantize_storage(breakdown.net_weight)
    calc.gross_value = quantize_storage(breakdown.gross_value)
    calc.final_total = quantize_storage(breakdown.net_total)
    calc.total_discount_amount = calc.gross_value - calc.final_total
    calc.calculation_data = calculation_data
    await db.flush()

    reception.pricing_calculation_id = calc.id
    await db.flush()
    return calc


async def discard_pricing_calculation(db: AsyncSession, reception: Reception) -> None:
    """Remove a reception's pricing row once it can no longer be priced."""
    await db.execute(
        delete(PricingCalculation).where(PricingCalculation.reception_id == reception.id)
    )
    reception.pricing_calculation_id = None
    await db.flush()


def _snapshot(
    reception: Reception,
    fruit_type: FruitType | None,
    price: DailyPrice,
    thresholds,
    items: list[DiscountLineItem],
    adjustment: Decimal,
) -> dict:
    """JSON-safe record of everything the pricing row was computed from."""
    return {
        "reception_number": reception.reception_number,
        "fruit_type": (
            f"{fruit_type.fruit_type} {fruit_type.subtype}".strip() if fruit_type else None
        ),
        "price_date": price.price_date.isoformat(),
        "discount_model": settings.discount_model,
        "applied_thresholds": [
            {"metric": t.metric, "limit_percent": str(t.limit_percent)}
            for t in thresholds
        ],
        "breakdown": [
            {
                "parameter": item.parameter,
                "threshold_percent": str(item.threshold_percent),
                "observed_percent": str(item.observed_percent),
                "discount_percent": str(item.discount_percent),
                "deducted_weight_kg": str(item.deducted_weight_kg),
            }
            for item in items
        ],
        "original_weight_kg": str(reception.original_weight_kg),
        "total_discount_kg": str(reception.total_discount_kg),
        "lab_adjustment_kg": str(adjustment),
        "final_weight_kg": str(reception.final_weight_kg),
        "timestamp": datetime.utcnow().isoformat(),
    }


async def calculate_pricing_for_reception(
    db: AsyncSession,
    reception_id: str,
    user_id: str | None = None,
) -> PricingOutcome:
    """Price a reception's final weight at the day's active price.

    Uses the weights already stored on the reception; call
    ``recompute_reception`` first when the reading changed.

    Returns:
        PricingOutcome with status ``priced``, ``no_price`` (no active price
        for the fruit type and reception date) or ``no_weight`` (nothing left
        to pay for).  Only a missing reception raises.

    A reception that was priced before never keeps a stale row: on
    ``no_price`` its row is removed, and on ``no_weight`` the row is
    rewritten with a net total of zero.
    """
    reception = await _get_reception(db, reception_id)

    price = await get_active_price(db, reception.fruit_type_id, reception.reception_date)
    if price is None:
        logger.info(
            "No active price for reception %s (fruit type %s, %s); left unpriced",
            reception.reception_number, reception.fruit_type_id, reception.reception_date,
        )
        if reception.pricing_calculation_id:
            await discard_pricing_calculation(db, reception)
        return PricingOutcome(
            status=NO_PRICE,
            message=f"No active price for {reception.reception_date.isoformat()}",
        )

    final_weight = Decimal(reception.final_weight_kg)
    adjustment = await _lab_adjustment(db, reception)
    breakdown = compute_pricing(
        max(final_weight, ZERO),
        price.price_per_kg,
        original_weight=Decimal(reception.original_weight_kg) + adjustment,
    )
    if breakdown is None:
        logger.warning(
            "Daily price %s is not usable (%s); reception %s left unpriced",
            price.id, price.price_per_kg, reception.reception_number,
        )
        if reception.pricing_calculation_id:
            await discard_pricing_calculation(db, reception)
        return PricingOutcome(status=NO_PRICE, message="Active price is not positive")

    if final_weight <= ZERO and not reception.pricing_calculation_id:
        logger.info("Reception %s has no payable weight", reception.reception_number)
        return PricingOutcome(status=NO_WEIGHT, message="Final weight must be positive")

    fruit_type = await db.get(FruitType, reception.fruit_type_id)
    thresholds = await get_enabled_thresholds(db, reception.fruit_type_id)
    items = await _get_line_items(db, reception_id)

    calc = await upsert_pricing_calculation(
        db,
        reception,
        breakdown,
        daily_price_id=price.id,
        calculation_data=_snapshot(reception, fruit_type, price, thresholds, items, adjustment),
        user_id=user_id,
    )

    if final_weight <= ZERO:
        logger.info(
            "Reception %s has no payable weight; pricing zeroed (discount %s)",
            reception.reception_number, calc.total_discount_amount,
        )
        return PricingOutcome(
            status=NO_WEIGHT,
            message="Final weight must be positive",
            calculation=calc,
            breakdown=breakdown,
        )

    logger.info(
        "Priced reception %s: %s kg × %s = %s (discount %s)",
        reception.reception_number, calc.total_weight_kg, calc.base_price_per_kg,
        calc.final_total, calc.total_discount_amount,
    )
    return PricingOutcome(status=PRICED, calculation=calc, breakdown=breakdown)


# ── Quality readings ─────────────────────────────────────────

async def create_quality_reading(
    db: AsyncSession,
    reception_id: str,
    body: QualityReadingCreate,
    user_id: str,
) -> dict:
    """Record the reading of a reception, then recompute and try to price.

    Returns:
        {
            "reading": QualityReading,
            "reception": Reception,
            "pricing": PricingOutcome,
        }

    Raises:
        ResourceNotFoundError: the reception does not exist.
        ConflictError: the reception already has a reading; update it.
    """
    await _get_reception(db, reception_id)

    if await _get_reading(db, reception_id) is not None:
        raise ConflictError(
            f"Quality reading already exists for reception {reception_id}",
            error_code="QUALITY_READING_EXISTS",
        )

    reading = QualityReading(
        reception_id=reception_id,
        violetas=body.violetas,
        humedad=body.humedad,
        moho=body.moho,
        created_by=user_id,
        updated_by=user_id,
    )
    db.add(reading)
    await db.flush()

    reception = await recompute_reception(db, reception_id, user_id)
    outcome = await calculate_pricing_for_reception(db, reception_id, user_id)

    return {"reading": reading, "reception": reception, "pricing": outcome}


async def update_quality_reading(
    db: AsyncSession,
    reception_id: str,
    body: QualityReadingUpdate,
    user_id: str,
) -> dict:
    """Apply the provided metrics and recompute.

    Pricing is recomputed only for receptions that were already priced.
    Sending a metric as null clears it.  Once a lab sample is completed its
    measurements take over, so later reading changes no longer move the
    discounts.

    Returns the same shape as ``create_quality_reading``; ``pricing`` is None
    when the reception had never been priced.
    """
    reading = await _get_reading(db, reception_id)
    if reading is None:
        raise ResourceNotFoundError("Quality reading", reception_id)

    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(reading, field, value)
    reading.updated_by = user_id
    await db.flush()

    reception = await recompute_reception(db, reception_id, user_id)

    outcome = None
    if reception.pricing_calculation_id:
        outcome = await calculate_pricing_for_reception(db, reception_id, user_id)
        if not outcome.priced:
            logger.warning(
                "Reception %s is no longer priced after its reading changed: %s",
                reception.reception_number, outcome.message,
            )

    return {"reading": reading, "reception": reception, "pricing": outcome}


# ── Breakdown & admin override ───────────────────────────────

async def get_discount_breakdown(db: AsyncSession, reception_id: str) -> dict:
    """Stored weights of a reception with their line items."""
    reception = await _get_reception(db, reception_id)
    items = await _get_line_items(db, reception_id)
    return {
        "reception_id": reception.id,
        "original_weight_kg": reception.original_weight_kg,
        "total_discount_kg": reception.total_discount_kg,
        "lab_adjustment_kg": await _lab_adjustment(db, reception),
        "final_weight_kg": reception.final_weight_kg,
        "items": items,
    }


async def override_discounts(
    db: AsyncSession,
    reception_id: str,
    body: DiscountOverride,
    user_id: str,
) -> Reception:
    """Set a reception's discount totals by hand.

    The override must respect the weight invariant within 0.01 kg.  It lasts
    until the next recompute, which rebuilds everything from the reading.
    """
    reception = await _get_reception(db, reception_id)
    adjustment = await _lab_adjustment(db, reception)

    expected_final = Decimal(reception.original_weight_kg) - body.total_discount_kg + adjustment
    if abs(expected_final - body.final_weight_kg) > OVERRIDE_TOLERANCE_KG:
        raise InputValidationError(
            "Override does not balance: original - discount + lab adjustment must equal final",
            details={
                "original_weight_kg": str(reception.original_weight_kg),
                "lab_adjustment_kg": str(adjustment),
                "expected_final_weight_kg": str(expected_final),
            },
        )

    if body.breakdown is not None:
        items = [
            DiscountLineResult(
                parameter=item.parameter,
                threshold_percent=item.threshold_percent,
                observed_percent=item.observed_percent,
                discount_percent=item.discount_percent,
                deducted_weight=item.deducted_weight_kg,
            )
            for item in body.breakdown
        ]
        await replace_line_items(db, reception_id, items, user_id)

    reception.total_discount_kg = quantize_storage(body.total_discount_kg)
    reception.final_weight_kg = quantize_storage(body.final_weight_kg)
    await db.flush()

    logger.warning(
        "Discount override on reception %s by %s: discount=%s final=%s (%s)",
        reception.reception_number, user_id,
        reception.total_discount_kg, reception.final_weight_kg, body.reason,
    )

    if reception.pricing_calculation_id:
        await calculate_pricing_for_reception(db, reception_id, user_id)
    return reception
