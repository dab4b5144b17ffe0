"""Threshold store — per fruit type, per metric quality limits.

Thresholds are admin data.  They are never deleted: disabling a row takes it
out of ``get_enabled_thresholds`` and therefore out of every future
recompute, while keeping it on record.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, InputValidationError, ResourceNotFoundError
from app.models.fruit_type import FruitType
from app.models.quality_threshold import QualityThreshold
from app.schemas.pricing import ThresholdCreate, ThresholdUpdate
from app.services.discounts import ThresholdSpec

logger = logging.getLogger(__name__)


async def get_enabled_thresholds(
    db: AsyncSession,
    fruit_type_id: str,
) -> list[ThresholdSpec]:
    """Enabled limits for a fruit type, ready for the discount calculator."""
    result = await db.execute(
        select(QualityThreshold).where(
            QualityThreshold.fruit_type_id == fruit_type_id,
            QualityThreshold.enabled == True,  # noqa: E712
        )
    )
    return [
        ThresholdSpec(metric=row.metric, limit_percent=Decimal(row.limit_percent))
        for row in result.scalars().all()
    ]


async def list_thresholds(db: AsyncSession, fruit_type_id: str) -> list[QualityThreshold]:
    """Every threshold of a fruit type, disabled ones included."""
    result = await db.execute(
        select(QualityThreshold)
        .where(QualityThreshold.fruit_type_id == fruit_type_id)
        .order_by(QualityThreshold.metric)
    )
    return list(result.scalars().all())


async def _get_active_fruit_type(db: AsyncSession, fruit_type_id: str) -> FruitType:
    fruit_type = (
        await db.execute(
            select(FruitType).where(
                FruitType.id == fruit_type_id,
                FruitType.is_active == True,  # noqa: E712
            )
        )
    ).scalar_one_or_none()
    if not fruit_type:
        raise ResourceNotFoundError("Fruit type", fruit_type_id)
    return fruit_type


async def create_threshold(
    db: AsyncSession,
    body: ThresholdCreate,
    user_id: str,
) -> QualityThreshold:
    """Add a limit for (fruit type, metric).

    Raises:
        ResourceNotFoundError: fruit type missing or inactive.
        ConflictError: a threshold for the metric already exists (enabled or
            not); update it instead.
    """
    await _get_active_fruit_type(db, body.fruit_type_id)

    existing = (
        await db.execute(
            select(QualityThreshold).where(
                QualityThreshold.fruit_type_id == body.fruit_type_id,
                QualityThreshold.metric == body.metric,
            )
        )
    ).scalar_one_or_none()
    if existing:
        raise ConflictError(
            f"Threshold for {body.metric} already exists for this fruit type",
            error_code="DUPLICATE_THRESHOLD",
        )

    threshold = QualityThreshold(
        fruit_type_id=body.fruit_type_id,
        metric=body.metric,
        limit_percent=body.limit_percent,
        enabled=True,
        created_by=user_id,
        updated_by=user_id,
    )
    db.add(threshold)
    await db.flush()

    logger.info(
        "Threshold %s created for fruit type %s: %s%%",
        body.metric, body.fruit_type_id, body.limit_percent,
    )
    return threshold


async def update_threshold(
    db: AsyncSession,
    threshold_id: str,
    body: ThresholdUpdate,
    user_id: str,
) -> QualityThreshold:
    """Change the limit and/or the enabled flag of a threshold.

    Receptions already computed keep their stored line items until their
    next recompute.
    """
    threshold = await db.get(QualityThreshold, threshold_id)
    if not threshold:
        raise ResourceNotFoundError("Threshold", threshold_id)

    updates = body.model_dump(exclude_unset=True, exclude_none=True)
    if not updates:
        raise InputValidationError("No threshold fields to update")

    for field, value in updates.items():
        setattr(threshold, field, value)
    threshold.updated_by = user_id
    await db.flush()

    logger.info("Threshold %s updated: %s", threshold_id, updates)
    return threshold


async def disable_threshold(
    db: AsyncSession,
    threshold_id: str,
    user_id: str,
) -> QualityThreshold:
    return await update_threshold(
        db, threshold_id, ThresholdUpdate(enabled=False), user_id,
    )
