"""Laboratory samples for cacao verde receptions.

A wet sample is taken out of the reception at intake and dried in the lab.
Its weights are mirrored onto the reception, where ``dried - wet`` enters the
final weight, so creating and completing a sample both trigger a recompute.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, InputValidationError, ResourceNotFoundError
from app.models.fruit_type import FruitType
from app.models.lab_sample import LaboratorySample
from app.models.reception import Reception
from app.schemas.lab_sample import LabSampleCreate, LabSampleResult
from app.services.reception_pricing import (
    calculate_pricing_for_reception,
    recompute_reception,
)
from app.utils.decimals import quantize_storage

logger = logging.getLogger(__name__)


async def _get_sample(db: AsyncSession, reception_id: str) -> LaboratorySample | None:
    result = await db.execute(
        select(LaboratorySample).where(LaboratorySample.reception_id == reception_id)
    )
    return result.scalar_one_or_none()


async def create_lab_sample(
    db: AsyncSession,
    reception_id: str,
    body: LabSampleCreate,
    user_id: str,
) -> LaboratorySample:
    """Start drying a sample of a cacao verde reception.

    The wet sample leaves the payable weight, so a priced reception is
    repriced.
    """
    reception = await db.get(Reception, reception_id)
    if not reception:
        raise ResourceNotFoundError("Reception", reception_id)

    fruit_type = await db.get(FruitType, reception.fruit_type_id)
    if fruit_type is None or not fruit_type.is_cacao_verde:
        raise InputValidationError("Laboratory samples apply to cacao verde receptions only")

    if await _get_sample(db, reception_id) is not None:
        raise ConflictError(
            f"Laboratory sample already exists for reception {reception_id}",
            error_code="LAB_SAMPLE_EXISTS",
        )

    if body.sample_weight_kg > reception.original_weight_kg:
        raise InputValidationError("Sample weight cannot exceed the reception weight")

    sample = LaboratorySample(
        reception_id=reception_id,
        sample_weight_kg=quantize_storage(body.sample_weight_kg),
        estimated_drying_days=body.estimated_drying_days,
        status="drying",
        created_by=user_id,
    )
    db.add(sample)

    reception.lab_sample_wet_weight_kg = sample.sample_weight_kg
    reception.lab_sample_dried_weight_kg = None
    await db.flush()

    logger.info(
        "Lab sample of %s kg taken from reception %s",
        sample.sample_weight_kg, reception.reception_number,
    )
    await recompute_reception(db, reception_id, user_id)
    if reception.pricing_calculation_id:
        await calculate_pricing_for_reception(db, reception_id, user_id)
    return sample


async def complete_lab_sample(
    db: AsyncSession,
    reception_id: str,
    body: LabSampleResult,
    user_id: str,
) -> LaboratorySample:
    """Record the dried sample, recompute the reception and reprice it.

    From here on the sample's humidity (water lost while drying) and its
    Violetas and Moho percentages replace the intake reading.
    """
    sample = await _get_sample(db, reception_id)
    if sample is None:
        raise ResourceNotFoundError("Laboratory sample", reception_id)

    if body.dried_sample_kg > sample.sample_weight_kg:
        raise InputValidationError("Dried sample cannot weigh more than the wet sample")

    sample.dried_sample_kg = quantize_storage(body.dried_sample_kg)
    sample.violetas_percentage = body.violetas_percentage
    sample.moho_percentage = body.moho_percentage
    sample.status = "completed"

    reception = await db.get(Reception, reception_id)
    reception.lab_sample_dried_weight_kg = sample.dried_sample_kg
    await db.flush()

    logger.info(
        "Lab sample of reception %s dried: %s kg → %s kg",
        reception.reception_number, sample.sample_weight_kg, sample.dried_sample_kg,
    )
    await recompute_reception(db, reception_id, user_id)
    await calculate_pricing_for_reception(db, reception_id, user_id)
    return sample
