"""Reception intake service.

Registers a truck reception:
  - Auto-generating a unique reception_number (REC-YYYYMMDD-NNN)
  - Starting with final weight = original weight (nothing discounted yet)
  - Attempting a best-effort pricing at the day's active price
"""

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import InputValidationError, ResourceNotFoundError
from app.models.fruit_type import FruitType
from app.models.reception import Reception
from app.schemas.reception import ReceptionCreate
from app.services.reception_pricing import calculate_pricing_for_reception
from app.utils.decimals import ZERO, quantize_storage
from app.utils.numbering import generate_reception_number

logger = logging.getLogger(__name__)


async def create_reception(
    db: AsyncSession,
    body: ReceptionCreate,
    user_id: str,
) -> dict:
    """Create a reception and try to price it.

    Returns:
        {
            "reception": Reception,
            "pricing": PricingOutcome,
        }

    Raises:
        ResourceNotFoundError: fruit type missing or inactive.
        InputValidationError: weight above the configured maximum.
    """
    # ── Validate fruit type ───────────────────────────────────
    fruit_type = (
        await db.execute(
            select(FruitType).where(
                FruitType.id == body.fruit_type_id,
                FruitType.is_active == True,  # noqa: E712
            )
        )
    ).scalar_one_or_none()
    if not fruit_type:
        raise ResourceNotFoundError("Fruit type", body.fruit_type_id)

    if body.original_weight_kg > settings.max_reception_weight_kg:
        raise InputValidationError(
            f"Original weight cannot exceed {settings.max_reception_weight_kg} kg",
            details={"original_weight_kg": str(body.original_weight_kg)},
        )

    # ── Create Reception ──────────────────────────────────────
    reception_date = body.reception_date or date.today()
    weight = quantize_storage(body.original_weight_kg)

    reception = Reception(
        reception_number=await generate_reception_number(db, reception_date),
        fruit_type_id=body.fruit_type_id,
        provider_name=body.provider_name,
        truck_plate=body.truck_plate,
        total_containers=body.total_containers,
        reception_date=reception_date,
        original_weight_kg=weight,
        total_discount_kg=ZERO,
        final_weight_kg=weight,
        status="draft",
        notes=body.notes,
        created_by=user_id,
    )
    db.add(reception)
    await db.flush()  # populate reception.id

    logger.info(
        "Reception %s registered: %s kg of %s %s",
        reception.reception_number, weight, fruit_type.fruit_type, fruit_type.subtype,
    )

    outcome = await calculate_pricing_for_reception(db, reception.id, user_id)
    return {"reception": reception, "pricing": outcome}


async def get_reception(db: AsyncSession, reception_id: str) -> Reception:
    reception = await db.get(Reception, reception_id)
    if not reception:
        raise ResourceNotFoundError("Reception", reception_id)
    return reception
