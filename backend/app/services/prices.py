"""Daily price store — price per kg by fruit type and date.

Prices are appended, not edited: publishing a new price for a date adds a
row, and the lookup takes the newest active one.
"""

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ResourceNotFoundError
from app.models.daily_price import DailyPrice
from app.models.fruit_type import FruitType
from app.schemas.pricing import DailyPriceCreate

logger = logging.getLogger(__name__)


async def get_active_price(
    db: AsyncSession,
    fruit_type_id: str,
    on_date: date,
) -> DailyPrice | None:
    """Most recently created active price for (fruit type, date), or None."""
    result = await db.execute(
        select(DailyPrice)
        .where(
            DailyPrice.fruit_type_id == fruit_type_id,
            DailyPrice.price_date == on_date,
            DailyPrice.active == True,  # noqa: E712
        )
        .order_by(DailyPrice.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_price_history(
    db: AsyncSession,
    fruit_type_id: str,
    limit: int = 30,
) -> list[DailyPrice]:
    """Latest prices for a fruit type, newest date first."""
    result = await db.execute(
        select(DailyPrice)
        .where(DailyPrice.fruit_type_id == fruit_type_id)
        .order_by(DailyPrice.price_date.desc(), DailyPrice.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def create_daily_price(
    db: AsyncSession,
    body: DailyPriceCreate,
    user_id: str,
) -> DailyPrice:
    """Publish a price.  Receptions already priced are not repriced here."""
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

    price = DailyPrice(
        fruit_type_id=body.fruit_type_id,
        price_date=body.price_date,
        price_per_kg=body.price_per_kg,
        active=True,
        created_by=user_id,
    )
    db.add(price)
    await db.flush()

    logger.info(
        "Daily price %s/kg published for %s %s on %s",
        body.price_per_kg, fruit_type.fruit_type, fruit_type.subtype, body.price_date,
    )
    return price


async def deactivate_price(db: AsyncSession, price_id: str) -> DailyPrice:
    price = await db.get(DailyPrice, price_id)
    if not price:
        raise ResourceNotFoundError("Daily price", price_id)
    price.active = False
    await db.flush()
    return price
