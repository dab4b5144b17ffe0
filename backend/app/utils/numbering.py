"""Reception number generation.

Format:  REC-{date}-{seq:3}   e.g. REC-20260219-001

The sequence resets daily: it counts existing reception numbers that share
the date prefix.
"""

from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.reception import Reception

RECEPTION_PREFIX = "REC"


def _build_prefix(on_date: date) -> str:
    return f"{RECEPTION_PREFIX}-{on_date.strftime('%Y%m%d')}-"


async def generate_reception_number(
    db: AsyncSession,
    on_date: date | None = None,
) -> str:
    """Generate the next REC-YYYYMMDD-NNN for ``on_date`` (default today)."""
    prefix = _build_prefix(on_date or date.today())

    result = await db.execute(
        select(func.count(Reception.id)).where(
            Reception.reception_number.like(f"{prefix}%")
        )
    )
    count = result.scalar() or 0
    return f"{prefix}{count + 1:03d}"
