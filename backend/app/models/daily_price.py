"""DailyPrice — price per kilogram for a fruit type on a given date.

Several rows may exist for the same (fruit type, date); the lookup takes the
most recently created row that is still ``active``.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class DailyPrice(Base):
    __tablename__ = "daily_prices"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    fruit_type_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("fruit_types.id"), nullable=False, index=True
    )
    price_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    price_per_kg: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

    created_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    fruit_type = relationship("FruitType")
