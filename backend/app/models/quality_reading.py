"""QualityReading — measured quality percentages for one reception.

At most one row per reception.  Updating it in place is the trigger for a
full discount and pricing recompute.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class QualityReading(Base):
    __tablename__ = "quality_readings"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    reception_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("receptions.id"), unique=True, nullable=False
    )

    # Percentages 0–100; NULL means "not measured"
    violetas: Mapped[Decimal | None] = mapped_column(Numeric(7, 4))
    humedad: Mapped[Decimal | None] = mapped_column(Numeric(7, 4))
    moho: Mapped[Decimal | None] = mapped_column(Numeric(7, 4))

    created_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    updated_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    reception = relationship("Reception", back_populates="quality_reading")

    def as_readings(self) -> dict[str, Decimal | None]:
        """Metric name → value, in the shape the discount calculator takes."""
        return {
            "Violetas": self.violetas,
            "Humedad": self.humedad,
            "Moho": self.moho,
        }
