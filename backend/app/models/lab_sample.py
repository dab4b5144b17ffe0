"""LaboratorySample — a cacao verde sample taken out of a reception to dry.

The wet sample leaves the pile at intake; once dried, its dried weight comes
back.  Both weights are mirrored onto the reception and enter the final
weight as ``dried - wet``.

Lifecycle:  drying → completed
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class LaboratorySample(Base):
    __tablename__ = "laboratory_samples"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    reception_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("receptions.id"), unique=True, nullable=False
    )

    sample_weight_kg: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    estimated_drying_days: Mapped[int] = mapped_column(Integer, default=0)
    # drying | completed
    status: Mapped[str] = mapped_column(String(30), default="drying", index=True)

    dried_sample_kg: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))
    violetas_percentage: Mapped[Decimal | None] = mapped_column(Numeric(7, 4))
    moho_percentage: Mapped[Decimal | None] = mapped_column(Numeric(7, 4))

    created_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    reception = relationship("Reception", back_populates="lab_sample")
