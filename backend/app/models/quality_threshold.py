"""QualityThreshold — admin-configured limit above which a metric discounts.

One row per (fruit type, metric).  Rows are never deleted; ``enabled=False``
takes a threshold out of every lookup while keeping it on record.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean, DateTime, ForeignKey, Numeric, String, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class QualityThreshold(Base):
    __tablename__ = "quality_thresholds"
    __table_args__ = (
        UniqueConstraint("fruit_type_id", "metric", name="uq_threshold_fruit_metric"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    fruit_type_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("fruit_types.id"), nullable=False, index=True
    )
    # Violetas | Humedad | Moho
    metric: Mapped[str] = mapped_column(String(50), nullable=False)
    limit_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    created_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    updated_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    fruit_type = relationship("FruitType")
