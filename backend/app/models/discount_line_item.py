"""DiscountLineItem — one metric's contribution to a reception's weight loss.

Derived rows: every recompute deletes all items of the reception and inserts
the fresh set, so a metric that dropped below its threshold leaves nothing
stale behind.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class DiscountLineItem(Base):
    __tablename__ = "discount_line_items"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    reception_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("receptions.id"), nullable=False, index=True
    )
    # Evaluation order within the recompute (0-based)
    position: Mapped[int] = mapped_column(Integer, default=0)

    parameter: Mapped[str] = mapped_column(String(50), nullable=False)
    threshold_percent: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False)
    observed_percent: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(Numeric(7, 4), nullable=False)
    deducted_weight_kg: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)

    created_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    reception = relationship("Reception", back_populates="discount_items")
