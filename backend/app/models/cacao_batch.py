"""CacaoBatch — a drying/fermentation lot built from several receptions.

The batch accumulates wet weight from its receptions.  When it completes,
the dried output (sacks × sack weight + remainder) is shared back to each
reception in proportion to its wet contribution.

Lifecycle:  in_progress → completed
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class CacaoBatch(Base):
    __tablename__ = "cacao_batches"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # drying | fermentation | both
    batch_type: Mapped[str] = mapped_column(String(30), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration_days: Mapped[int] = mapped_column(Integer, nullable=False)
    expected_completion_date: Mapped[datetime | None] = mapped_column(DateTime)

    # in_progress | completed
    status: Mapped[str] = mapped_column(String(30), default="in_progress", index=True)

    # ── Weights ──────────────────────────────────────────────
    total_wet_weight_kg: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), nullable=False, default=Decimal("0")
    )
    total_dried_weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))
    sack_count: Mapped[int | None] = mapped_column(Integer)
    remainder_kg: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))

    created_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    contributions = relationship(
        "BatchReception", back_populates="batch",
        order_by="BatchReception.position",
    )


class BatchReception(Base):
    """One reception's share of a batch.  Derived, never authored directly."""
    __tablename__ = "batch_receptions"

    batch_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("cacao_batches.id"), primary_key=True
    )
    reception_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("receptions.id"), primary_key=True
    )
    # Stable contribution order; breaks ties when rounding shares
    position: Mapped[int] = mapped_column(Integer, default=0)

    wet_weight_contribution_kg: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), nullable=False, default=Decimal("0")
    )
    percentage_of_total: Mapped[Decimal] = mapped_column(
        Numeric(9, 4), nullable=False, default=Decimal("0")
    )
    proportional_dried_weight_kg: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), nullable=False, default=Decimal("0")
    )

    batch = relationship("CacaoBatch", back_populates="contributions")
    reception = relationship("Reception")
