"""Reception — one truckload of produce delivered by a provider.

Weights are carried as NUMERIC so that repeated recomputes never drift.

Weight invariant (re-derived on every recompute, never trusted from a
previous run):

    final_weight_kg = original_weight_kg
                      - total_discount_kg
                      + (lab_sample_dried_weight_kg - lab_sample_wet_weight_kg)

The lab-sample term only applies to cacao verde and is zero otherwise.

Lifecycle:  no quality → quality recorded → discounts computed → priced
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Reception(Base):
    __tablename__ = "receptions"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # REC-YYYYMMDD-NNN
    reception_number: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )

    # ── Origin ───────────────────────────────────────────────
    fruit_type_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("fruit_types.id"), nullable=False, index=True
    )
    provider_name: Mapped[str | None] = mapped_column(String(255))
    truck_plate: Mapped[str | None] = mapped_column(String(30))
    total_containers: Mapped[int | None] = mapped_column(Integer)
    reception_date: Mapped[date] = mapped_column(Date, default=date.today, index=True)

    # ── Weights ──────────────────────────────────────────────
    original_weight_kg: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), nullable=False, default=Decimal("0")
    )
    total_discount_kg: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), nullable=False, default=Decimal("0")
    )
    final_weight_kg: Mapped[Decimal] = mapped_column(
        Numeric(14, 4), nullable=False, default=Decimal("0")
    )
    lab_sample_wet_weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))
    lab_sample_dried_weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))

    # ── Cacao batch output ───────────────────────────────────
    dried_weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(14, 4))
    batch_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("cacao_batches.id"), index=True
    )

    # ── Pricing ──────────────────────────────────────────────
    pricing_calculation_id: Mapped[str | None] = mapped_column(String(36))

    # ── Status ───────────────────────────────────────────────
    # draft | completed | cancelled
    status: Mapped[str] = mapped_column(String(30), default="draft", index=True)

    # ── Metadata ─────────────────────────────────────────────
    notes: Mapped[str | None] = mapped_column(Text)
    created_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # ── Relationships ────────────────────────────────────────
    # Load explicitly with selectinload() where needed.
    fruit_type = relationship("FruitType")
    quality_reading = relationship(
        "QualityReading", back_populates="reception", uselist=False,
    )
    discount_items = relationship(
        "DiscountLineItem", back_populates="reception",
        order_by="DiscountLineItem.position",
    )
    lab_sample = relationship("LaboratorySample", back_populates="reception", uselist=False)

    @property
    def lab_adjustment_kg(self) -> Decimal:
        """Dried minus wet lab-sample weight (zero when either is missing)."""
        wet = self.lab_sample_wet_weight_kg
        dried = self.lab_sample_dried_weight_kg
        if wet is None and dried is None:
            return Decimal("0")
        return (dried or Decimal("0")) - (wet or Decimal("0"))
