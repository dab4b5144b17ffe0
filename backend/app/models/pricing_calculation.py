"""PricingCalculation — the monetary valuation of one reception.

Computed, never edited by hand.  Upserted (one row per reception) whenever
quality data or the daily price changes.

    gross_value           = (original + lab adjustment) × base price
    final_total           = final weight × base price
    total_discount_amount = gross_value - final_total
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, JSON, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class PricingCalculation(Base):
    __tablename__ = "pricing_calculations"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    reception_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("receptions.id"), unique=True, nullable=False
    )
    daily_price_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("daily_prices.id")
    )

    # ── Amounts ──────────────────────────────────────────────
    base_price_per_kg: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    total_weight_kg: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    gross_value: Mapped[Decimal] = mapped_column(Numeric(16, 4), nullable=False)
    total_discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(16, 4), nullable=False, default=Decimal("0")
    )
    final_total: Mapped[Decimal] = mapped_column(Numeric(16, 4), nullable=False)

    # Snapshot: {"fruit_type": ..., "applied_thresholds": [...],
    #            "breakdown": [...], "timestamp": ...}
    calculation_data: Mapped[dict | None] = mapped_column(JSON)

    created_by: Mapped[str | None] = mapped_column(String(36))  # user_id
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
