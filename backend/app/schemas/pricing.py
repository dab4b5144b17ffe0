"""Pydantic schemas for thresholds, daily prices and the pricing row."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer, field_validator

from app.services.discounts import EVALUATION_ORDER
from app.utils.decimals import quantize_money, quantize_weight


# ── Thresholds ───────────────────────────────────────────────

class ThresholdCreate(BaseModel):
    fruit_type_id: str
    metric: str
    limit_percent: Decimal = Field(..., ge=0, le=100)

    @field_validator("metric")
    @classmethod
    def known_metric(cls, v: str) -> str:
        v = v.strip().capitalize()
        if v not in EVALUATION_ORDER:
            raise ValueError(f"metric must be one of {', '.join(EVALUATION_ORDER)}")
        return v


class ThresholdUpdate(BaseModel):
    limit_percent: Decimal | None = Field(None, ge=0, le=100)
    enabled: bool | None = None


# ── Daily prices ─────────────────────────────────────────────

class DailyPriceCreate(BaseModel):
    fruit_type_id: str
    price_date: date
    price_per_kg: Decimal = Field(..., gt=0, max_digits=12, decimal_places=4)


# ── Pricing calculation ──────────────────────────────────────

class PricingCalculationOut(BaseModel):
    id: str
    reception_id: str
    base_price_per_kg: Decimal
    total_weight_kg: Decimal
    gross_value: Decimal
    total_discount_amount: Decimal
    final_total: Decimal
    calculation_data: dict | None = None
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_serializer("gross_value", "total_discount_amount", "final_total")
    def _money(self, v: Decimal) -> str:
        return str(quantize_money(v))

    @field_serializer("total_weight_kg")
    def _weight(self, v: Decimal) -> str:
        return str(quantize_weight(v))
