"""Pydantic schemas for quality readings and discount line items."""

from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


# ── Create ───────────────────────────────────────────────────

class QualityReadingCreate(BaseModel):
    """Payload for recording the quality reading of a reception.

    Percentages may be sent as numbers or decimal strings.  A metric left
    out is stored as "not measured" and never discounts.
    """
    violetas: Decimal | None = Field(None, ge=0, le=100)
    humedad: Decimal | None = Field(None, ge=0, le=100)
    moho: Decimal | None = Field(None, ge=0, le=100)


# ── Update (partial) ─────────────────────────────────────────

class QualityReadingUpdate(BaseModel):
    violetas: Decimal | None = Field(None, ge=0, le=100)
    humedad: Decimal | None = Field(None, ge=0, le=100)
    moho: Decimal | None = Field(None, ge=0, le=100)

    @model_validator(mode="after")
    def at_least_one_metric(self):
        if not self.model_fields_set:
            raise ValueError("At least one metric must be provided")
        return self


# ── Admin override ───────────────────────────────────────────

class DiscountLineItemIn(BaseModel):
    """A manually entered line item (admin override only)."""
    parameter: str = Field(..., max_length=50)
    threshold_percent: Decimal = Field(..., ge=0, le=100)
    observed_percent: Decimal = Field(..., ge=0, le=100)
    discount_percent: Decimal = Field(..., ge=0, le=100)
    deducted_weight_kg: Decimal = Field(..., ge=0)


class DiscountOverride(BaseModel):
    """Admin override of a reception's discount totals.

    Must satisfy the weight invariant (within 0.01 kg) or it is rejected.
    """
    total_discount_kg: Decimal = Field(..., ge=0)
    final_weight_kg: Decimal = Field(..., ge=0)
    reason: str = Field(..., min_length=3, max_length=500)
    breakdown: list[DiscountLineItemIn] | None = None
