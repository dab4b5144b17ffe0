"""Pydantic schemas for reception intake and reception weight summaries."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_serializer

from app.utils.decimals import quantize_weight


# ── Intake ───────────────────────────────────────────────────

class ReceptionCreate(BaseModel):
    """Payload for registering a truck reception."""
    fruit_type_id: str
    original_weight_kg: Decimal = Field(..., ge=0)
    reception_date: date | None = None

    # Optional but typical at intake
    provider_name: str | None = Field(None, max_length=255)
    truck_plate: str | None = Field(None, max_length=30)
    total_containers: int | None = Field(None, ge=0)
    notes: str | None = None


# ── Response ─────────────────────────────────────────────────

class ReceptionOut(BaseModel):
    id: str
    reception_number: str
    fruit_type_id: str
    reception_date: date
    status: str
    original_weight_kg: Decimal
    total_discount_kg: Decimal
    final_weight_kg: Decimal
    lab_sample_wet_weight_kg: Decimal | None
    lab_sample_dried_weight_kg: Decimal | None
    dried_weight_kg: Decimal | None
    batch_id: str | None
    pricing_calculation_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_serializer("original_weight_kg", "total_discount_kg", "final_weight_kg")
    def _weight(self, v: Decimal) -> str:
        return str(quantize_weight(v))
