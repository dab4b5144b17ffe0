"""Pydantic schemas for cacao verde laboratory samples."""

from decimal import Decimal

from pydantic import BaseModel, Field


class LabSampleCreate(BaseModel):
    sample_weight_kg: Decimal = Field(..., gt=0)
    estimated_drying_days: int = Field(0, ge=0)


class LabSampleResult(BaseModel):
    """Lab results recorded when the sample finishes drying."""
    dried_sample_kg: Decimal = Field(..., ge=0)
    violetas_percentage: Decimal | None = Field(None, ge=0, le=100)
    moho_percentage: Decimal | None = Field(None, ge=0, le=100)
