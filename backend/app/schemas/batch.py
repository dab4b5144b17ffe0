"""Pydantic schemas for cacao drying/fermentation batches."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


BATCH_TYPES = ("drying", "fermentation", "both")


# ── Create ───────────────────────────────────────────────────

class CacaoBatchCreate(BaseModel):
    reception_ids: list[str] = Field(..., min_length=1)
    batch_type: str
    start_date: datetime
    duration_days: int = Field(..., ge=0)

    @field_validator("batch_type")
    @classmethod
    def valid_type(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in BATCH_TYPES:
            raise ValueError(f"batch_type must be one of {', '.join(BATCH_TYPES)}")
        return v

    @field_validator("reception_ids")
    @classmethod
    def unique_receptions(cls, v: list[str]) -> list[str]:
        if len(set(v)) != len(v):
            raise ValueError("reception_ids must not repeat")
        return v


# ── Completion ───────────────────────────────────────────────

class CacaoBatchComplete(BaseModel):
    """Dried output counted as full sacks plus a loose remainder."""
    sack_count: int = Field(..., ge=0)
    remainder_kg: Decimal = Field(Decimal("0"), ge=0)


class ContributionUpdate(BaseModel):
    wet_weight_contribution_kg: Decimal = Field(..., ge=0)
