"""Aggregate model imports for Alembic auto-detection and mapper setup."""

# ── Configuration ────────────────────────────────────────────
from app.models.fruit_type import FruitType  # noqa: F401
from app.models.quality_threshold import QualityThreshold  # noqa: F401
from app.models.daily_price import DailyPrice  # noqa: F401

# ── Receptions & quality ─────────────────────────────────────
from app.models.reception import Reception  # noqa: F401
from app.models.quality_reading import QualityReading  # noqa: F401
from app.models.discount_line_item import DiscountLineItem  # noqa: F401
from app.models.pricing_calculation import PricingCalculation  # noqa: F401
from app.models.lab_sample import LaboratorySample  # noqa: F401

# ── Cacao batches ────────────────────────────────────────────
from app.models.cacao_batch import BatchReception, CacaoBatch  # noqa: F401

__all__ = [
    "FruitType", "QualityThreshold", "DailyPrice",
    "Reception", "QualityReading", "DiscountLineItem",
    "PricingCalculation", "LaboratorySample",
    "CacaoBatch", "BatchReception",
]
