"""Quality discount calculator — weight deductions from quality readings.

Pure functions, no I/O, never raise.  Malformed numbers degrade to "metric
not evaluated" instead of an error.

Each metric whose reading is strictly above its configured limit removes
``excess`` percent of the weight, where ``excess = reading - limit`` in
percentage points.  Two models are supported:

  compounding (default)
      Metrics are evaluated in EVALUATION_ORDER and each deduction is taken
      from the weight left after the previous ones.  Weight already removed
      is never discounted twice.

  additive
      Every excess is taken against the original weight, the excesses are
      summed and capped at 100%, and the resulting deduction is shared among
      the line items by their share of the excess.  This is how the cash
      point-of-sale flow computed it.

Example (compounding), 500 kg with limits Violetas 10 / Humedad 15 / Moho 5
and readings 12 / 18 / 7:

    Violetas  2% of 500     = 10      → 490
    Humedad   3% of 490     = 14.7    → 475.3
    Moho      2% of 475.3   = 9.506   → 465.794
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Mapping

from app.utils.decimals import HUNDRED, ZERO, to_decimal


class QualityMetric(str, enum.Enum):
    VIOLETAS = "Violetas"   # foreign / violet beans
    HUMEDAD = "Humedad"     # moisture
    MOHO = "Moho"           # mold


# Order matters only when several metrics exceed their limits (compounding).
EVALUATION_ORDER: tuple[str, ...] = (
    QualityMetric.VIOLETAS.value,
    QualityMetric.HUMEDAD.value,
    QualityMetric.MOHO.value,
)


class DiscountModel(str, enum.Enum):
    COMPOUNDING = "compounding"
    ADDITIVE = "additive"


# ── Data structures ────────────────────────────────────────────


@dataclass(frozen=True)
class ThresholdSpec:
    """An enabled limit for one metric, as handed over by the threshold store."""
    metric: str
    limit_percent: Decimal


@dataclass(frozen=True)
class MetricReading:
    metric: str
    value: object


@dataclass
class DiscountLineResult:
    parameter: str
    threshold_percent: Decimal
    observed_percent: Decimal
    discount_percent: Decimal
    deducted_weight: Decimal

    def as_dict(self) -> dict:
        return {
            "parameter": self.parameter,
            "threshold_percent": str(self.threshold_percent),
            "observed_percent": str(self.observed_percent),
            "discount_percent": str(self.discount_percent),
            "deducted_weight_kg": str(self.deducted_weight),
        }


@dataclass
class DiscountResult:
    original_weight: Decimal
    final_weight: Decimal
    total_discount_weight: Decimal
    total_discount_percent: Decimal
    breakdown: list[DiscountLineResult] = field(default_factory=list)

    @classmethod
    def empty(cls, weight: Decimal = ZERO) -> "DiscountResult":
        return cls(
            original_weight=weight,
            final_weight=weight,
            total_discount_weight=ZERO,
            total_discount_percent=ZERO,
        )


# ── Input normalisation ───────────────────────────────────────


def _metric_name(metric) -> str:
    return metric.value if isinstance(metric, QualityMetric) else str(metric)


def _threshold_map(thresholds: Iterable) -> dict[str, Decimal]:
    """metric → limit, dropping unusable rows.

    Accepts ThresholdSpec objects, ORM QualityThreshold rows, or dicts with
    ``metric`` and ``limit_percent`` keys.  Disabled rows are ignored.
    """
    limits: dict[str, Decimal] = {}
    for t in thresholds or ():
        if isinstance(t, Mapping):
            metric, limit, enabled = t.get("metric"), t.get("limit_percent"), t.get("enabled", True)
        else:
            metric = getattr(t, "metric", None)
            limit = getattr(t, "limit_percent", None)
            enabled = getattr(t, "enabled", True)
        if metric is None or enabled is False:
            continue
        limit_dec = to_decimal(limit)
        if limit_dec is None or limit_dec < ZERO:
            continue
        limits[_metric_name(metric)] = limit_dec
    return limits


def _reading_map(readings) -> dict[str, Decimal]:
    """metric → value for every usable reading (finite, positive)."""
    if readings is None:
        return {}
    if isinstance(readings, Mapping):
        pairs = readings.items()
    else:
        pairs = []
        for r in readings:
            if isinstance(r, Mapping):
                pairs.append((r.get("metric"), r.get("value")))
            else:
                pairs.append((getattr(r, "metric", None), getattr(r, "value", None)))

    values: dict[str, Decimal] = {}
    for metric, value in pairs:
        if metric is None:
            continue
        value_dec = to_decimal(value)
        if value_dec is None or value_dec <= ZERO:
            continue
        values[_metric_name(metric)] = value_dec
    return values


def _excesses(limits: dict[str, Decimal], values: dict[str, Decimal]):
    """Yield (metric, limit, value, excess) for metrics above their limit."""
    for metric in EVALUATION_ORDER:
        limit = limits.get(metric)
        value = values.get(metric)
        if limit is None or value is None:
            continue
        if value <= limit:
            continue
        yield metric, limit, value, value - limit


# ── Calculators ────────────────────────────────────────────────


def compute_discount(
    original_weight,
    thresholds: Iterable,
    readings,
    model: DiscountModel | str = DiscountModel.COMPOUNDING,
) -> DiscountResult:
    """Apply quality thresholds to a weight.

    Args:
        original_weight: Raw weight in kg (Decimal, int, float or numeric str).
        thresholds: Enabled limits for the reception's fruit type.
        readings: ``{metric: value}`` or an iterable of ``{metric, value}``.
        model: compounding (default) or additive.

    Returns:
        DiscountResult with full-precision Decimals.  ``final_weight`` is
        always within ``[0, original_weight]``.
    """
    weight = to_decimal(original_weight)
    if weight is None or weight <= ZERO:
        return DiscountResult.empty(ZERO)

    limits = _threshold_map(thresholds)
    values = _reading_map(readings)

    try:
        model = DiscountModel(model)
    except ValueError:
        model = DiscountModel.COMPOUNDING

    if model is DiscountModel.ADDITIVE:
        breakdown = _additive_breakdown(weight, limits, values)
    else:
        breakdown = _compounding_breakdown(weight, limits, values)

    total = sum((item.deducted_weight for item in breakdown), ZERO)
    final = weight - total
    return DiscountResult(
        original_weight=weight,
        final_weight=final,
        total_discount_weight=total,
        total_discount_percent=total / weight * HUNDRED,
        breakdown=breakdown,
    )


def _compounding_breakdown(
    weight: Decimal,
    limits: dict[str, Decimal],
    values: dict[str, Decimal],
) -> list[DiscountLineResult]:
    current = weight
    breakdown = []
    for metric, limit, value, excess in _excesses(limits, values):
        # An excess of 100 points or more takes whatever is left
        pct = min(excess, HUNDRED)
        deduction = current * pct / HUNDRED
        breakdown.append(DiscountLineResult(
            parameter=metric,
            threshold_percent=limit,
            observed_percent=value,
            discount_percent=excess,
            deducted_weight=deduction,
        ))
        current -= deduction
    return breakdown


def _additive_breakdown(
    weight: Decimal,
    limits: dict[str, Decimal],
    values: dict[str, Decimal],
) -> list[DiscountLineResult]:
    rows = list(_excesses(limits, values))
    total_excess = sum((row[3] for row in rows), ZERO)
    if total_excess <= ZERO:
        return []

    combined_pct = min(total_excess, HUNDRED)
    discount_weight = weight * combined_pct / HUNDRED

    return [
        DiscountLineResult(
            parameter=metric,
            threshold_percent=limit,
            observed_percent=value,
            discount_percent=excess,
            deducted_weight=discount_weight * excess / total_excess,
        )
        for metric, limit, value, excess in rows
    ]


def validate_discount_inputs(
    original_weight,
    thresholds: Iterable,
    readings,
    max_weight=None,
) -> list[str]:
    """Describe out-of-range inputs without raising.

    Returns a list of human-readable problems; empty means valid.
    """
    errors: list[str] = []

    weight = to_decimal(original_weight)
    if weight is None or weight <= ZERO:
        errors.append("Total weight must be positive")
    else:
        max_dec = to_decimal(max_weight)
        if max_dec is not None and weight > max_dec:
            errors.append(f"Total weight cannot exceed {max_dec} kg")

    pairs = readings.items() if isinstance(readings, Mapping) else [
        (r.get("metric"), r.get("value")) if isinstance(r, Mapping)
        else (getattr(r, "metric", None), getattr(r, "value", None))
        for r in (readings or ())
    ]
    for metric, value in pairs:
        if value is None:
            continue
        value_dec = to_decimal(value)
        if value_dec is None:
            errors.append(f"{_metric_name(metric)} is not a number")
        elif value_dec < ZERO or value_dec > HUNDRED:
            errors.append(f"{_metric_name(metric)} must be between 0 and 100")

    for t in thresholds or ():
        if isinstance(t, Mapping):
            metric, limit = t.get("metric"), t.get("limit_percent")
        else:
            metric, limit = getattr(t, "metric", None), getattr(t, "limit_percent", None)
        limit_dec = to_decimal(limit)
        if limit_dec is None or limit_dec < ZERO or limit_dec > HUNDRED:
            errors.append(f"Threshold for {_metric_name(metric)} must be between 0 and 100")

    return errors
