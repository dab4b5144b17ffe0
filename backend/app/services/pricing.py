"""Pricing calculator — turns a priced weight into money.

Pure functions; nothing is rounded here.  ``quantize_money`` is applied by
the schemas when values are shown.

Without a discount, gross and net are the same number.  With one, gross is
taken against the pre-discount weight and net against the final weight, and
the monetary discount is *derived* as ``gross - net`` so the three figures
always reconcile.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from app.utils.decimals import ZERO, quantize_money, to_decimal


@dataclass(frozen=True)
class PricingBreakdown:
    price_per_kg: Decimal
    gross_weight: Decimal
    net_weight: Decimal
    gross_value: Decimal
    net_total: Decimal

    @property
    def discount_amount(self) -> Decimal:
        return self.gross_value - self.net_total

    def presented(self) -> dict:
        """Rounded to the currency minor unit, for display."""
        return {
            "price_per_kg": str(self.price_per_kg),
            "gross_value": str(quantize_money(self.gross_value)),
            "discount_amount": str(quantize_money(self.discount_amount)),
            "net_total": str(quantize_money(self.net_total)),
        }


def resolve_price(price_per_kg) -> Decimal | None:
    """A usable price, or None when it is absent, malformed or not positive."""
    price = to_decimal(price_per_kg)
    if price is None or price <= ZERO:
        return None
    return price


def compute_pricing(
    final_weight,
    price_per_kg,
    original_weight=None,
) -> PricingBreakdown | None:
    """Price a weight.

    Args:
        final_weight: Net weight in kg after quality discounts.
        price_per_kg: Daily base price.
        original_weight: Weight before quality discounts.  When omitted, gross
            and net are both computed against ``final_weight``.

    Returns:
        PricingBreakdown, or None when no price can be produced (absent or
        non-positive price).  None is the caller's "pricing unavailable".
    """
    price = resolve_price(price_per_kg)
    if price is None:
        return None

    net_weight = to_decimal(final_weight)
    if net_weight is None or net_weight < ZERO:
        net_weight = ZERO

    gross_weight = to_decimal(original_weight)
    if gross_weight is None or gross_weight < net_weight:
        gross_weight = net_weight

    return PricingBreakdown(
        price_per_kg=price,
        gross_weight=gross_weight,
        net_weight=net_weight,
        gross_value=gross_weight * price,
        net_total=net_weight * price,
    )


def price_discount_result(result, price_per_kg, lab_adjustment=ZERO) -> PricingBreakdown | None:
    """Price a DiscountResult: gross on the pre-discount weight, net on final.

    ``lab_adjustment`` (dried minus wet lab sample) shifts both weights so that
    ``gross - net`` is exactly the quality discount valued at the price.
    """
    adjustment = to_decimal(lab_adjustment) or ZERO
    return compute_pricing(
        final_weight=result.final_weight + adjustment,
        price_per_kg=price_per_kg,
        original_weight=result.original_weight + adjustment,
    )
