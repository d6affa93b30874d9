"""
Pricing — deterministic order totals.

    totals = calculate_totals(lines, shipping_cost_in_cents=2100, coupons=[...])
    assert totals.total_in_cents == (
        totals.subtotal_in_cents + totals.shipping_cost_in_cents - totals.discount_in_cents
    )
"""

from orderflow.pricing._engine import calculate_totals, coupon_discount, round_half_up

__all__ = ("calculate_totals", "coupon_discount", "round_half_up")
