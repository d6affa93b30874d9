"""
Pricing engine — pure totals from lines, shipping cost and coupons.

Stacking:

    cumulative coupons   ── summed ──────────┐
                                              ├─► larger total wins alone
    non-cumulative       ── best single ─────┘    (ties favour cumulative)

Clamps, applied to the winning set only:

    shipping discount ≤ shipping cost
    product discount  ≤ subtotal − Σ minimum price × qty   (never < 0)
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from orderflow.domain import (
    AppliedCoupon,
    CartLine,
    Cents,
    Coupon,
    CouponType,
    Totals,
)


def round_half_up(value: Decimal) -> Cents:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def coupon_discount(coupon: Coupon, subtotal: Cents, shipping_cost: Cents) -> Cents:
    """Raw discount for one coupon, before any stacking or clamping."""
    base = shipping_cost if coupon.type is CouponType.SHIPPING else subtotal
    discount = round_half_up(Decimal(base) * coupon.discount_percentage / 100)

    if coupon.max_discount_in_cents is not None:
        discount = min(discount, coupon.max_discount_in_cents)
    return discount


def _winning_set(
    priced: list[tuple[Coupon, Cents]],
) -> list[tuple[Coupon, Cents]]:
    cumulative = [(c, d) for c, d in priced if c.is_cumulative]
    cumulative_total = sum(d for _, d in cumulative)

    best: tuple[Coupon, Cents] | None = None
    for coupon, discount in priced:
        if coupon.is_cumulative:
            continue
        if best is None or discount > best[1]:
            best = (coupon, discount)

    if best is None or cumulative_total >= best[1]:
        return cumulative
    return [best]


def calculate_totals(
    items: Sequence[CartLine],
    shipping_cost_in_cents: Cents,
    coupons: Sequence[Coupon] = (),
) -> Totals:
    subtotal = sum(line.total_in_cents for line in items)
    minimum_floor = sum(line.minimum_total_in_cents for line in items)

    priced = [
        (coupon, coupon_discount(coupon, subtotal, shipping_cost_in_cents))
        for coupon in coupons
    ]
    winners = _winning_set(priced)

    shipping_discount = sum(d for c, d in winners if c.type is CouponType.SHIPPING)
    product_discount = sum(d for c, d in winners if c.type is CouponType.SUBTOTAL)

    shipping_discount = min(shipping_discount, shipping_cost_in_cents)
    product_discount = min(product_discount, max(subtotal - minimum_floor, 0))
    discount = shipping_discount + product_discount

    return Totals(
        subtotal_in_cents=subtotal,
        shipping_cost_in_cents=shipping_cost_in_cents,
        discount_in_cents=discount,
        total_in_cents=subtotal + shipping_cost_in_cents - discount,
        applied_coupons=tuple(
            AppliedCoupon(id=c.id, code=c.code, discount_in_cents=d, type=c.type)
            for c, d in winners
        ),
        shipping_discount_in_cents=shipping_discount,
        product_discount_in_cents=product_discount,
    )


__all__ = ("round_half_up", "coupon_discount", "calculate_totals")
