"""
Coupons — eligibility validation and administration.

    validator = CouponValidator()
    coupons = await validator.validate_multiple(uow, ["promo10"], user_id, subtotal)
"""

from orderflow.coupons._admin import create_coupon
from orderflow.coupons._validator import CouponValidator, normalize_codes

__all__ = ("CouponValidator", "normalize_codes", "create_coupon")
