"""
HTTP codecs — pydantic request models with to_domain(), response models
with from_domain().

Coupon codes are accepted as `coupon_codes` (list), `coupon_code` or
`code` and merged in that order.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from orderflow.domain import (
    AppliedCoupon,
    Cart,
    CartLine,
    Coupon,
    CouponDraft,
    CouponType,
    Order,
    OrderItem,
    RateItem,
    ShippingAddress,
    ShippingOption,
    Simulation,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Requests
# ═══════════════════════════════════════════════════════════════════════════════


class ItemIn(BaseModel):
    product_id: int
    quantity: int

    def to_domain(self) -> RateItem:
        return RateItem(product_id=self.product_id, quantity=self.quantity)


class QuantityIn(BaseModel):
    quantity: int


class SyncCartIn(BaseModel):
    items: list[ItemIn] = Field(default_factory=list)

    def to_domain(self) -> list[RateItem]:
        return [item.to_domain() for item in self.items]


class _CouponCodesIn(BaseModel):
    coupon_codes: list[str] | None = None
    coupon_code: str | None = None
    code: str | None = None

    def codes(self) -> list[str]:
        return [*(self.coupon_codes or ()), *(c for c in (self.coupon_code, self.code) if c)]


class CheckoutIn(_CouponCodesIn):
    payment_method: str
    shipping_method: str
    shipping_address: dict[str, Any]

    def address(self) -> ShippingAddress:
        return ShippingAddress(dict(self.shipping_address))


class SimulationIn(_CouponCodesIn):
    shipping_method: str
    shipping_address: dict[str, Any]
    items: list[ItemIn] | None = None

    def address(self) -> ShippingAddress:
        return ShippingAddress(dict(self.shipping_address))

    def rate_items(self) -> list[RateItem] | None:
        if self.items is None:
            return None
        return [item.to_domain() for item in self.items]


class StatusIn(BaseModel):
    status: str
    tracking_code: str | None = None


class PaymentInfoIn(BaseModel):
    gateway_id: str
    gateway_data: dict[str, Any] = Field(default_factory=dict)
    status: str | None = None


class CouponIn(BaseModel):
    code: str
    discount_percentage: int
    type: CouponType = CouponType.SUBTOTAL
    description: str | None = None
    max_discount_in_cents: int | None = None
    min_purchase_value_in_cents: int = 0
    is_cumulative: bool = False
    usage_limit_per_user: int | None = 1
    usage_limit_global: int | None = None
    expiration_date: datetime | None = None
    is_active: bool = True

    def to_domain(self) -> CouponDraft:
        return CouponDraft(
            code=self.code,
            discount_percentage=self.discount_percentage,
            type=self.type,
            description=self.description,
            max_discount_in_cents=self.max_discount_in_cents,
            min_purchase_value_in_cents=self.min_purchase_value_in_cents,
            is_cumulative=self.is_cumulative,
            usage_limit_per_user=self.usage_limit_per_user,
            usage_limit_global=self.usage_limit_global,
            expiration_date=self.expiration_date,
            is_active=self.is_active,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Responses
# ═══════════════════════════════════════════════════════════════════════════════


class CartLineOut(BaseModel):
    product_id: int
    name: str
    quantity: int
    unit_price_in_cents: int
    total_in_cents: int
    stock_quantity: int
    is_active: bool

    @classmethod
    def from_domain(cls, line: CartLine) -> CartLineOut:
        return cls(
            product_id=line.product_id,
            name=line.name,
            quantity=line.quantity,
            unit_price_in_cents=line.unit_price_in_cents,
            total_in_cents=line.total_in_cents,
            stock_quantity=line.stock_quantity,
            is_active=line.is_active,
        )


class CartOut(BaseModel):
    user_id: str
    items: list[CartLineOut]
    total_in_cents: int

    @classmethod
    def from_domain(cls, cart: Cart) -> CartOut:
        return cls(
            user_id=cart.user_id,
            items=[CartLineOut.from_domain(line) for line in cart.lines],
            total_in_cents=cart.total_in_cents,
        )


class ShippingOptionOut(BaseModel):
    type: str
    price_in_cents: int
    name: str | None = None
    days: int | None = None
    carrier: str | None = None

    @classmethod
    def from_domain(cls, option: ShippingOption | None) -> ShippingOptionOut | None:
        if option is None:
            return None
        return cls(
            type=option.type,
            price_in_cents=option.price_in_cents,
            name=option.name,
            days=option.days,
            carrier=option.carrier,
        )


class AppliedCouponOut(BaseModel):
    id: int
    code: str
    discount_in_cents: int
    type: str

    @classmethod
    def from_domain(cls, applied: AppliedCoupon) -> AppliedCouponOut:
        return cls(
            id=applied.id,
            code=applied.code,
            discount_in_cents=applied.discount_in_cents,
            type=applied.type.value,
        )


class SimulationOut(BaseModel):
    subtotal_in_cents: int
    shipping_cost_in_cents: int
    discount_in_cents: int
    total_in_cents: int
    applied_coupons: list[AppliedCouponOut]
    shipping_details: ShippingOptionOut | None

    @classmethod
    def from_domain(cls, simulation: Simulation) -> SimulationOut:
        totals = simulation.totals
        return cls(
            subtotal_in_cents=totals.subtotal_in_cents,
            shipping_cost_in_cents=totals.shipping_cost_in_cents,
            discount_in_cents=totals.discount_in_cents,
            total_in_cents=totals.total_in_cents,
            applied_coupons=[AppliedCouponOut.from_domain(c) for c in totals.applied_coupons],
            shipping_details=ShippingOptionOut.from_domain(simulation.shipping_details),
        )


class OrderItemOut(BaseModel):
    product_id: int
    product_name_snapshot: str
    quantity: int
    unit_price_in_cents: int
    total_in_cents: int

    @classmethod
    def from_domain(cls, item: OrderItem) -> OrderItemOut:
        return cls(
            product_id=item.product_id,
            product_name_snapshot=item.product_name_snapshot,
            quantity=item.quantity,
            unit_price_in_cents=item.unit_price_in_cents,
            total_in_cents=item.total_in_cents,
        )


class OrderOut(BaseModel):
    id: str
    user_id: str
    status: str
    subtotal_in_cents: int
    shipping_cost_in_cents: int
    discount_in_cents: int
    total_in_cents: int
    payment_method: str
    shipping_method: str
    shipping_address: dict[str, Any]
    shipping_details: ShippingOptionOut | None
    applied_coupons: list[AppliedCouponOut]
    items: list[OrderItemOut]
    payment_gateway_id: str | None
    tracking_code: str | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_domain(cls, order: Order) -> OrderOut:
        return cls(
            id=order.id,
            user_id=order.user_id,
            status=order.status.value,
            subtotal_in_cents=order.subtotal_in_cents,
            shipping_cost_in_cents=order.shipping_cost_in_cents,
            discount_in_cents=order.discount_in_cents,
            total_in_cents=order.total_in_cents,
            payment_method=order.payment_method,
            shipping_method=order.shipping_method,
            shipping_address=order.shipping_address.to_dict(),
            shipping_details=ShippingOptionOut.from_domain(order.shipping_details),
            applied_coupons=[AppliedCouponOut.from_domain(c) for c in order.applied_coupons],
            items=[OrderItemOut.from_domain(item) for item in order.items],
            payment_gateway_id=order.payment_gateway_id,
            tracking_code=order.tracking_code,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class CouponOut(BaseModel):
    id: int
    code: str
    type: str
    discount_percentage: int
    max_discount_in_cents: int | None
    min_purchase_value_in_cents: int
    is_cumulative: bool
    usage_limit_per_user: int | None
    usage_limit_global: int | None
    expiration_date: datetime | None
    is_active: bool

    @classmethod
    def from_domain(cls, coupon: Coupon) -> CouponOut:
        return cls(
            id=coupon.id,
            code=coupon.code,
            type=coupon.type.value,
            discount_percentage=coupon.discount_percentage,
            max_discount_in_cents=coupon.max_discount_in_cents,
            min_purchase_value_in_cents=coupon.min_purchase_value_in_cents,
            is_cumulative=coupon.is_cumulative,
            usage_limit_per_user=coupon.usage_limit_per_user,
            usage_limit_global=coupon.usage_limit_global,
            expiration_date=coupon.expiration_date,
            is_active=coupon.is_active,
        )


__all__ = (
    "ItemIn",
    "QuantityIn",
    "SyncCartIn",
    "CheckoutIn",
    "SimulationIn",
    "StatusIn",
    "PaymentInfoIn",
    "CouponIn",
    "CartOut",
    "SimulationOut",
    "OrderOut",
    "CouponOut",
)
