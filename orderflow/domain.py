"""
Domain — order fulfillment values.

Money is integer cents everywhere. Every value here is immutable: the
persistence layer maps rows into these types and the services only ever
build new ones.

    Product ──► CartLine ──► Totals ──► Order
                   ▲            ▲
    Coupon ────────┼────────────┘
    ShippingOption ┘
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TypeAlias


# ═══════════════════════════════════════════════════════════════════════════════
# IDs
# ═══════════════════════════════════════════════════════════════════════════════

Cents: TypeAlias = int
UserId: TypeAlias = str
ProductId: TypeAlias = int
CouponId: TypeAlias = int
OrderId: TypeAlias = str

# Placeholder owner for guest simulations; it carries no coupon privileges.
SIMULATION_USER: UserId = "guest_simulation"


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Product:
    id: ProductId
    name: str
    price_in_cents: Cents
    stock_quantity: int
    is_active: bool = True
    promotional_price_in_cents: Cents | None = None
    minimum_price_in_cents: Cents = 0

    @property
    def unit_price_in_cents(self) -> Cents:
        """Promotional price when set, otherwise the list price."""
        if self.promotional_price_in_cents:
            return self.promotional_price_in_cents
        return self.price_in_cents


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartLine:
    """A cart item joined live to its product."""

    product_id: ProductId
    name: str
    quantity: int
    unit_price_in_cents: Cents
    minimum_price_in_cents: Cents = 0
    stock_quantity: int = 0
    is_active: bool = True

    @classmethod
    def from_product(cls, product: Product, quantity: int) -> CartLine:
        return cls(
            product_id=product.id,
            name=product.name,
            quantity=quantity,
            unit_price_in_cents=product.unit_price_in_cents,
            minimum_price_in_cents=product.minimum_price_in_cents,
            stock_quantity=product.stock_quantity,
            is_active=product.is_active,
        )

    @property
    def total_in_cents(self) -> Cents:
        return self.unit_price_in_cents * self.quantity

    @property
    def minimum_total_in_cents(self) -> Cents:
        return self.minimum_price_in_cents * self.quantity


@dataclass(frozen=True, slots=True)
class Cart:
    user_id: UserId
    lines: tuple[CartLine, ...] = ()

    @property
    def total_in_cents(self) -> Cents:
        return sum(line.total_in_cents for line in self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines


@dataclass(frozen=True, slots=True)
class RateItem:
    """What the rate oracle needs to know about one line."""

    product_id: ProductId
    quantity: int


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════


class CouponType(Enum):
    SUBTOTAL = "subtotal"
    SHIPPING = "shipping"


@dataclass(frozen=True, slots=True)
class Coupon:
    id: CouponId
    code: str
    discount_percentage: int
    type: CouponType = CouponType.SUBTOTAL
    description: str | None = None
    max_discount_in_cents: Cents | None = None
    min_purchase_value_in_cents: Cents = 0
    is_cumulative: bool = False
    usage_limit_per_user: int | None = 1
    usage_limit_global: int | None = None
    expiration_date: datetime | None = None
    is_active: bool = True

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expiration_date is None:
            return False
        return self.expiration_date < (now or datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class CouponDraft:
    """Coupon fields as submitted by an administrator, before insert."""

    code: str
    discount_percentage: int
    type: CouponType = CouponType.SUBTOTAL
    description: str | None = None
    max_discount_in_cents: Cents | None = None
    min_purchase_value_in_cents: Cents = 0
    is_cumulative: bool = False
    usage_limit_per_user: int | None = 1
    usage_limit_global: int | None = None
    expiration_date: datetime | None = None
    is_active: bool = True


@dataclass(frozen=True, slots=True)
class AppliedCoupon:
    """Audit entry for one coupon that actually discounted an order."""

    id: CouponId
    code: str
    discount_in_cents: Cents
    type: CouponType


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping
# ═══════════════════════════════════════════════════════════════════════════════

POSTAL_CODE_FIELDS = ("zip_code", "zipCode", "cep", "postal_code", "postalCode")


@dataclass(frozen=True, slots=True)
class ShippingAddress:
    """
    Structured destination address.

    Field names are kept as submitted; the postal code is looked up under
    every name the storefront has used for it.
    """

    fields: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def of(cls, **fields: Any) -> ShippingAddress:
        return cls(dict(fields))

    @property
    def postal_code(self) -> str | None:
        for name in POSTAL_CODE_FIELDS:
            value = self.fields.get(name)
            if value is not None and str(value).strip():
                return str(value).strip()
        return None

    def to_dict(self) -> dict[str, Any]:
        return dict(self.fields)


@dataclass(frozen=True, slots=True)
class ShippingOption:
    type: str
    price_in_cents: Cents
    name: str | None = None
    days: int | None = None
    carrier: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ShippingQuote:
    cost_in_cents: Cents
    details: ShippingOption


# ═══════════════════════════════════════════════════════════════════════════════
# Totals
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Totals:
    subtotal_in_cents: Cents
    shipping_cost_in_cents: Cents
    discount_in_cents: Cents
    total_in_cents: Cents
    applied_coupons: tuple[AppliedCoupon, ...] = ()
    shipping_discount_in_cents: Cents = 0
    product_discount_in_cents: Cents = 0

    @classmethod
    def zero(cls) -> Totals:
        return cls(0, 0, 0, 0)


@dataclass(frozen=True, slots=True)
class Simulation:
    totals: Totals
    shipping_details: ShippingOption | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELED = "canceled"
    REFUNDED = "refunded"

    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self]

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELED}),
    OrderStatus.PAID: frozenset(
        {OrderStatus.SHIPPED, OrderStatus.CANCELED, OrderStatus.REFUNDED}
    ),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class OrderItem:
    product_id: ProductId
    product_name_snapshot: str
    quantity: int
    unit_price_in_cents: Cents
    total_in_cents: Cents

    @classmethod
    def from_line(cls, line: CartLine) -> OrderItem:
        return cls(
            product_id=line.product_id,
            product_name_snapshot=line.name,
            quantity=line.quantity,
            unit_price_in_cents=line.unit_price_in_cents,
            total_in_cents=line.total_in_cents,
        )


@dataclass(frozen=True, slots=True)
class Order:
    """Financial snapshot taken at checkout. Prices never change afterwards."""

    id: OrderId
    user_id: UserId
    status: OrderStatus
    subtotal_in_cents: Cents
    shipping_cost_in_cents: Cents
    discount_in_cents: Cents
    total_in_cents: Cents
    payment_method: str
    shipping_method: str
    shipping_address: ShippingAddress
    shipping_details: ShippingOption | None = None
    applied_coupons: tuple[AppliedCoupon, ...] = ()
    items: tuple[OrderItem, ...] = ()
    payment_gateway_id: str | None = None
    gateway_data: Mapping[str, Any] = field(default_factory=dict)
    tracking_code: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


__all__ = (
    # IDs
    "Cents",
    "UserId",
    "ProductId",
    "CouponId",
    "OrderId",
    "SIMULATION_USER",
    # Catalog / cart
    "Product",
    "CartLine",
    "Cart",
    "RateItem",
    # Coupons
    "CouponType",
    "Coupon",
    "CouponDraft",
    "AppliedCoupon",
    # Shipping
    "POSTAL_CODE_FIELDS",
    "ShippingAddress",
    "ShippingOption",
    "ShippingQuote",
    # Totals
    "Totals",
    "Simulation",
    # Orders
    "OrderStatus",
    "OrderItem",
    "Order",
)
