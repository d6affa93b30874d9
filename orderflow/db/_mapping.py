"""
Row ↔ domain mapping.

The only place where address, shipping details and applied coupons are
converted to and from their JSON snapshot form.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from orderflow.db._tables import CouponTable, OrderItemTable, OrderTable, ProductTable
from orderflow.domain import (
    AppliedCoupon,
    Coupon,
    CouponType,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    ShippingAddress,
    ShippingOption,
)
from orderflow.shipping._oracles import option_from_payload


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; they were written as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog / Coupons
# ═══════════════════════════════════════════════════════════════════════════════


def product_from_row(row: ProductTable) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        price_in_cents=row.price_in_cents,
        stock_quantity=row.stock_quantity,
        is_active=row.is_active,
        promotional_price_in_cents=row.promotional_price_in_cents,
        minimum_price_in_cents=row.minimum_price_in_cents,
    )


def coupon_from_row(row: CouponTable) -> Coupon:
    return Coupon(
        id=row.id,
        code=row.code,
        discount_percentage=row.discount_percentage,
        type=CouponType(row.type),
        description=row.description,
        max_discount_in_cents=row.max_discount_in_cents,
        min_purchase_value_in_cents=row.min_purchase_value_in_cents,
        is_cumulative=row.is_cumulative,
        usage_limit_per_user=row.usage_limit_per_user,
        usage_limit_global=row.usage_limit_global,
        expiration_date=as_utc(row.expiration_date),
        is_active=row.is_active,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# JSON Snapshots
# ═══════════════════════════════════════════════════════════════════════════════


def option_to_json(option: ShippingOption | None) -> dict[str, Any] | None:
    if option is None:
        return None
    return {
        **option.extra,
        "type": option.type,
        "price_in_cents": option.price_in_cents,
        "name": option.name,
        "days": option.days,
        "carrier": option.carrier,
    }


def option_from_json(data: Mapping[str, Any] | None) -> ShippingOption | None:
    if data is None:
        return None
    return option_from_payload(data)


def coupons_to_json(coupons: Iterable[AppliedCoupon]) -> list[dict[str, Any]]:
    return [
        {
            "id": c.id,
            "code": c.code,
            "discount_in_cents": c.discount_in_cents,
            "type": c.type.value,
        }
        for c in coupons
    ]


def coupons_from_json(data: Sequence[Mapping[str, Any]] | None) -> tuple[AppliedCoupon, ...]:
    return tuple(
        AppliedCoupon(
            id=int(entry["id"]),
            code=str(entry["code"]),
            discount_in_cents=int(entry["discount_in_cents"]),
            type=CouponType(entry["type"]),
        )
        for entry in data or ()
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


def order_to_row(order: Order) -> OrderTable:
    return OrderTable(
        id=order.id,
        user_id=order.user_id,
        subtotal_in_cents=order.subtotal_in_cents,
        shipping_cost_in_cents=order.shipping_cost_in_cents,
        discount_in_cents=order.discount_in_cents,
        total_in_cents=order.total_in_cents,
        payment_method=order.payment_method,
        shipping_method=order.shipping_method,
        shipping_address_snapshot=order.shipping_address.to_dict(),
        shipping_details=option_to_json(order.shipping_details),
        applied_coupons=coupons_to_json(order.applied_coupons),
        status=order.status.value,
        payment_gateway_id=order.payment_gateway_id,
        gateway_data=dict(order.gateway_data),
        tracking_code=order.tracking_code,
    )


def item_to_row(order_id: str, item: OrderItem) -> OrderItemTable:
    return OrderItemTable(
        order_id=order_id,
        product_id=item.product_id,
        product_name_snapshot=item.product_name_snapshot,
        quantity=item.quantity,
        unit_price_in_cents=item.unit_price_in_cents,
        total_in_cents=item.total_in_cents,
    )


def order_from_row(row: OrderTable, items: Iterable[OrderItemTable]) -> Order:
    return Order(
        id=row.id,
        user_id=row.user_id,
        status=OrderStatus(row.status),
        subtotal_in_cents=row.subtotal_in_cents,
        shipping_cost_in_cents=row.shipping_cost_in_cents,
        discount_in_cents=row.discount_in_cents,
        total_in_cents=row.total_in_cents,
        payment_method=row.payment_method,
        shipping_method=row.shipping_method,
        shipping_address=ShippingAddress(dict(row.shipping_address_snapshot or {})),
        shipping_details=option_from_json(row.shipping_details),
        applied_coupons=coupons_from_json(row.applied_coupons),
        items=tuple(
            OrderItem(
                product_id=item.product_id,
                product_name_snapshot=item.product_name_snapshot,
                quantity=item.quantity,
                unit_price_in_cents=item.unit_price_in_cents,
                total_in_cents=item.total_in_cents,
            )
            for item in items
        ),
        payment_gateway_id=row.payment_gateway_id,
        gateway_data=dict(row.gateway_data or {}),
        tracking_code=row.tracking_code,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


__all__ = (
    "as_utc",
    "product_from_row",
    "coupon_from_row",
    "option_to_json",
    "option_from_json",
    "coupons_to_json",
    "coupons_from_json",
    "order_to_row",
    "item_to_row",
    "order_from_row",
)
