"""
Database tables — SQLAlchemy declarative models.

Money columns are integer cents. Address, shipping details, applied
coupons and gateway metadata are JSON snapshots on the order row.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(UTC)


# ═══════════════════════════════════════════════════════════════════════════════
# Base
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


class ProductTable(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price_in_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    promotional_price_in_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    minimum_price_in_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


class CartTable(Base):
    __tablename__ = "carts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class CartItemTable(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
        CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cart_id: Mapped[int] = mapped_column(ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════


class CouponTable(Base):
    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint(
            "discount_percentage > 0 AND discount_percentage <= 100",
            name="ck_coupons_percentage_range",
        ),
        CheckConstraint("type IN ('subtotal', 'shipping')", name="ck_coupons_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="subtotal")
    discount_percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    max_discount_in_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    min_purchase_value_in_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_cumulative: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    usage_limit_per_user: Mapped[int | None] = mapped_column(Integer, nullable=True, default=1)
    usage_limit_global: Mapped[int | None] = mapped_column(Integer, nullable=True)
    expiration_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderTable(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'paid', 'shipped', 'delivered', 'canceled', 'refunded')",
            name="ck_orders_status",
        ),
    )

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Financial snapshot
    subtotal_in_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    shipping_cost_in_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    discount_in_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_in_cents: Mapped[int] = mapped_column(Integer, nullable=False)

    payment_method: Mapped[str] = mapped_column(String(50), nullable=False)
    shipping_method: Mapped[str] = mapped_column(String(50), nullable=False)
    shipping_address_snapshot: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    shipping_details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    applied_coupons: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending", index=True)

    # Lifecycle metadata
    payment_gateway_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    gateway_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    tracking_code: Mapped[str | None] = mapped_column(String(100), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


class OrderItemTable(Base):
    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    product_name_snapshot: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_in_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    total_in_cents: Mapped[int] = mapped_column(Integer, nullable=False)


__all__ = (
    "Base",
    "ProductTable",
    "CartTable",
    "CartItemTable",
    "CouponTable",
    "OrderTable",
    "OrderItemTable",
    "utcnow",
)
