"""
Stores — typed collaborator protocols.

The engine depends only on these. `orderflow.db` ships SQLAlchemy
implementations bound to one AsyncSession; tests may substitute their own.

Every store method runs inside the caller's unit of work, so a single
checkout sees one consistent transaction across all four stores.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from orderflow.domain import (
    CartLine,
    Coupon,
    CouponDraft,
    CouponId,
    Order,
    OrderId,
    OrderStatus,
    Product,
    ProductId,
    RateItem,
    ShippingOption,
    UserId,
)


# ═══════════════════════════════════════════════════════════════════════════════
# Catalog
# ═══════════════════════════════════════════════════════════════════════════════


class ProductStore(Protocol):
    async def get(self, product_id: ProductId) -> Product | None: ...

    async def get_many(self, product_ids: Iterable[ProductId]) -> dict[ProductId, Product]: ...

    async def add(
        self,
        name: str,
        price_in_cents: int,
        stock_quantity: int,
        *,
        promotional_price_in_cents: int | None = None,
        minimum_price_in_cents: int = 0,
        is_active: bool = True,
    ) -> Product: ...

    async def decrement_stock(self, product_id: ProductId, quantity: int) -> bool:
        """
        Guarded decrement. Returns False when stock is below `quantity`,
        leaving the row untouched.
        """
        ...

    async def increment_stock(self, product_id: ProductId, quantity: int) -> None: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


class CartStore(Protocol):
    async def get_items(self, user_id: UserId, *, lock: bool = False) -> list[CartLine]:
        """Cart lines joined to live product data, oldest first."""
        ...

    async def get_quantity(self, user_id: UserId, product_id: ProductId) -> int | None: ...

    async def set_quantity(self, user_id: UserId, product_id: ProductId, quantity: int) -> None: ...

    async def remove(self, user_id: UserId, product_id: ProductId) -> bool: ...

    async def clear(self, user_id: UserId) -> int: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════


class CouponStore(Protocol):
    async def find_by_code(self, code: str) -> Coupon | None:
        """Case-insensitive lookup."""
        ...

    async def add(self, draft: CouponDraft) -> Coupon:
        """Insert; the returned coupon carries the assigned id."""
        ...

    async def count_usage_by_user(self, coupon_id: CouponId, user_id: UserId) -> int: ...

    async def count_usage_global(self, coupon_id: CouponId) -> int: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderStore(Protocol):
    async def add(self, order: Order) -> Order: ...

    async def get(self, order_id: OrderId) -> Order | None: ...

    async def get_for_update(self, order_id: OrderId) -> Order | None:
        """Fetch and lock the order row until the transaction ends."""
        ...

    async def list_for_user(self, user_id: UserId) -> list[Order]: ...

    async def save_status(
        self,
        order_id: OrderId,
        status: OrderStatus,
        *,
        tracking_code: str | None = None,
    ) -> Order: ...

    async def save_payment_info(
        self,
        order_id: OrderId,
        gateway_id: str,
        gateway_data: Mapping[str, Any],
    ) -> Order: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Shipping
# ═══════════════════════════════════════════════════════════════════════════════


class ShippingRateOracle(Protocol):
    async def quote(self, postal_code: str, items: Sequence[RateItem]) -> list[ShippingOption]: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Unit of Work
# ═══════════════════════════════════════════════════════════════════════════════


class UnitOfWork(Protocol):
    """One transaction with every store bound to it."""

    products: ProductStore
    carts: CartStore
    coupons: CouponStore
    orders: OrderStore

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


class UnitOfWorkFactory(Protocol):
    def __call__(self) -> AbstractAsyncContextManager[UnitOfWork]: ...


__all__ = (
    "ProductStore",
    "CartStore",
    "CouponStore",
    "OrderStore",
    "ShippingRateOracle",
    "UnitOfWork",
    "UnitOfWorkFactory",
)
