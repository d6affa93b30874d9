"""
SQLAlchemy stores — one AsyncSession, no commits.

Each store only flushes; the owning unit of work decides whether the
transaction commits or rolls back.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from typing import Any, cast

from sqlalchemy import delete, func, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.db._mapping import (
    coupon_from_row,
    item_to_row,
    order_from_row,
    order_to_row,
    product_from_row,
)
from orderflow.db._tables import (
    CartItemTable,
    CartTable,
    CouponTable,
    OrderItemTable,
    OrderTable,
    ProductTable,
    utcnow,
)
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
    UserId,
)
from orderflow.errors import NotFoundError

# Orders in these states no longer count against coupon limits.
_RELEASED_STATUSES = (OrderStatus.CANCELED.value, OrderStatus.REFUNDED.value)


# ═══════════════════════════════════════════════════════════════════════════════
# Products
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyProductStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, product_id: ProductId) -> Product | None:
        row = await self.session.scalar(
            select(ProductTable)
            .where(ProductTable.id == product_id)
            .execution_options(populate_existing=True)
        )
        return product_from_row(row) if row is not None else None

    async def get_many(self, product_ids: Iterable[ProductId]) -> dict[ProductId, Product]:
        ids = list(set(product_ids))
        if not ids:
            return {}
        rows = await self.session.scalars(
            select(ProductTable)
            .where(ProductTable.id.in_(ids))
            .execution_options(populate_existing=True)
        )
        return {row.id: product_from_row(row) for row in rows}

    async def add(
        self,
        name: str,
        price_in_cents: int,
        stock_quantity: int,
        *,
        promotional_price_in_cents: int | None = None,
        minimum_price_in_cents: int = 0,
        is_active: bool = True,
    ) -> Product:
        row = ProductTable(
            name=name,
            price_in_cents=price_in_cents,
            stock_quantity=stock_quantity,
            promotional_price_in_cents=promotional_price_in_cents,
            minimum_price_in_cents=minimum_price_in_cents,
            is_active=is_active,
        )
        self.session.add(row)
        await self.session.flush()
        return product_from_row(row)

    async def decrement_stock(self, product_id: ProductId, quantity: int) -> bool:
        stmt = (
            update(ProductTable)
            .where(
                ProductTable.id == product_id,
                ProductTable.stock_quantity >= quantity,
            )
            .values(
                stock_quantity=ProductTable.stock_quantity - quantity,
                updated_at=utcnow(),
            )
        )
        result = cast(CursorResult[Any], await self.session.execute(stmt))
        return result.rowcount == 1

    async def increment_stock(self, product_id: ProductId, quantity: int) -> None:
        await self.session.execute(
            update(ProductTable)
            .where(ProductTable.id == product_id)
            .values(
                stock_quantity=ProductTable.stock_quantity + quantity,
                updated_at=utcnow(),
            )
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Carts
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyCartStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _cart_id(self, user_id: UserId, *, create: bool) -> int | None:
        cart_id = await self.session.scalar(
            select(CartTable.id).where(CartTable.user_id == user_id)
        )
        if cart_id is None and create:
            cart = CartTable(user_id=user_id)
            self.session.add(cart)
            await self.session.flush()
            cart_id = cart.id
        return cart_id

    async def _item(self, user_id: UserId, product_id: ProductId) -> CartItemTable | None:
        return await self.session.scalar(
            select(CartItemTable)
            .join(CartTable, CartTable.id == CartItemTable.cart_id)
            .where(
                CartTable.user_id == user_id,
                CartItemTable.product_id == product_id,
            )
        )

    async def get_items(self, user_id: UserId, *, lock: bool = False) -> list[CartLine]:
        stmt = (
            select(CartItemTable.quantity, ProductTable)
            .join(CartTable, CartTable.id == CartItemTable.cart_id)
            .join(ProductTable, ProductTable.id == CartItemTable.product_id)
            .where(CartTable.user_id == user_id)
            .order_by(CartItemTable.id)
            .execution_options(populate_existing=True)
        )
        if lock:
            stmt = stmt.with_for_update(of=ProductTable)

        rows = (await self.session.execute(stmt)).all()
        return [
            CartLine.from_product(product_from_row(product), quantity)
            for quantity, product in rows
        ]

    async def get_quantity(self, user_id: UserId, product_id: ProductId) -> int | None:
        item = await self._item(user_id, product_id)
        return item.quantity if item is not None else None

    async def set_quantity(self, user_id: UserId, product_id: ProductId, quantity: int) -> None:
        item = await self._item(user_id, product_id)
        if item is not None:
            item.quantity = quantity
            item.updated_at = utcnow()
        else:
            cart_id = await self._cart_id(user_id, create=True)
            self.session.add(
                CartItemTable(cart_id=cart_id, product_id=product_id, quantity=quantity)
            )
        await self.session.flush()

    async def remove(self, user_id: UserId, product_id: ProductId) -> bool:
        item = await self._item(user_id, product_id)
        if item is None:
            return False
        await self.session.delete(item)
        await self.session.flush()
        return True

    async def clear(self, user_id: UserId) -> int:
        cart_id = await self._cart_id(user_id, create=False)
        if cart_id is None:
            return 0
        result = cast(
            CursorResult[Any],
            await self.session.execute(
                delete(CartItemTable).where(CartItemTable.cart_id == cart_id)
            ),
        )
        return result.rowcount


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyCouponStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find_by_code(self, code: str) -> Coupon | None:
        row = await self.session.scalar(
            select(CouponTable).where(func.upper(CouponTable.code) == code.strip().upper())
        )
        return coupon_from_row(row) if row is not None else None

    async def add(self, draft: CouponDraft) -> Coupon:
        row = CouponTable(
            code=draft.code,
            description=draft.description,
            type=draft.type.value,
            discount_percentage=draft.discount_percentage,
            max_discount_in_cents=draft.max_discount_in_cents,
            min_purchase_value_in_cents=draft.min_purchase_value_in_cents,
            is_cumulative=draft.is_cumulative,
            usage_limit_per_user=draft.usage_limit_per_user,
            usage_limit_global=draft.usage_limit_global,
            expiration_date=draft.expiration_date,
            is_active=draft.is_active,
        )
        self.session.add(row)
        await self.session.flush()
        return coupon_from_row(row)

    async def _count_orders_using(self, coupon_id: CouponId, *conditions: Any) -> int:
        snapshots = await self.session.scalars(
            select(OrderTable.applied_coupons).where(
                OrderTable.status.not_in(_RELEASED_STATUSES),
                *conditions,
            )
        )
        return sum(
            1
            for applied in snapshots
            if any(int(entry.get("id", -1)) == coupon_id for entry in applied or ())
        )

    async def count_usage_by_user(self, coupon_id: CouponId, user_id: UserId) -> int:
        return await self._count_orders_using(coupon_id, OrderTable.user_id == user_id)

    async def count_usage_global(self, coupon_id: CouponId) -> int:
        return await self._count_orders_using(coupon_id)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyOrderStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _row(self, order_id: OrderId, *, lock: bool = False) -> OrderTable | None:
        stmt = (
            select(OrderTable)
            .where(OrderTable.id == order_id)
            .execution_options(populate_existing=True)
        )
        if lock:
            stmt = stmt.with_for_update()
        return await self.session.scalar(stmt)

    async def _require_row(self, order_id: OrderId) -> OrderTable:
        row = await self._row(order_id)
        if row is None:
            raise NotFoundError(f"Pedido {order_id} não encontrado.")
        return row

    async def _items(self, order_id: OrderId) -> list[OrderItemTable]:
        rows = await self.session.scalars(
            select(OrderItemTable)
            .where(OrderItemTable.order_id == order_id)
            .order_by(OrderItemTable.id)
        )
        return list(rows)

    async def add(self, order: Order) -> Order:
        row = order_to_row(order)
        self.session.add(row)
        await self.session.flush()

        items = [item_to_row(row.id, item) for item in order.items]
        self.session.add_all(items)
        await self.session.flush()
        return order_from_row(row, items)

    async def get(self, order_id: OrderId) -> Order | None:
        row = await self._row(order_id)
        if row is None:
            return None
        return order_from_row(row, await self._items(order_id))

    async def get_for_update(self, order_id: OrderId) -> Order | None:
        row = await self._row(order_id, lock=True)
        if row is None:
            return None
        return order_from_row(row, await self._items(order_id))

    async def list_for_user(self, user_id: UserId) -> list[Order]:
        rows = list(
            await self.session.scalars(
                select(OrderTable)
                .where(OrderTable.user_id == user_id)
                .order_by(OrderTable.created_at.desc(), OrderTable.id)
            )
        )
        if not rows:
            return []

        items: dict[str, list[OrderItemTable]] = defaultdict(list)
        for item in await self.session.scalars(
            select(OrderItemTable)
            .where(OrderItemTable.order_id.in_([row.id for row in rows]))
            .order_by(OrderItemTable.id)
        ):
            items[item.order_id].append(item)

        return [order_from_row(row, items[row.id]) for row in rows]

    async def save_status(
        self,
        order_id: OrderId,
        status: OrderStatus,
        *,
        tracking_code: str | None = None,
    ) -> Order:
        row = await self._require_row(order_id)
        row.status = status.value
        if tracking_code is not None:
            row.tracking_code = tracking_code
        row.updated_at = utcnow()
        await self.session.flush()
        return order_from_row(row, await self._items(order_id))

    async def save_payment_info(
        self,
        order_id: OrderId,
        gateway_id: str,
        gateway_data: Mapping[str, Any],
    ) -> Order:
        row = await self._require_row(order_id)
        row.payment_gateway_id = gateway_id
        row.gateway_data = dict(gateway_data)
        row.updated_at = utcnow()
        await self.session.flush()
        return order_from_row(row, await self._items(order_id))


__all__ = (
    "SQLAlchemyProductStore",
    "SQLAlchemyCartStore",
    "SQLAlchemyCouponStore",
    "SQLAlchemyOrderStore",
)
