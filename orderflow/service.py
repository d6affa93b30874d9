"""
OrderFlow — the public operation surface.

Wires the stores, oracle and components together and exposes one
coroutine per operation. Each call runs in its own unit of work.

    flow = await OrderFlow.from_settings(Settings.from_env())
    order = await flow.checkout("user-1", "pix", address, "PAC", ["PROMO10"])
    await flow.cancel_order(order.id)
    await flow.aclose()
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from orderflow.cart import CartService
from orderflow.config import Settings
from orderflow.coupons import CouponValidator, create_coupon
from orderflow.db import SQLAlchemyUnitOfWorkFactory, create_database
from orderflow.domain import (
    Cart,
    Coupon,
    CouponDraft,
    Order,
    OrderId,
    Product,
    ProductId,
    RateItem,
    ShippingAddress,
    Simulation,
    UserId,
)
from orderflow.orders import OrderLifecycle, OrderOrchestrator
from orderflow.shipping import FlatRateOracle, HTTPRateOracle, ShippingRecalculator
from orderflow.stores import ShippingRateOracle, UnitOfWork, UnitOfWorkFactory

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class OrderFlow:
    unit_of_work: UnitOfWorkFactory
    oracle: ShippingRateOracle
    orchestrator: OrderOrchestrator
    lifecycle: OrderLifecycle
    carts: CartService
    engine: AsyncEngine | None = None

    @classmethod
    def build(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        oracle: ShippingRateOracle,
        *,
        shipping_timeout: float | None = 10.0,
        coupons: CouponValidator | None = None,
        engine: AsyncEngine | None = None,
    ) -> OrderFlow:
        unit_of_work = SQLAlchemyUnitOfWorkFactory(session_factory)
        return cls(
            unit_of_work=unit_of_work,
            oracle=oracle,
            orchestrator=OrderOrchestrator(
                unit_of_work,
                ShippingRecalculator(oracle, timeout=shipping_timeout),
                coupons=coupons,
            ),
            lifecycle=OrderLifecycle(unit_of_work),
            carts=CartService(),
            engine=engine,
        )

    @classmethod
    async def from_settings(cls, settings: Settings) -> OrderFlow:
        session_factory, engine = await create_database(
            settings.database_url, echo=settings.echo_sql
        )
        oracle: ShippingRateOracle
        if settings.shipping_url:
            oracle = HTTPRateOracle(settings.shipping_url, timeout=settings.shipping_timeout)
        else:
            logger.info("ORDERFLOW_SHIPPING_URL not set, using flat shipping rates")
            oracle = FlatRateOracle()
        return cls.build(
            session_factory,
            oracle,
            shipping_timeout=settings.shipping_timeout,
            engine=engine,
        )

    async def aclose(self) -> None:
        if isinstance(self.oracle, HTTPRateOracle):
            await self.oracle.aclose()
        if self.engine is not None:
            await self.engine.dispose()

    async def _write(self, operation: Callable[[UnitOfWork], Awaitable[T]]) -> T:
        async with self.unit_of_work() as uow:
            result = await operation(uow)
            await uow.commit()
        return result

    # ═══════════════════════════════════════════════════════════════════════════
    # Checkout
    # ═══════════════════════════════════════════════════════════════════════════

    async def checkout(
        self,
        user_id: UserId,
        payment_method: str,
        shipping_address: ShippingAddress,
        shipping_method: str,
        coupon_codes: Iterable[str | None] = (),
    ) -> Order:
        return await self.orchestrator.create_from_cart(
            user_id, payment_method, shipping_address, shipping_method, coupon_codes
        )

    async def simulate_checkout(
        self,
        user_id: UserId | None,
        shipping_address: ShippingAddress,
        shipping_method: str,
        coupon_codes: Iterable[str | None] = (),
        items: Sequence[RateItem] | None = None,
    ) -> Simulation:
        return await self.orchestrator.simulate(
            user_id, shipping_address, shipping_method, coupon_codes, items
        )

    # ═══════════════════════════════════════════════════════════════════════════
    # Orders
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_order(self, order_id: OrderId) -> Order:
        return await self.lifecycle.find_by_id(order_id)

    async def list_orders(self, user_id: UserId) -> list[Order]:
        return await self.lifecycle.list_for_user(user_id)

    async def cancel_order(self, order_id: OrderId) -> Order:
        return await self.lifecycle.cancel(order_id)

    async def update_payment_info(
        self,
        order_id: OrderId,
        gateway_id: str,
        gateway_data: Mapping[str, Any],
        gateway_status: str | None = None,
    ) -> Order:
        return await self.lifecycle.update_payment_info(
            order_id, gateway_id, gateway_data, gateway_status
        )

    async def mark_as_shipped(self, order_id: OrderId, tracking_code: str) -> Order:
        return await self.lifecycle.mark_as_shipped(order_id, tracking_code)

    async def mark_as_delivered(self, order_id: OrderId) -> Order:
        return await self.lifecycle.mark_as_delivered(order_id)

    # ═══════════════════════════════════════════════════════════════════════════
    # Cart
    # ═══════════════════════════════════════════════════════════════════════════

    async def get_cart(self, user_id: UserId) -> Cart:
        async with self.unit_of_work() as uow:
            return await self.carts.get_cart(uow, user_id)

    async def add_to_cart(self, user_id: UserId, product_id: ProductId, quantity: int) -> Cart:
        return await self._write(lambda uow: self.carts.add_item(uow, user_id, product_id, quantity))

    async def update_cart_item(self, user_id: UserId, product_id: ProductId, quantity: int) -> Cart:
        return await self._write(
            lambda uow: self.carts.update_item_quantity(uow, user_id, product_id, quantity)
        )

    async def remove_from_cart(self, user_id: UserId, product_id: ProductId) -> Cart:
        return await self._write(lambda uow: self.carts.remove_item(uow, user_id, product_id))

    async def sync_cart(self, user_id: UserId, items: Sequence[RateItem]) -> Cart:
        return await self._write(lambda uow: self.carts.sync_local_cart(uow, user_id, items))

    async def clear_cart(self, user_id: UserId) -> Cart:
        return await self._write(lambda uow: self.carts.clear(uow, user_id))

    # ═══════════════════════════════════════════════════════════════════════════
    # Catalog / Coupons
    # ═══════════════════════════════════════════════════════════════════════════

    async def create_coupon(self, draft: CouponDraft) -> Coupon:
        return await self._write(lambda uow: create_coupon(uow, draft))

    async def create_product(
        self,
        name: str,
        price_in_cents: int,
        stock_quantity: int,
        *,
        promotional_price_in_cents: int | None = None,
        minimum_price_in_cents: int = 0,
        is_active: bool = True,
    ) -> Product:
        return await self._write(
            lambda uow: uow.products.add(
                name,
                price_in_cents,
                stock_quantity,
                promotional_price_in_cents=promotional_price_in_cents,
                minimum_price_in_cents=minimum_price_in_cents,
                is_active=is_active,
            )
        )

    async def get_product(self, product_id: ProductId) -> Product | None:
        async with self.unit_of_work() as uow:
            return await uow.products.get(product_id)


__all__ = ("OrderFlow",)
