"""
Order orchestration — cart to persisted order in one transaction.

    validate cart ─► recalculate shipping ─► validate coupons ─► price
          │
          └─► reserve stock ─► insert order + items ─► clear cart ─► commit

Any failure rolls the whole unit of work back: no partial stock
decrement, no orphaned order, and the cart stays intact for a retry.
Simulation runs the same pricing path and never writes.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Sequence

from orderflow.cart import CartReader
from orderflow.coupons import CouponValidator
from orderflow.domain import (
    SIMULATION_USER,
    CartLine,
    Order,
    OrderId,
    OrderItem,
    OrderStatus,
    RateItem,
    ShippingAddress,
    Simulation,
    Totals,
    UserId,
)
from orderflow.errors import OrderFlowError, ValidationError
from orderflow.pricing import calculate_totals
from orderflow.shipping import ShippingRecalculator
from orderflow.stores import UnitOfWork, UnitOfWorkFactory

logger = logging.getLogger(__name__)


def new_order_id() -> OrderId:
    return f"ord_{uuid.uuid4().hex[:12]}"


def _require(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"O campo {field} é obrigatório.")
    return value.strip()


class OrderOrchestrator:
    def __init__(
        self,
        unit_of_work: UnitOfWorkFactory,
        shipping: ShippingRecalculator,
        *,
        coupons: CouponValidator | None = None,
        cart: CartReader | None = None,
    ) -> None:
        self.unit_of_work = unit_of_work
        self.shipping = shipping
        self.coupons = coupons or CouponValidator()
        self.cart = cart or CartReader()

    # ─────────────────────────────────────────────────────────────────────────
    # Checkout
    # ─────────────────────────────────────────────────────────────────────────

    async def create_from_cart(
        self,
        user_id: UserId,
        payment_method: str,
        shipping_address: ShippingAddress,
        shipping_method: str,
        coupon_codes: Iterable[str | None] = (),
    ) -> Order:
        payment_method = _require(payment_method, "payment_method")
        shipping_method = _require(shipping_method, "shipping_method")

        try:
            async with self.unit_of_work() as uow:
                order = await self._checkout(
                    uow, user_id, payment_method, shipping_address, shipping_method, coupon_codes
                )
                await uow.commit()
        except OrderFlowError as exc:
            logger.warning("Checkout for %s rolled back: %s", user_id, exc.message)
            raise

        logger.info(
            "Order %s created for %s: total=%d discount=%d coupons=%s",
            order.id,
            user_id,
            order.total_in_cents,
            order.discount_in_cents,
            [c.code for c in order.applied_coupons],
        )
        return order

    async def _checkout(
        self,
        uow: UnitOfWork,
        user_id: UserId,
        payment_method: str,
        shipping_address: ShippingAddress,
        shipping_method: str,
        coupon_codes: Iterable[str | None],
    ) -> Order:
        lines = await self.cart.validate_checkoutable(uow, user_id)
        quote = await self.shipping.recalculate(lines, shipping_address, shipping_method)

        subtotal = sum(line.total_in_cents for line in lines)
        coupons = await self.coupons.validate_multiple(uow, coupon_codes, user_id, subtotal)
        totals = calculate_totals(lines, quote.cost_in_cents, coupons)

        for line in lines:
            if not await uow.products.decrement_stock(line.product_id, line.quantity):
                raise ValidationError(f'Estoque insuficiente para o produto "{line.name}".')

        order = await uow.orders.add(
            Order(
                id=new_order_id(),
                user_id=user_id,
                status=OrderStatus.PENDING,
                subtotal_in_cents=totals.subtotal_in_cents,
                shipping_cost_in_cents=totals.shipping_cost_in_cents,
                discount_in_cents=totals.discount_in_cents,
                total_in_cents=totals.total_in_cents,
                payment_method=payment_method,
                shipping_method=quote.details.type,
                shipping_address=shipping_address,
                shipping_details=quote.details,
                applied_coupons=totals.applied_coupons,
                items=tuple(OrderItem.from_line(line) for line in lines),
            )
        )
        await uow.carts.clear(user_id)
        return order

    # ─────────────────────────────────────────────────────────────────────────
    # Simulation
    # ─────────────────────────────────────────────────────────────────────────

    async def simulate(
        self,
        user_id: UserId | None,
        shipping_address: ShippingAddress,
        shipping_method: str,
        coupon_codes: Iterable[str | None] = (),
        items: Sequence[RateItem] | None = None,
    ) -> Simulation:
        """
        Price a prospective order without writing anything.

        Explicit `items` take precedence over the stored cart. Without a
        user the per-user coupon limits are not consulted.
        """
        async with self.unit_of_work() as uow:
            lines = await self._simulation_lines(uow, user_id, items)
            if not lines:
                return Simulation(Totals.zero(), None)

            quote = await self.shipping.recalculate(lines, shipping_address, shipping_method)
            subtotal = sum(line.total_in_cents for line in lines)
            coupons = await self.coupons.validate_multiple(
                uow,
                coupon_codes,
                user_id or SIMULATION_USER,
                subtotal,
                check_user_limit=user_id is not None,
            )
            totals = calculate_totals(lines, quote.cost_in_cents, coupons)
            await uow.rollback()

        return Simulation(totals, quote.details)

    async def _simulation_lines(
        self,
        uow: UnitOfWork,
        user_id: UserId | None,
        items: Sequence[RateItem] | None,
    ) -> list[CartLine]:
        if items:
            return await self.cart.hydrate_items(uow, items)
        if user_id is None:
            return []
        return await uow.carts.get_items(user_id)


__all__ = ("OrderOrchestrator", "new_order_id")
