"""
Order lifecycle — post-creation state changes.

    pending ──► paid ──► shipped ──► delivered
       │          │
       └──────────┴──► canceled        paid ──► refunded

Cancellation restores stock and is idempotent. Every transition locks
the order row first.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from orderflow.domain import Order, OrderId, OrderStatus, UserId
from orderflow.errors import NotFoundError, ServiceError, ValidationError
from orderflow.stores import UnitOfWork, UnitOfWorkFactory

logger = logging.getLogger(__name__)

# Gateway vocabulary that differs from ours.
_GATEWAY_STATUS_ALIASES = {
    "approved": OrderStatus.PAID,
    "cancelled": OrderStatus.CANCELED,
}


def parse_gateway_status(value: str) -> OrderStatus:
    normalized = value.strip().lower()
    if normalized in _GATEWAY_STATUS_ALIASES:
        return _GATEWAY_STATUS_ALIASES[normalized]
    try:
        return OrderStatus(normalized)
    except ValueError:
        raise ValidationError(f'Status de pagamento "{value}" desconhecido.') from None


class OrderLifecycle:
    def __init__(self, unit_of_work: UnitOfWorkFactory) -> None:
        self.unit_of_work = unit_of_work

    # ─────────────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────────────

    async def find_by_id(self, order_id: OrderId) -> Order:
        async with self.unit_of_work() as uow:
            order = await uow.orders.get(order_id)
        if order is None:
            raise NotFoundError(f"Pedido {order_id} não encontrado.")
        return order

    async def list_for_user(self, user_id: UserId) -> list[Order]:
        async with self.unit_of_work() as uow:
            return await uow.orders.list_for_user(user_id)

    # ─────────────────────────────────────────────────────────────────────────
    # Transitions
    # ─────────────────────────────────────────────────────────────────────────

    async def cancel(self, order_id: OrderId) -> Order:
        async with self.unit_of_work() as uow:
            order = await self._locked(uow, order_id)
            if order.status is OrderStatus.CANCELED:
                return order

            canceled = await self._cancel_locked(uow, order)
            await uow.commit()

        logger.info("Order %s canceled, stock restored", order_id)
        return canceled

    async def update_payment_info(
        self,
        order_id: OrderId,
        gateway_id: str,
        gateway_data: Mapping[str, Any],
        gateway_status: str | None = None,
    ) -> Order:
        """
        Record a payment notification.

        Gateway metadata is merged into what the order already holds. A
        status, when given, moves the order through the state machine; a
        cancellation goes through the restocking path.
        """
        target = parse_gateway_status(gateway_status) if gateway_status else None

        async with self.unit_of_work() as uow:
            order = await self._locked(uow, order_id)
            order = await uow.orders.save_payment_info(
                order.id, gateway_id, {**order.gateway_data, **gateway_data}
            )

            if target is not None and target is not order.status:
                if target is OrderStatus.CANCELED:
                    order = await self._cancel_locked(uow, order)
                else:
                    order = await self._advance(uow, order, target)
            await uow.commit()

        logger.info(
            "Payment info for order %s updated (gateway=%s, status=%s)",
            order_id,
            gateway_id,
            order.status.value,
        )
        return order

    async def mark_as_shipped(self, order_id: OrderId, tracking_code: str) -> Order:
        if not tracking_code or not tracking_code.strip():
            raise ValidationError("O código de rastreio é obrigatório para pedidos enviados.")

        async with self.unit_of_work() as uow:
            order = await self._locked(uow, order_id)
            order = await self._advance(
                uow, order, OrderStatus.SHIPPED, tracking_code=tracking_code.strip()
            )
            await uow.commit()

        logger.info("Order %s shipped (tracking %s)", order_id, order.tracking_code)
        return order

    async def mark_as_delivered(self, order_id: OrderId) -> Order:
        async with self.unit_of_work() as uow:
            order = await self._locked(uow, order_id)
            order = await self._advance(uow, order, OrderStatus.DELIVERED)
            await uow.commit()

        logger.info("Order %s delivered", order_id)
        return order

    # ─────────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────────

    async def _locked(self, uow: UnitOfWork, order_id: OrderId) -> Order:
        order = await uow.orders.get_for_update(order_id)
        if order is None:
            raise NotFoundError(f"Pedido {order_id} não encontrado.")
        return order

    async def _cancel_locked(self, uow: UnitOfWork, order: Order) -> Order:
        if not order.status.can_transition_to(OrderStatus.CANCELED):
            raise ServiceError(
                f'Pedidos com status "{order.status.value}" não podem ser cancelados.'
            )

        for item in order.items:
            await uow.products.increment_stock(item.product_id, item.quantity)
        return await uow.orders.save_status(order.id, OrderStatus.CANCELED)

    async def _advance(
        self,
        uow: UnitOfWork,
        order: Order,
        target: OrderStatus,
        *,
        tracking_code: str | None = None,
    ) -> Order:
        if not order.status.can_transition_to(target):
            raise ServiceError(
                f'Não é possível alterar o pedido de "{order.status.value}" para "{target.value}".'
            )
        return await uow.orders.save_status(order.id, target, tracking_code=tracking_code)


__all__ = ("OrderLifecycle", "parse_gateway_status")
