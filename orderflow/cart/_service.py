"""
Cart service — line maintenance for a user's stored cart.

All methods run inside the caller's unit of work and leave committing
to it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from orderflow.domain import Cart, ProductId, RateItem, UserId
from orderflow.errors import NotFoundError, ValidationError
from orderflow.stores import UnitOfWork

logger = logging.getLogger(__name__)


def _require_positive(quantity: int) -> None:
    if quantity <= 0:
        raise ValidationError("A quantidade deve ser maior que zero.")


class CartService:
    async def get_cart(self, uow: UnitOfWork, user_id: UserId) -> Cart:
        return Cart(user_id=user_id, lines=tuple(await uow.carts.get_items(user_id)))

    async def add_item(
        self,
        uow: UnitOfWork,
        user_id: UserId,
        product_id: ProductId,
        quantity: int,
    ) -> Cart:
        _require_positive(quantity)
        if await uow.products.get(product_id) is None:
            raise NotFoundError(f"Produto {product_id} não encontrado.")

        current = await uow.carts.get_quantity(user_id, product_id) or 0
        await uow.carts.set_quantity(user_id, product_id, current + quantity)
        return await self.get_cart(uow, user_id)

    async def update_item_quantity(
        self,
        uow: UnitOfWork,
        user_id: UserId,
        product_id: ProductId,
        quantity: int,
    ) -> Cart:
        _require_positive(quantity)
        if await uow.carts.get_quantity(user_id, product_id) is None:
            raise NotFoundError("Item não encontrado no carrinho.")

        await uow.carts.set_quantity(user_id, product_id, quantity)
        return await self.get_cart(uow, user_id)

    async def remove_item(self, uow: UnitOfWork, user_id: UserId, product_id: ProductId) -> Cart:
        if not await uow.carts.remove(user_id, product_id):
            raise NotFoundError("Item não encontrado no carrinho.")
        return await self.get_cart(uow, user_id)

    async def sync_local_cart(
        self,
        uow: UnitOfWork,
        user_id: UserId,
        items: Sequence[RateItem],
    ) -> Cart:
        """
        Merge a cart kept client-side before login into the stored cart.

        Quantities add up per product. Non-positive quantities and unknown
        products are skipped.
        """
        products = await uow.products.get_many(item.product_id for item in items)

        merged = 0
        for item in items:
            if item.quantity <= 0 or item.product_id not in products:
                continue
            current = await uow.carts.get_quantity(user_id, item.product_id) or 0
            await uow.carts.set_quantity(user_id, item.product_id, current + item.quantity)
            merged += 1

        if merged:
            logger.info("Merged %d local cart line(s) for %s", merged, user_id)
        return await self.get_cart(uow, user_id)

    async def clear(self, uow: UnitOfWork, user_id: UserId) -> Cart:
        await uow.carts.clear(user_id)
        return Cart(user_id=user_id)


__all__ = ("CartService",)
