"""
Cart reader — the checkout's view of a cart.

Lines are always joined to live product data; nothing the client
remembers about prices is trusted.
"""

from __future__ import annotations

from collections.abc import Sequence

from orderflow.domain import CartLine, RateItem, UserId
from orderflow.errors import ValidationError
from orderflow.stores import UnitOfWork


class CartReader:
    async def validate_checkoutable(self, uow: UnitOfWork, user_id: UserId) -> list[CartLine]:
        """
        Load and check the user's cart inside the caller's transaction.

        The product rows are locked so a concurrent checkout waits instead
        of reading stale stock.
        """
        lines = await uow.carts.get_items(user_id, lock=True)
        if not lines:
            raise ValidationError("O carrinho está vazio.")

        for line in lines:
            if not line.is_active:
                raise ValidationError(f'O produto "{line.name}" não está mais disponível.')
            if line.stock_quantity < line.quantity:
                raise ValidationError(f'Estoque insuficiente para o produto "{line.name}".')
        return lines

    async def hydrate_items(self, uow: UnitOfWork, items: Sequence[RateItem]) -> list[CartLine]:
        """Build lines for an explicit item list (guest simulation)."""
        products = await uow.products.get_many(item.product_id for item in items)

        lines: list[CartLine] = []
        for item in items:
            if item.quantity <= 0:
                raise ValidationError("A quantidade deve ser maior que zero.")
            product = products.get(item.product_id)
            if product is None or not product.is_active:
                raise ValidationError(f"O produto ID {item.product_id} não está disponível.")
            lines.append(CartLine.from_product(product, item.quantity))
        return lines


__all__ = ("CartReader",)
