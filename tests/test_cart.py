"""Tests for cart maintenance and the checkout cart reader."""

import pytest

from orderflow import NotFoundError, RateItem, ValidationError
from orderflow.cart import CartReader


class TestCartService:
    async def test_empty_cart(self, flow):
        cart = await flow.get_cart("user-1")

        assert cart.is_empty
        assert cart.total_in_cents == 0

    async def test_add_item(self, flow, make_product):
        product = await make_product(price_in_cents=2500)

        cart = await flow.add_to_cart("user-1", product.id, 2)

        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 2
        assert cart.lines[0].total_in_cents == 5000
        assert cart.total_in_cents == 5000

    async def test_add_merges_quantities(self, flow, make_product):
        product = await make_product()

        await flow.add_to_cart("user-1", product.id, 1)
        cart = await flow.add_to_cart("user-1", product.id, 3)

        assert [line.quantity for line in cart.lines] == [4]

    async def test_promotional_price_wins(self, flow, make_product):
        product = await make_product(price_in_cents=5000, promotional_price_in_cents=3990)

        cart = await flow.add_to_cart("user-1", product.id, 1)

        assert cart.lines[0].unit_price_in_cents == 3990

    @pytest.mark.parametrize("quantity", [0, -1])
    async def test_add_rejects_non_positive_quantity(self, flow, make_product, quantity):
        product = await make_product()

        with pytest.raises(ValidationError):
            await flow.add_to_cart("user-1", product.id, quantity)

    async def test_add_unknown_product(self, flow):
        with pytest.raises(NotFoundError):
            await flow.add_to_cart("user-1", 999, 1)

    async def test_update_quantity(self, flow, make_product):
        product = await make_product()
        await flow.add_to_cart("user-1", product.id, 1)

        cart = await flow.update_cart_item("user-1", product.id, 5)

        assert cart.lines[0].quantity == 5

    async def test_update_missing_line(self, flow, make_product):
        product = await make_product()

        with pytest.raises(NotFoundError):
            await flow.update_cart_item("user-1", product.id, 2)

    async def test_update_rejects_zero(self, flow, make_product):
        product = await make_product()
        await flow.add_to_cart("user-1", product.id, 1)

        with pytest.raises(ValidationError):
            await flow.update_cart_item("user-1", product.id, 0)

    async def test_remove_item(self, flow, make_product):
        keep = await make_product("Caneca")
        drop = await make_product("Boné")
        await flow.add_to_cart("user-1", keep.id, 1)
        await flow.add_to_cart("user-1", drop.id, 1)

        cart = await flow.remove_from_cart("user-1", drop.id)

        assert [line.name for line in cart.lines] == ["Caneca"]

    async def test_remove_missing_line(self, flow, make_product):
        product = await make_product()

        with pytest.raises(NotFoundError):
            await flow.remove_from_cart("user-1", product.id)

    async def test_carts_are_per_user(self, flow, make_product):
        product = await make_product()
        await flow.add_to_cart("user-1", product.id, 1)

        assert (await flow.get_cart("user-2")).is_empty

    async def test_sync_local_cart(self, flow, make_product):
        first = await make_product("Caneca")
        second = await make_product("Boné")
        await flow.add_to_cart("user-1", first.id, 1)

        cart = await flow.sync_cart(
            "user-1",
            [
                RateItem(first.id, 2),
                RateItem(second.id, 1),
                RateItem(second.id, 0),
                RateItem(999, 4),
            ],
        )

        assert {line.name: line.quantity for line in cart.lines} == {"Caneca": 3, "Boné": 1}

    async def test_clear(self, flow, make_product):
        product = await make_product()
        await flow.add_to_cart("user-1", product.id, 1)

        await flow.clear_cart("user-1")

        assert (await flow.get_cart("user-1")).is_empty


class TestCartReader:
    async def test_empty_cart_is_rejected(self, flow):
        async with flow.unit_of_work() as uow:
            with pytest.raises(ValidationError, match="vazio"):
                await CartReader().validate_checkoutable(uow, "user-1")

    async def test_inactive_product_is_named(self, flow, make_product):
        product = await make_product("Relógio", is_active=False)
        await flow.add_to_cart("user-1", product.id, 1)

        async with flow.unit_of_work() as uow:
            with pytest.raises(ValidationError, match="Relógio"):
                await CartReader().validate_checkoutable(uow, "user-1")

    async def test_insufficient_stock(self, flow, make_product):
        product = await make_product("Caneca", stock_quantity=1)
        await flow.add_to_cart("user-1", product.id, 2)

        async with flow.unit_of_work() as uow:
            with pytest.raises(ValidationError, match="Estoque insuficiente"):
                await CartReader().validate_checkoutable(uow, "user-1")

    async def test_lines_carry_live_prices(self, flow, make_product):
        product = await make_product(price_in_cents=5000, minimum_price_in_cents=4000)
        await flow.add_to_cart("user-1", product.id, 2)

        async with flow.unit_of_work() as uow:
            lines = await CartReader().validate_checkoutable(uow, "user-1")

        assert lines[0].unit_price_in_cents == 5000
        assert lines[0].minimum_total_in_cents == 8000

    async def test_hydrate_items(self, flow, make_product):
        product = await make_product(price_in_cents=1500)

        async with flow.unit_of_work() as uow:
            lines = await CartReader().hydrate_items(uow, [RateItem(product.id, 3)])

        assert lines[0].total_in_cents == 4500

    async def test_hydrate_rejects_unavailable(self, flow, make_product):
        product = await make_product(is_active=False)

        async with flow.unit_of_work() as uow:
            with pytest.raises(ValidationError, match=f"ID {product.id}"):
                await CartReader().hydrate_items(uow, [RateItem(product.id, 1)])

            with pytest.raises(ValidationError, match="ID 999"):
                await CartReader().hydrate_items(uow, [RateItem(999, 1)])
