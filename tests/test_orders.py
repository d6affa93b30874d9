"""Tests for checkout orchestration and simulation."""

import pytest
from sqlalchemy import func, select

from orderflow import (
    SIMULATION_USER,
    CouponDraft,
    CouponType,
    NotFoundError,
    OrderFlow,
    OrderStatus,
    RateItem,
    ServiceError,
    ShippingAddress,
    ValidationError,
)
from orderflow.db import OrderTable, SQLAlchemyUnitOfWorkFactory
from orderflow.orders import new_order_id
from orderflow.shipping import DEFAULT_OPTIONS, FlatRateOracle


async def count_orders(flow):
    async with flow.unit_of_work() as uow:
        return await uow.session.scalar(select(func.count()).select_from(OrderTable))


class DrainingOracle:
    """Quotes normally, but a concurrent buyer empties the stock meanwhile."""

    def __init__(self, session_factory, rates):
        self.unit_of_work = SQLAlchemyUnitOfWorkFactory(session_factory)
        self.rates = FlatRateOracle(rates)

    async def quote(self, postal_code, items):
        async with self.unit_of_work() as uow:
            for item in items:
                assert await uow.products.decrement_stock(item.product_id, item.quantity)
            await uow.commit()
        return await self.rates.quote(postal_code, items)


def test_order_ids_are_prefixed_and_unique():
    first, second = new_order_id(), new_order_id()

    assert first.startswith("ord_")
    assert len(first) == len("ord_") + 12
    assert first != second


class TestCheckout:
    async def test_creates_order_from_cart(self, flow, make_product, address, stock_of):
        product = await make_product("Camiseta", price_in_cents=5000, stock_quantity=10)
        await flow.add_to_cart("user-1", product.id, 2)

        order = await flow.checkout("user-1", "pix", address, "PAC")

        assert order.status is OrderStatus.PENDING
        assert order.subtotal_in_cents == 10000
        assert order.shipping_cost_in_cents == 1000
        assert order.discount_in_cents == 0
        assert order.total_in_cents == 11000
        assert order.shipping_method == "PAC"
        assert order.shipping_details.carrier == "Correios"
        assert order.shipping_address.postal_code == "01001-000"
        assert [(i.product_name_snapshot, i.quantity, i.total_in_cents) for i in order.items] == [
            ("Camiseta", 2, 10000)
        ]
        assert await stock_of(product.id) == 8
        assert (await flow.get_cart("user-1")).is_empty

    async def test_coupon_discount_on_subtotal(self, flow, make_product, make_coupon, address):
        product = await make_product(price_in_cents=5000)
        await make_coupon("PROMO10", 10)
        await flow.add_to_cart("user-1", product.id, 2)

        order = await flow.checkout("user-1", "pix", address, "PAC", ["promo10"])

        assert order.discount_in_cents == 1000
        assert order.total_in_cents == 10000
        assert [(c.code, c.discount_in_cents) for c in order.applied_coupons] == [("PROMO10", 1000)]

    async def test_order_is_persisted(self, flow, make_product, make_coupon, address):
        product = await make_product()
        await make_coupon("FRETE", 50, type=CouponType.SHIPPING)
        await flow.add_to_cart("user-1", product.id, 1)

        created = await flow.checkout("user-1", "credit_card", address, "sedex", ["FRETE"])
        loaded = await flow.get_order(created.id)

        assert loaded == created
        assert loaded.shipping_cost_in_cents == 2500
        assert loaded.discount_in_cents == 1250
        assert loaded.created_at is not None

    async def test_shipping_price_comes_from_oracle(self, flow, make_product, address):
        product = await make_product(price_in_cents=3000)
        await flow.add_to_cart("user-1", product.id, 1)

        order = await flow.checkout("user-1", "pix", address, "pickup")

        assert order.shipping_cost_in_cents == 0
        assert order.shipping_method == "PICKUP"
        assert order.total_in_cents == 3000

    async def test_empty_cart(self, flow, address):
        with pytest.raises(ValidationError, match="vazio"):
            await flow.checkout("user-1", "pix", address, "PAC")

    async def test_payment_method_required(self, flow, make_product, address):
        product = await make_product()
        await flow.add_to_cart("user-1", product.id, 1)

        with pytest.raises(ValidationError):
            await flow.checkout("user-1", "  ", address, "PAC")

    async def test_inactive_product_leaves_everything_untouched(
        self, flow, make_product, address, stock_of
    ):
        active = await make_product("Caneca", stock_quantity=5)
        retired = await make_product("Relógio", stock_quantity=5, is_active=False)
        await flow.add_to_cart("user-1", active.id, 1)
        await flow.add_to_cart("user-1", retired.id, 1)

        with pytest.raises(ValidationError, match="Relógio"):
            await flow.checkout("user-1", "pix", address, "PAC")

        assert await stock_of(active.id) == 5
        assert await stock_of(retired.id) == 5
        assert len((await flow.get_cart("user-1")).lines) == 2
        assert await count_orders(flow) == 0

    async def test_invalid_coupon_rolls_back(self, flow, make_product, address, stock_of):
        product = await make_product(stock_quantity=3)
        await flow.add_to_cart("user-1", product.id, 2)

        with pytest.raises(NotFoundError):
            await flow.checkout("user-1", "pix", address, "PAC", ["GHOST"])

        assert await stock_of(product.id) == 3
        assert len((await flow.get_cart("user-1")).lines) == 1
        assert await count_orders(flow) == 0

    async def test_unknown_shipping_method_rolls_back(self, flow, make_product, address, stock_of):
        product = await make_product(stock_quantity=3)
        await flow.add_to_cart("user-1", product.id, 1)

        with pytest.raises(ValidationError):
            await flow.checkout("user-1", "pix", address, "DRONE")

        assert await stock_of(product.id) == 3

    async def test_missing_postal_code(self, flow, make_product):
        product = await make_product()
        await flow.add_to_cart("user-1", product.id, 1)

        with pytest.raises(ValidationError, match="CEP"):
            await flow.checkout("user-1", "pix", ShippingAddress.of(street="Rua A"), "PAC")

    async def test_stock_taken_mid_checkout_is_not_oversold(
        self, session_factory, make_product, address, stock_of
    ):
        flow = OrderFlow.build(session_factory, DrainingOracle(session_factory, DEFAULT_OPTIONS))
        product = await make_product("Caneca", stock_quantity=2)
        await flow.add_to_cart("user-1", product.id, 2)

        with pytest.raises(ValidationError, match="Estoque insuficiente"):
            await flow.checkout("user-1", "pix", address, "PAC")

        assert await stock_of(product.id) == 0
        assert len((await flow.get_cart("user-1")).lines) == 1
        assert await count_orders(flow) == 0

    async def test_guest_placeholder_id_cannot_reuse_coupon(
        self, flow, make_product, make_coupon, address
    ):
        product = await make_product(stock_quantity=10)
        await make_coupon("ONCE", 10, usage_limit_per_user=1)
        await flow.add_to_cart(SIMULATION_USER, product.id, 1)
        await flow.checkout(SIMULATION_USER, "pix", address, "PAC", ["ONCE"])
        await flow.add_to_cart(SIMULATION_USER, product.id, 1)

        with pytest.raises(ValidationError, match="limite de uso"):
            await flow.checkout(SIMULATION_USER, "pix", address, "PAC", ["ONCE"])

        assert await count_orders(flow) == 1

    async def test_storage_conflict_is_translated(self, flow):
        await flow.create_coupon(CouponDraft("DUP", 10))

        with pytest.raises(ServiceError) as excinfo:
            async with flow.unit_of_work() as uow:
                await uow.coupons.add(CouponDraft("DUP", 10))

        assert excinfo.value.status_code == 409


class TestSimulation:
    async def test_prices_cart_without_mutation(
        self, flow, make_product, make_coupon, address, stock_of
    ):
        product = await make_product(price_in_cents=5000, stock_quantity=4)
        await make_coupon("PROMO10", 10)
        await flow.add_to_cart("user-1", product.id, 2)

        simulation = await flow.simulate_checkout("user-1", address, "PAC", ["PROMO10"])

        assert simulation.totals.subtotal_in_cents == 10000
        assert simulation.totals.discount_in_cents == 1000
        assert simulation.totals.total_in_cents == 10000
        assert simulation.shipping_details.type == "PAC"
        assert await stock_of(product.id) == 4
        assert len((await flow.get_cart("user-1")).lines) == 1
        assert await count_orders(flow) == 0

    async def test_simulation_does_not_consume_coupon(self, flow, make_product, make_coupon, address):
        product = await make_product()
        await make_coupon("ONCE", 10, usage_limit_per_user=1)
        await flow.add_to_cart("user-1", product.id, 1)

        await flow.simulate_checkout("user-1", address, "PAC", ["ONCE"])
        order = await flow.checkout("user-1", "pix", address, "PAC", ["ONCE"])

        assert [c.code for c in order.applied_coupons] == ["ONCE"]

    async def test_guest_items(self, flow, make_product, address):
        product = await make_product(price_in_cents=1500)

        simulation = await flow.simulate_checkout(
            None, address, "SEDEX", items=[RateItem(product.id, 2)]
        )

        assert simulation.totals.subtotal_in_cents == 3000
        assert simulation.totals.total_in_cents == 5500

    async def test_guest_is_not_held_to_per_user_limit(self, flow, make_product, make_coupon, address):
        product = await make_product()
        await make_coupon("ONCE", 10, usage_limit_per_user=1)
        await flow.add_to_cart(SIMULATION_USER, product.id, 1)
        await flow.checkout(SIMULATION_USER, "pix", address, "PAC", ["ONCE"])

        simulation = await flow.simulate_checkout(
            None, address, "PAC", ["ONCE"], items=[RateItem(product.id, 1)]
        )

        assert simulation.totals.discount_in_cents == 500

    async def test_empty_returns_zeros(self, flow, address):
        simulation = await flow.simulate_checkout(None, address, "PAC")

        assert simulation.totals.total_in_cents == 0
        assert simulation.totals.applied_coupons == ()
        assert simulation.shipping_details is None

    async def test_empty_cart_skips_oracle(self, session_factory, address):
        class ExplodingOracle:
            async def quote(self, postal_code, items):
                raise AssertionError("oracle must not be called")

        flow = OrderFlow.build(session_factory, ExplodingOracle())

        simulation = await flow.simulate_checkout("user-1", address, "PAC")

        assert simulation.totals.subtotal_in_cents == 0

    async def test_unavailable_item(self, flow, address):
        with pytest.raises(ValidationError, match="ID 42"):
            await flow.simulate_checkout(None, address, "PAC", items=[RateItem(42, 1)])
