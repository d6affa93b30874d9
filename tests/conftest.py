"""Pytest fixtures for orderflow tests."""

import pytest
import pytest_asyncio

from orderflow import CouponDraft, OrderFlow, ShippingAddress, ShippingOption
from orderflow.db import create_database
from orderflow.shipping import FlatRateOracle

RATES = (
    ShippingOption(type="PAC", price_in_cents=1000, name="PAC", days=5, carrier="Correios"),
    ShippingOption(type="SEDEX", price_in_cents=2500, name="SEDEX", days=2, carrier="Correios"),
    ShippingOption(type="PICKUP", price_in_cents=0, name="Retirada no Local", days=3),
)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """A fresh file-backed SQLite database per test."""
    factory, engine = await create_database(
        f"sqlite+aiosqlite:///{tmp_path / 'orderflow.db'}"
    )
    yield factory
    await engine.dispose()


@pytest.fixture
def oracle():
    return FlatRateOracle(RATES)


@pytest.fixture
def flow(session_factory, oracle):
    return OrderFlow.build(session_factory, oracle)


@pytest.fixture
def address():
    return ShippingAddress.of(
        street="Praça da Sé",
        number="1",
        city="São Paulo",
        cep="01001-000",
    )


@pytest.fixture
def make_product(flow):
    """Insert a product; keyword arguments override the defaults."""

    async def make(name="Camiseta", price_in_cents=5000, stock_quantity=10, **kwargs):
        return await flow.create_product(name, price_in_cents, stock_quantity, **kwargs)

    return make


@pytest.fixture
def make_coupon(flow):
    async def make(code="PROMO10", discount_percentage=10, **kwargs):
        return await flow.create_coupon(CouponDraft(code, discount_percentage, **kwargs))

    return make


@pytest.fixture
def stock_of(flow):
    async def read(product_id):
        product = await flow.get_product(product_id)
        return product.stock_quantity

    return read
