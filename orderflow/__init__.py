"""
orderflow — order fulfillment and pricing engine.

Turns a shopping cart into a persisted, financially correct order:

- prices and shipping costs are always recomputed server-side
- coupon stacking resolves to one deterministic outcome
- product discounts never push an order below its price floor
- stock is reserved atomically with the order

Quick start:

    from orderflow import OrderFlow, Settings, ShippingAddress

    flow = await OrderFlow.from_settings(Settings.from_env())
    product = await flow.create_product("Camiseta", 5000, stock_quantity=10)
    await flow.add_to_cart("user-1", product.id, 2)

    order = await flow.checkout(
        "user-1", "pix", ShippingAddress.of(cep="01001-000"), "PAC", ["PROMO10"]
    )
"""

from orderflow.config import Settings, configure_logging
from orderflow.domain import (
    SIMULATION_USER,
    AppliedCoupon,
    Cart,
    CartLine,
    Coupon,
    CouponDraft,
    CouponType,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    RateItem,
    ShippingAddress,
    ShippingOption,
    ShippingQuote,
    Simulation,
    Totals,
)
from orderflow.errors import (
    ErrorKind,
    NotFoundError,
    OrderFlowError,
    ServiceError,
    ValidationError,
)
from orderflow.service import OrderFlow

__all__ = (
    # Facade
    "OrderFlow",
    "Settings",
    "configure_logging",
    # Domain
    "SIMULATION_USER",
    "Product",
    "CartLine",
    "Cart",
    "RateItem",
    "CouponType",
    "Coupon",
    "CouponDraft",
    "AppliedCoupon",
    "ShippingAddress",
    "ShippingOption",
    "ShippingQuote",
    "Totals",
    "Simulation",
    "OrderStatus",
    "OrderItem",
    "Order",
    # Errors
    "ErrorKind",
    "OrderFlowError",
    "ValidationError",
    "NotFoundError",
    "ServiceError",
)
