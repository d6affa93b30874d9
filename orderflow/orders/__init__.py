"""
Orders — checkout orchestration and post-creation lifecycle.

    orchestrator = OrderOrchestrator(uow_factory, ShippingRecalculator(oracle))
    order = await orchestrator.create_from_cart(
        "user-1", "pix", ShippingAddress.of(cep="01001000"), "PAC", ["PROMO10"]
    )

    lifecycle = OrderLifecycle(uow_factory)
    await lifecycle.cancel(order.id)
"""

from orderflow.orders._lifecycle import OrderLifecycle, parse_gateway_status
from orderflow.orders._orchestrator import OrderOrchestrator, new_order_id

__all__ = (
    "OrderOrchestrator",
    "OrderLifecycle",
    "new_order_id",
    "parse_gateway_status",
)
