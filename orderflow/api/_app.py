"""
FastAPI application.

The caller's identity arrives in the X-User-Id header; authenticating it
is the job of whatever sits in front of this service.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Annotated, Any, cast

from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from orderflow.api._schemas import (
    CartOut,
    CheckoutIn,
    CouponIn,
    CouponOut,
    ItemIn,
    OrderOut,
    PaymentInfoIn,
    QuantityIn,
    SimulationIn,
    SimulationOut,
    StatusIn,
    SyncCartIn,
)
from orderflow.config import Settings, configure_logging
from orderflow.domain import OrderStatus
from orderflow.errors import OrderFlowError, ValidationError
from orderflow.orders import parse_gateway_status
from orderflow.service import OrderFlow

logger = logging.getLogger(__name__)

ExceptionHandler = Callable[[Request, Any], Awaitable[JSONResponse]]


def get_flow(request: Request) -> OrderFlow:
    return request.app.state.flow


Flow = Annotated[OrderFlow, Depends(get_flow)]
User = Annotated[str, Header(alias="X-User-Id")]
OptionalUser = Annotated[str | None, Header(alias="X-User-Id")]

router = APIRouter()


# ═══════════════════════════════════════════════════════════════════════════════
# Cart
# ═══════════════════════════════════════════════════════════════════════════════


@router.get("/cart")
async def get_cart(flow: Flow, user_id: User) -> CartOut:
    return CartOut.from_domain(await flow.get_cart(user_id))


@router.post("/cart/items")
async def add_cart_item(req: ItemIn, flow: Flow, user_id: User) -> CartOut:
    cart = await flow.add_to_cart(user_id, req.product_id, req.quantity)
    return CartOut.from_domain(cart)


@router.patch("/cart/items/{product_id}")
async def update_cart_item(product_id: int, req: QuantityIn, flow: Flow, user_id: User) -> CartOut:
    cart = await flow.update_cart_item(user_id, product_id, req.quantity)
    return CartOut.from_domain(cart)


@router.delete("/cart/items/{product_id}")
async def remove_cart_item(product_id: int, flow: Flow, user_id: User) -> CartOut:
    return CartOut.from_domain(await flow.remove_from_cart(user_id, product_id))


@router.post("/cart/sync")
async def sync_cart(req: SyncCartIn, flow: Flow, user_id: User) -> CartOut:
    return CartOut.from_domain(await flow.sync_cart(user_id, req.to_domain()))


@router.post("/cart/simulate")
async def simulate_checkout(req: SimulationIn, flow: Flow, user_id: OptionalUser = None) -> SimulationOut:
    simulation = await flow.simulate_checkout(
        user_id,
        req.address(),
        req.shipping_method,
        req.codes(),
        req.rate_items(),
    )
    return SimulationOut.from_domain(simulation)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


@router.post("/checkout", status_code=201)
async def checkout(req: CheckoutIn, flow: Flow, user_id: User) -> OrderOut:
    order = await flow.checkout(
        user_id,
        req.payment_method,
        req.address(),
        req.shipping_method,
        req.codes(),
    )
    return OrderOut.from_domain(order)


@router.get("/orders")
async def list_orders(flow: Flow, user_id: User) -> list[OrderOut]:
    return [OrderOut.from_domain(order) for order in await flow.list_orders(user_id)]


@router.get("/orders/{order_id}")
async def get_order(order_id: str, flow: Flow) -> OrderOut:
    return OrderOut.from_domain(await flow.get_order(order_id))


@router.post("/orders/{order_id}/cancel")
async def cancel_order(order_id: str, flow: Flow) -> OrderOut:
    return OrderOut.from_domain(await flow.cancel_order(order_id))


@router.patch("/orders/{order_id}/status")
async def update_order_status(order_id: str, req: StatusIn, flow: Flow) -> OrderOut:
    match parse_gateway_status(req.status):
        case OrderStatus.SHIPPED:
            order = await flow.mark_as_shipped(order_id, req.tracking_code or "")
        case OrderStatus.DELIVERED:
            order = await flow.mark_as_delivered(order_id)
        case OrderStatus.CANCELED:
            order = await flow.cancel_order(order_id)
        case other:
            raise ValidationError(
                f'O status "{other.value}" só pode ser definido pelo gateway de pagamento.'
            )
    return OrderOut.from_domain(order)


@router.post("/orders/{order_id}/payment")
async def update_payment_info(order_id: str, req: PaymentInfoIn, flow: Flow) -> OrderOut:
    order = await flow.update_payment_info(order_id, req.gateway_id, req.gateway_data, req.status)
    return OrderOut.from_domain(order)


# ═══════════════════════════════════════════════════════════════════════════════
# Coupons
# ═══════════════════════════════════════════════════════════════════════════════


@router.post("/coupons", status_code=201)
async def create_coupon(req: CouponIn, flow: Flow) -> CouponOut:
    return CouponOut.from_domain(await flow.create_coupon(req.to_domain()))


# ═══════════════════════════════════════════════════════════════════════════════
# Application
# ═══════════════════════════════════════════════════════════════════════════════


async def handle_orderflow_error(request: Request, exc: OrderFlowError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(flow: OrderFlow | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Build the HTTP app.

    With `flow` given the app serves it as-is; otherwise one is opened
    from settings (or the environment) for the lifetime of the app.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if flow is not None:
            yield
            return

        config = settings or Settings.from_env()
        configure_logging(config.log_level)
        app.state.flow = await OrderFlow.from_settings(config)
        try:
            yield
        finally:
            await app.state.flow.aclose()

    app = FastAPI(title="orderflow", lifespan=lifespan)
    if flow is not None:
        app.state.flow = flow
    app.add_exception_handler(OrderFlowError, cast(ExceptionHandler, handle_orderflow_error))
    app.include_router(router, prefix="/api/v1")
    return app


__all__ = ("create_app", "router", "get_flow")
