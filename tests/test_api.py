"""Tests for the HTTP surface."""

import httpx
import pytest_asyncio

from orderflow import OrderFlow
from orderflow.api import create_app
from orderflow.shipping import HTTPRateOracle

ADDRESS = {"street": "Praça da Sé", "number": "1", "zipCode": "01001-000"}


@pytest_asyncio.fixture
async def client(flow):
    app = create_app(flow=flow)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def as_user(user_id="user-1"):
    return {"X-User-Id": user_id}


class TestCartRoutes:
    async def test_add_and_read(self, client, make_product):
        product = await make_product("Caneca", price_in_cents=3500)

        added = await client.post(
            "/api/v1/cart/items", json={"product_id": product.id, "quantity": 2}, headers=as_user()
        )
        read = await client.get("/api/v1/cart", headers=as_user())

        assert added.status_code == 200
        assert read.json()["total_in_cents"] == 7000
        assert read.json()["items"][0]["name"] == "Caneca"

    async def test_update_and_remove(self, client, make_product):
        product = await make_product()
        await client.post(
            "/api/v1/cart/items", json={"product_id": product.id, "quantity": 1}, headers=as_user()
        )

        updated = await client.patch(
            f"/api/v1/cart/items/{product.id}", json={"quantity": 4}, headers=as_user()
        )
        removed = await client.delete(f"/api/v1/cart/items/{product.id}", headers=as_user())

        assert updated.json()["items"][0]["quantity"] == 4
        assert removed.json()["items"] == []

    async def test_sync(self, client, make_product):
        product = await make_product()

        response = await client.post(
            "/api/v1/cart/sync",
            json={"items": [{"product_id": product.id, "quantity": 3}]},
            headers=as_user(),
        )

        assert response.json()["items"][0]["quantity"] == 3

    async def test_user_header_required(self, client):
        response = await client.get("/api/v1/cart")

        assert response.status_code == 422

    async def test_invalid_quantity_is_400(self, client, make_product):
        product = await make_product()

        response = await client.post(
            "/api/v1/cart/items", json={"product_id": product.id, "quantity": 0}, headers=as_user()
        )

        assert response.status_code == 400
        assert response.json()["kind"] == "validation"


class TestCheckoutRoutes:
    async def test_checkout_and_fetch(self, client, flow, make_product, make_coupon):
        product = await make_product(price_in_cents=5000)
        await make_coupon("PROMO10", 10)
        await flow.add_to_cart("user-1", product.id, 2)

        created = await client.post(
            "/api/v1/checkout",
            json={
                "payment_method": "pix",
                "shipping_method": "PAC",
                "shipping_address": ADDRESS,
                "coupon_code": "promo10",
            },
            headers=as_user(),
        )

        assert created.status_code == 201
        body = created.json()
        assert body["total_in_cents"] == 10000
        assert body["discount_in_cents"] == 1000
        assert body["applied_coupons"][0]["code"] == "PROMO10"
        assert body["shipping_address"]["zipCode"] == "01001-000"

        fetched = await client.get(f"/api/v1/orders/{body['id']}")
        listed = await client.get("/api/v1/orders", headers=as_user())

        assert fetched.json()["id"] == body["id"]
        assert [o["id"] for o in listed.json()] == [body["id"]]

    async def test_client_totals_are_ignored(self, client, flow, make_product):
        product = await make_product(price_in_cents=5000)
        await flow.add_to_cart("user-1", product.id, 1)

        created = await client.post(
            "/api/v1/checkout",
            json={
                "payment_method": "pix",
                "shipping_method": "PAC",
                "shipping_address": ADDRESS,
                "total_in_cents": 1,
                "shipping_cost_in_cents": 0,
            },
            headers=as_user(),
        )

        assert created.json()["total_in_cents"] == 6000

    async def test_empty_cart_is_400(self, client):
        response = await client.post(
            "/api/v1/checkout",
            json={"payment_method": "pix", "shipping_method": "PAC", "shipping_address": ADDRESS},
            headers=as_user(),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "O carrinho está vazio."

    async def test_guest_simulation(self, client, make_product):
        product = await make_product(price_in_cents=2000)

        response = await client.post(
            "/api/v1/cart/simulate",
            json={
                "shipping_method": "SEDEX",
                "shipping_address": ADDRESS,
                "items": [{"product_id": product.id, "quantity": 2}],
            },
        )

        assert response.status_code == 200
        assert response.json()["total_in_cents"] == 6500
        assert response.json()["shipping_details"]["type"] == "SEDEX"


class TestOrderRoutes:
    @pytest_asyncio.fixture
    async def order_id(self, flow, make_product, address):
        product = await make_product()
        await flow.add_to_cart("user-1", product.id, 1)
        order = await flow.checkout("user-1", "pix", address, "PAC")
        return order.id

    async def test_unknown_order_is_404(self, client):
        response = await client.get("/api/v1/orders/ord_missing")

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    async def test_payment_then_ship(self, client, order_id):
        paid = await client.post(
            f"/api/v1/orders/{order_id}/payment",
            json={"gateway_id": "pay_1", "gateway_data": {"method": "pix"}, "status": "approved"},
        )
        shipped = await client.patch(
            f"/api/v1/orders/{order_id}/status",
            json={"status": "shipped", "tracking_code": "BR1"},
        )

        assert paid.json()["status"] == "paid"
        assert shipped.json()["status"] == "shipped"
        assert shipped.json()["tracking_code"] == "BR1"

    async def test_ship_without_tracking_is_400(self, client, order_id):
        await client.post(
            f"/api/v1/orders/{order_id}/payment", json={"gateway_id": "pay_1", "status": "paid"}
        )

        response = await client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "shipped"})

        assert response.status_code == 400

    async def test_cancel_twice(self, client, order_id):
        first = await client.post(f"/api/v1/orders/{order_id}/cancel")
        second = await client.post(f"/api/v1/orders/{order_id}/cancel")

        assert first.json()["status"] == "canceled"
        assert second.status_code == 200

    async def test_illegal_transition_is_409(self, client, order_id):
        response = await client.patch(
            f"/api/v1/orders/{order_id}/status", json={"status": "delivered"}
        )

        assert response.status_code == 409
        assert response.json()["kind"] == "service"

    async def test_paid_is_reserved_for_gateway(self, client, order_id):
        response = await client.patch(f"/api/v1/orders/{order_id}/status", json={"status": "paid"})

        assert response.status_code == 400


class TestCouponRoutes:
    async def test_create(self, client):
        response = await client.post(
            "/api/v1/coupons", json={"code": "frete50", "discount_percentage": 50, "type": "shipping"}
        )

        assert response.status_code == 201
        assert response.json()["code"] == "FRETE50"
        assert response.json()["type"] == "shipping"

    async def test_duplicate_is_400(self, client):
        await client.post("/api/v1/coupons", json={"code": "DUP", "discount_percentage": 10})

        response = await client.post("/api/v1/coupons", json={"code": "dup", "discount_percentage": 10})

        assert response.status_code == 400


class TestErrorRendering:
    async def test_broken_rate_service_is_503_json(self, session_factory, make_product):
        rates = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))
        )
        flow = OrderFlow.build(session_factory, HTTPRateOracle("http://rates.test/quote", client=rates))
        product = await make_product()
        transport = httpx.ASGITransport(app=create_app(flow=flow))

        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post(
                "/api/v1/cart/simulate",
                json={
                    "shipping_method": "PAC",
                    "shipping_address": ADDRESS,
                    "items": [{"product_id": product.id, "quantity": 1}],
                },
            )

        assert response.status_code == 503
        assert response.json()["kind"] == "service"
        assert response.json()["name"] == "ServiceError"
        await rates.aclose()
