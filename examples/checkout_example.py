"""
Checkout Example — cart to order, then through the status machine.

Run: python examples/checkout_example.py
"""

import asyncio

from orderflow import (
    CouponDraft,
    CouponType,
    OrderFlow,
    OrderFlowError,
    Settings,
    ShippingAddress,
    configure_logging,
)


def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


# ═══════════════════════════════════════════════════════════════════════════════
# Demo
# ═══════════════════════════════════════════════════════════════════════════════


async def main() -> None:
    configure_logging("WARNING")
    flow = await OrderFlow.from_settings(Settings())
    address = ShippingAddress.of(street="Praça da Sé", number="1", cep="01001-000")

    try:
        banner("Catalog")
        shirt = await flow.create_product("Camiseta", 5000, 5, promotional_price_in_cents=4500)
        mug = await flow.create_product("Caneca", 3500, 1)
        await flow.create_coupon(CouponDraft("PROMO10", 10, is_cumulative=True))
        await flow.create_coupon(
            CouponDraft("FRETE50", 50, type=CouponType.SHIPPING, is_cumulative=True)
        )
        print(f"   {shirt.name}: R$ {shirt.unit_price_in_cents / 100:.2f}")
        print(f"   {mug.name}: R$ {mug.unit_price_in_cents / 100:.2f}")

        # 1. Fill the cart
        print("\n1. Cart:")
        await flow.add_to_cart("user-1", shirt.id, 2)
        cart = await flow.add_to_cart("user-1", mug.id, 1)
        for line in cart.lines:
            print(f"   {line.quantity}x {line.name} = {line.total_in_cents}")
        print(f"   total: {cart.total_in_cents}")

        # 2. Preview: nothing is written
        print("\n2. Simulation:")
        simulation = await flow.simulate_checkout(
            "user-1", address, "PAC", ["promo10", "frete50"]
        )
        print(f"   {simulation.totals}")

        # 3. Place the order
        print("\n3. Checkout:")
        order = await flow.checkout("user-1", "pix", address, "PAC", ["promo10", "frete50"])
        print(f"   {order.id} {order.status.value} total={order.total_in_cents}")
        print(f"   coupons: {[c.code for c in order.applied_coupons]}")

        # 4. Second attempt: per-user limit reached, cart empty
        print("\n4. Checkout again:")
        try:
            await flow.checkout("user-1", "pix", address, "PAC")
        except OrderFlowError as e:
            print(f"   {e.kind.value}: {e.message}")

        # 5. Lifecycle
        print("\n5. Lifecycle:")
        order = await flow.update_payment_info(order.id, "pay_1", {"method": "pix"}, "approved")
        print(f"   {order.status.value}")
        order = await flow.mark_as_shipped(order.id, "BR123456789")
        print(f"   {order.status.value} ({order.tracking_code})")
        order = await flow.mark_as_delivered(order.id)
        print(f"   {order.status.value}")
        try:
            await flow.cancel_order(order.id)
        except OrderFlowError as e:
            print(f"   cancel refused: {e.message}")
    finally:
        await flow.aclose()


if __name__ == "__main__":
    asyncio.run(main())
