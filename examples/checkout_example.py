"""
Checkout Example — from an empty wizard to a Mercado Pago link.

Run: uv run python examples/checkout_example.py
"""

from kungfu import Ok, Error

from storefront import Storefront, StorefrontConfig
from storefront import checkout as C
from storefront import session as S
from examples._infra import FakeBackend, banner, run


async def main() -> None:
    backend = FakeBackend()
    config = StorefrontConfig(base_url="https://shop.example/api")

    async with Storefront.build(config, transport=backend.transport()) as shop:
        await shop.start()
        shop.checkout.changes.subscribe(lambda snap: print(f"   step → {snap.step.name}"))

        banner("Checkout")

        # 1. Anonymous users may start, but not submit
        print("\n1. Anonymous finalize:")
        shop.checkout.begin_checkout(C.DeliveryType.DELIVERY)
        match await shop.checkout.finalize():
            case Ok(order):
                print(f"   unexpected order {order.id}")
            case Error(e):
                print(f"   error: {e}")

        # 2. Sign in and walk the wizard
        print("\n2. Signed-in delivery checkout:")
        await shop.session.login(S.Credentials("ana@example.com", "secret"))
        shop.checkout.begin_checkout(C.DeliveryType.DELIVERY)
        shop.checkout.update_address("A1")
        match await shop.checkout.selected_address():
            case Ok(address) if address is not None:
                print(f"   deliver to {address.street_address}, {address.city}")
            case _:
                print("   address not found")
        shop.checkout.select_payment(C.PaymentMethod.MERCADOPAGO)

        # 3. Submit and request the payment link
        print("\n3. Finalize:")
        match await shop.checkout.finalize(notes="Ring twice"):
            case Ok(order):
                print(f"   order {order.order_number} total={order.total} status={order.status}")
                match await shop.checkout.request_payment(order):
                    case Ok(preference):
                        print(f"   pay at {preference.init_point}")
                    case Error(e):
                        print(f"   payment error: {e}")
            case Error(e):
                print(f"   error: {e}")

        print(f"\nActive checkout after submit: {shop.checkout.is_active()}")
        print(f"Orders on the backend: {len(backend.orders)}")


if __name__ == "__main__":
    run(main)
