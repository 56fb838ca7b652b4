"""
Session Example — login, guards, restore and logout.

Run: uv run python examples/session_example.py
"""

from kungfu import Ok, Error

from storefront import Storefront, StorefrontConfig
from storefront import guard as G
from storefront import session as S
from storefront import store as St
from examples._infra import FakeBackend, banner, run


async def main() -> None:
    backend = FakeBackend()
    storage = St.MemoryStorage()
    config = StorefrontConfig(base_url="https://shop.example/api")

    banner("Session")

    async with Storefront.build(config, storage=storage, transport=backend.transport()) as shop:
        shop.session.changes.subscribe(
            lambda change: print(f"   session → {change.state.name} ({change.reason.name})")
        )

        # 1. Wrong password
        print("\n1. Wrong password:")
        match await shop.session.login(S.Credentials("ana@example.com", "nope")):
            case Ok(outcome):
                print(f"   unexpected: {outcome.user.email}")
            case Error(e):
                print(f"   error: {e.message}")

        # 2. Admin login lands on /admin
        print("\n2. Admin login:")
        match await shop.session.login(S.Credentials("root@example.com", "secret")):
            case Ok(outcome):
                print(f"   redirect → {outcome.redirect.path}")
            case Error(e):
                print(f"   error: {e}")

        print(f"   admin route: {await G.admin_guard(shop.session)}")
        print(f"   login page:  {await G.guest_guard(shop.session)}")

    # 3. A new process restores the persisted session and verifies it on first guard
    print("\n3. Restart:")
    async with Storefront.build(config, storage=storage, transport=backend.transport()) as shop:
        print(f"   restored={await shop.start()} verified={shop.session.verified}")
        print(f"   admin route: {await G.admin_guard(shop.session)}")
        print(f"   verified={shop.session.verified}")

        # 4. Logout is idempotent
        print("\n4. Logout twice:")
        print(f"   redirect → {(await shop.session.logout()).path}")
        print(f"   redirect → {(await shop.session.logout()).path}")
        print(f"   auth route: {await G.auth_guard(shop.session)}")

    print(f"\nPersisted keys left: {sorted(storage.keys())}")


if __name__ == "__main__":
    run(main)
