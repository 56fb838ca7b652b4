import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal

import pytest

from storefront._errors import StorefrontError
from storefront._types import Ok, Result
from storefront.checkout import (
    Address,
    CheckoutOrchestrator,
    LineItem,
    OrderRecord,
    OrderStatus,
    OrderSubmission,
    PaymentPreference,
    PaymentStatus,
)
from storefront.session import (
    Credentials,
    Grant,
    Registration,
    Role,
    SessionManager,
    TimerAction,
    User,
    Verification,
)
from storefront.store import CheckoutStateStore, MemoryStorage, TokenStore

ANA = User(id="u1", email="ana@example.com", name="Ana")
ROOT = User(id="u9", email="root@example.com", name="Root", role=Role.ADMIN)
CREDENTIALS = Credentials("ana@example.com", "secret")


async def until(predicate: Callable[[], bool], *, attempts: int = 100) -> None:
    """Yield to the event loop until predicate holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition never became true")


# ═══════════════════════════════════════════════════════════════════════════════
# Time
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class FakeClock:
    now: int = 0

    def __call__(self) -> int:
        return self.now

    def advance(self, *, seconds: float = 0, minutes: float = 0) -> None:
        self.now += int((seconds + minutes * 60) * 1000)


@dataclass
class FakeHandle:
    delay: float
    action: TimerAction
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class FakeScheduler:
    handles: list[FakeHandle] = field(default_factory=list)

    def call_later(self, delay: float, action: TimerAction) -> FakeHandle:
        handle = FakeHandle(delay, action)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    async def fire_next(self) -> None:
        handle = self.pending[0]
        handle.fired = True
        await handle.action()


# ═══════════════════════════════════════════════════════════════════════════════
# Auth backend
# ═══════════════════════════════════════════════════════════════════════════════


class FakeAuthGateway:
    def __init__(self) -> None:
        self.user = ANA
        self.calls: list[str] = []
        self.login_result: Result[Grant, StorefrontError] | None = None
        self.refresh_result: Result[Grant, StorefrontError] | None = None
        self.verify_result: Result[Verification, StorefrontError] | None = None
        self.logout_result: Result[None, StorefrontError] = Ok(None)
        self.refresh_gate: asyncio.Event | None = None
        self.issued = 0

    def _grant(self, user: User | None) -> Grant:
        self.issued += 1
        return Grant(access_token=f"token-{self.issued}", user=user, expires_in=3600)

    async def login(self, credentials: Credentials) -> Result[Grant, StorefrontError]:
        self.calls.append("login")
        return self.login_result if self.login_result is not None else Ok(self._grant(self.user))

    async def register(self, registration: Registration) -> Result[Grant, StorefrontError]:
        self.calls.append("register")
        return self.login_result if self.login_result is not None else Ok(self._grant(self.user))

    async def refresh(self, token: str) -> Result[Grant, StorefrontError]:
        self.calls.append("refresh")
        if self.refresh_gate is not None:
            await self.refresh_gate.wait()
        return self.refresh_result if self.refresh_result is not None else Ok(self._grant(None))

    async def verify(self, token: str) -> Result[Verification, StorefrontError]:
        self.calls.append("verify")
        return self.verify_result if self.verify_result is not None else Ok(Verification(valid=True, user=self.user))

    async def logout(self, token: str) -> Result[None, StorefrontError]:
        self.calls.append("logout")
        return self.logout_result


# ═══════════════════════════════════════════════════════════════════════════════
# Checkout collaborators
# ═══════════════════════════════════════════════════════════════════════════════


def line(product_id: str, quantity: int, unit_price: int) -> LineItem:
    return LineItem(
        product_id=product_id,
        name=f"Product {product_id}",
        quantity=quantity,
        unit_price=Decimal(unit_price),
        subtotal=Decimal(unit_price * quantity),
    )


class FakeCart:
    def __init__(self, items: list[LineItem] | None = None) -> None:
        self.items = list(items or [])
        self.clear_result: Result[None, StorefrontError] = Ok(None)
        self.cleared = 0

    async def current_items(self) -> Result[list[LineItem], StorefrontError]:
        return Ok(list(self.items))

    async def clear(self) -> Result[None, StorefrontError]:
        self.cleared += 1
        if isinstance(self.clear_result, Ok):
            self.items = []
        return self.clear_result


class FakeOrders:
    def __init__(self) -> None:
        self.submissions: list[OrderSubmission] = []
        self.result: Result[OrderRecord, StorefrontError] | None = None
        self.gate: asyncio.Event | None = None

    async def create_order(self, submission: OrderSubmission) -> Result[OrderRecord, StorefrontError]:
        self.submissions.append(submission)
        if self.gate is not None:
            await self.gate.wait()
        if self.result is not None:
            return self.result
        return Ok(
            OrderRecord(
                id=f"o{len(self.submissions)}",
                status=OrderStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
                delivery_type=submission.delivery_type,
                total=submission.total,
                shipping_address_id=submission.shipping_address_id,
            )
        )

    async def get_order_status(self, order_id: str) -> Result[OrderRecord, StorefrontError]:
        raise NotImplementedError


class FakeAddresses:
    def __init__(self, addresses: list[Address] | None = None) -> None:
        self.addresses = list(addresses or [])

    async def list_addresses(self) -> Result[list[Address], StorefrontError]:
        return Ok(list(self.addresses))


class FakePayments:
    def __init__(self) -> None:
        self.requested: list[str] = []

    async def create_preference(self, order_id: str) -> Result[PaymentPreference, StorefrontError]:
        self.requested.append(order_id)
        return Ok(PaymentPreference(preference_id=f"pref-{order_id}", init_point="https://mp.example/checkout"))


# ═══════════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def tokens(storage: MemoryStorage) -> TokenStore:
    return TokenStore(storage)


@pytest.fixture
def gateway() -> FakeAuthGateway:
    return FakeAuthGateway()


@pytest.fixture
def session(
    gateway: FakeAuthGateway,
    tokens: TokenStore,
    scheduler: FakeScheduler,
    clock: FakeClock,
) -> SessionManager:
    return SessionManager(gateway, tokens, scheduler=scheduler, clock=clock)


@pytest.fixture
def cart() -> FakeCart:
    return FakeCart([line("p1", 1, 10000), line("p2", 2, 4000)])


@pytest.fixture
def orders() -> FakeOrders:
    return FakeOrders()


@pytest.fixture
def addresses() -> FakeAddresses:
    return FakeAddresses(
        [
            Address(
                id="A1",
                recipient_name="Ana",
                street_address="Av. Siempre Viva 742",
                city="Córdoba",
                province="Córdoba",
                postal_code="5000",
            )
        ]
    )


@pytest.fixture
def payments() -> FakePayments:
    return FakePayments()


@pytest.fixture
def checkout(
    storage: MemoryStorage,
    session: SessionManager,
    cart: FakeCart,
    orders: FakeOrders,
    addresses: FakeAddresses,
    payments: FakePayments,
    clock: FakeClock,
) -> CheckoutOrchestrator:
    return CheckoutOrchestrator(
        CheckoutStateStore(storage),
        session,
        cart=cart,
        orders=orders,
        addresses=addresses,
        payments=payments,
        clock=clock,
    )
