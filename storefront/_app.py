"""
Composition root — wires stores, transport, session and checkout.

    async with Storefront.build(StorefrontConfig.from_env()) as shop:
        await shop.start()
        await shop.session.login(Credentials("ana@example.com", "secret"))
        shop.checkout.begin_checkout(DeliveryType.PICKUP)
        await shop.checkout.finalize()
"""

from __future__ import annotations

from types import TracebackType

import httpx
import structlog

from storefront._config import StorefrontConfig
from storefront._types import Clock, system_clock
from storefront.checkout import CheckoutOrchestrator
from storefront.session import Scheduler, SessionManager
from storefront.store import CheckoutStateStore, MemoryStorage, Storage, TokenStore
from storefront.transport import (
    AddressApi,
    AuthApi,
    AuthorizedTransport,
    CartApi,
    HttpTransport,
    OrderApi,
    PaymentApi,
)

logger = structlog.get_logger(__name__)


class Storefront:
    def __init__(
        self,
        config: StorefrontConfig,
        *,
        http: HttpTransport,
        session: SessionManager,
        checkout: CheckoutOrchestrator,
        orders: OrderApi,
    ) -> None:
        self.config = config
        self.session = session
        self.checkout = checkout
        self.orders = orders
        self._http = http

    @classmethod
    def build(
        cls,
        config: StorefrontConfig | None = None,
        *,
        storage: Storage | None = None,
        scheduler: Scheduler | None = None,
        clock: Clock = system_clock,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Storefront:
        """
        Build a client.

        storage defaults to process memory; pass NullStorage() for
        non-interactive runs or SQLAlchemyStorage(engine) to persist.
        transport replaces the network (httpx.MockTransport in tests).
        """
        config = config or StorefrontConfig()
        storage = storage if storage is not None else MemoryStorage()
        namespace = config.storage_namespace

        http = HttpTransport.from_config(config, transport=transport)
        session = SessionManager(
            AuthApi(http),
            TokenStore(storage, namespace),
            policy=config.session,
            scheduler=scheduler,
            clock=clock,
        )
        authorized = AuthorizedTransport(http, session)
        orders = OrderApi(authorized)
        checkout = CheckoutOrchestrator(
            CheckoutStateStore(storage, namespace),
            session,
            cart=CartApi(authorized),
            orders=orders,
            addresses=AddressApi(authorized),
            payments=PaymentApi(authorized),
            policy=config.checkout,
            clock=clock,
        )
        return cls(config, http=http, session=session, checkout=checkout, orders=orders)

    async def start(self) -> bool:
        """Restore persisted state. True when a session was restored."""
        restored = self.session.restore()
        step = self.checkout.resume()
        logger.info("storefront_started", base_url=self.config.base_url, session_restored=restored, step=step.name)
        return restored

    async def aclose(self) -> None:
        await self.session.aclose()
        await self._http.aclose()

    async def __aenter__(self) -> Storefront:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


__all__ = ("Storefront",)
