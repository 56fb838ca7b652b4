"""
REST collaborators.

AuthApi talks to the auth endpoints with explicit tokens and backs the
Session Manager. The others go through AuthorizedTransport and back the
Checkout Orchestrator.
"""

from __future__ import annotations

import structlog

from storefront._errors import StorefrontError
from storefront._types import Ok, Result
from storefront.checkout._types import (
    Address,
    LineItem,
    OrderRecord,
    OrderSubmission,
    PaymentPreference,
)
from storefront.session._types import Credentials, Grant, Registration, Verification
from storefront.transport._authorized import AuthorizedTransport
from storefront.transport._http import HttpTransport
from storefront.transport._schemas import (
    AddressPayload,
    CreateOrderBody,
    LineItemPayload,
    LoginBody,
    OrderPayload,
    PreferenceBody,
    PreferencePayload,
    RegisterBody,
    TokenPayload,
    VerifyPayload,
    decode,
    decode_list,
)

logger = structlog.get_logger(__name__)


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ═══════════════════════════════════════════════════════════════════════════════
# Auth
# ═══════════════════════════════════════════════════════════════════════════════


class AuthApi:
    """auth/* endpoints. Implements the Session Manager's AuthGateway."""

    def __init__(self, http: HttpTransport) -> None:
        self._http = http

    async def login(self, credentials: Credentials) -> Result[Grant, StorefrontError]:
        result = await self._http.request(
            "POST",
            "auth/login",
            json=LoginBody.from_domain(credentials).to_wire(),
            credentials=True,
        )
        return result.then(lambda payload: decode(TokenPayload, payload))

    async def register(self, registration: Registration) -> Result[Grant, StorefrontError]:
        result = await self._http.request(
            "POST",
            "auth/register",
            json=RegisterBody.from_domain(registration).to_wire(),
            credentials=True,
        )
        return result.then(lambda payload: decode(TokenPayload, payload))

    async def refresh(self, token: str) -> Result[Grant, StorefrontError]:
        result = await self._http.request("POST", "auth/refresh", headers=_bearer(token))
        return result.then(lambda payload: decode(TokenPayload, payload))

    async def verify(self, token: str) -> Result[Verification, StorefrontError]:
        result = await self._http.request("GET", "auth/verify", headers=_bearer(token))
        return result.then(lambda payload: decode(VerifyPayload, payload))

    async def logout(self, token: str) -> Result[None, StorefrontError]:
        result = await self._http.request("POST", "auth/logout", headers=_bearer(token))
        return result.map(lambda _: None)


# ═══════════════════════════════════════════════════════════════════════════════
# Orders
# ═══════════════════════════════════════════════════════════════════════════════


class OrderApi:
    """orders/* endpoints. Implements OrderGateway."""

    def __init__(self, transport: AuthorizedTransport) -> None:
        self._transport = transport

    async def create_order(self, submission: OrderSubmission) -> Result[OrderRecord, StorefrontError]:
        result = await self._transport.request(
            "POST",
            "orders/from-cart",
            json=CreateOrderBody.from_domain(submission).to_wire(),
            headers={"Idempotency-Key": submission.idempotency_key},
        )
        return result.then(lambda payload: decode(OrderPayload, payload))

    async def get_order_status(self, order_id: str) -> Result[OrderRecord, StorefrontError]:
        result = await self._transport.request("GET", f"orders/{order_id}")
        return result.then(lambda payload: decode(OrderPayload, payload))

    async def my_orders(self) -> Result[list[OrderRecord], StorefrontError]:
        result = await self._transport.request("GET", "orders/my-orders")
        return result.then(lambda payload: decode_list(OrderPayload, payload))

    async def confirm_order(self, order_id: str) -> Result[OrderRecord, StorefrontError]:
        result = await self._transport.request(
            "PATCH", f"orders/{order_id}/confirm", json={"confirm": True}
        )
        return result.then(lambda payload: decode(OrderPayload, payload))


# ═══════════════════════════════════════════════════════════════════════════════
# Addresses, Cart, Payments
# ═══════════════════════════════════════════════════════════════════════════════


class AddressApi:
    """Implements AddressGateway. Read-only from the core's point of view."""

    def __init__(self, transport: AuthorizedTransport) -> None:
        self._transport = transport

    async def list_addresses(self) -> Result[list[Address], StorefrontError]:
        result = await self._transport.request("GET", "address")
        return result.then(lambda payload: decode_list(AddressPayload, payload))


class CartApi:
    """Implements CartGateway."""

    def __init__(self, transport: AuthorizedTransport) -> None:
        self._transport = transport

    async def current_items(self) -> Result[list[LineItem], StorefrontError]:
        result = await self._transport.request("GET", "cart")
        return result.then(lambda payload: decode_list(LineItemPayload, payload))

    async def clear(self) -> Result[None, StorefrontError]:
        result = await self._transport.request("DELETE", "cart/clear")
        if isinstance(result, Ok):
            logger.debug("cart_cleared")
        return result.map(lambda _: None)


class PaymentApi:
    """Implements PaymentGateway."""

    def __init__(self, transport: AuthorizedTransport) -> None:
        self._transport = transport

    async def create_preference(self, order_id: str) -> Result[PaymentPreference, StorefrontError]:
        result = await self._transport.request(
            "POST",
            "payments/create-preference",
            json=PreferenceBody(order_id=order_id).to_wire(),
        )
        return result.then(lambda payload: decode(PreferencePayload, payload))


__all__ = (
    "AuthApi",
    "OrderApi",
    "AddressApi",
    "CartApi",
    "PaymentApi",
)
