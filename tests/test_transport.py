import json
from collections.abc import Callable
from decimal import Decimal

import httpx
import pytest

from storefront import ErrorKind, Errors, StorefrontConfig
from storefront._types import Error, Ok
from storefront.checkout import DeliveryType, OrderStatus, OrderSubmission, PaymentStatus
from storefront.session import Credentials, Registration, Role, SessionManager, SessionState
from storefront.store import MemoryStorage
from storefront.transport import (
    AddressApi,
    AuthApi,
    AuthorizedTransport,
    CartApi,
    HttpTransport,
    OrderApi,
    PaymentApi,
    interpret,
)

from .conftest import CREDENTIALS, FakeAuthGateway, FakeClock


def http_for(handler: Callable[[httpx.Request], httpx.Response]) -> HttpTransport:
    config = StorefrontConfig(base_url="https://shop.test/api")
    return HttpTransport.from_config(config, transport=httpx.MockTransport(handler))


def body(request: httpx.Request) -> object:
    return json.loads(request.content)


ORDER = {
    "id": "o1",
    "status": "pending",
    "paymentStatus": "pending",
    "deliveryType": "delivery",
    "total": "18000.00",
    "orderNumber": "ORD-0001",
    "shippingAddress": {"id": "A1", "city": "Córdoba"},
}


class TestInterpret:
    @pytest.mark.parametrize(
        ("status", "payload", "kind"),
        [
            (401, {"message": "Token expired"}, ErrorKind.SESSION_EXPIRED),
            (400, {"message": "Bad"}, ErrorKind.VALIDATION),
            (422, {"message": "Bad"}, ErrorKind.VALIDATION),
            (409, {"message": "Email already registered"}, ErrorKind.CONFLICT),
            (500, {"message": "Boom"}, ErrorKind.REMOTE_UNAVAILABLE),
            (503, None, ErrorKind.REMOTE_UNAVAILABLE),
            (404, None, ErrorKind.REJECTED),
            (403, {"error": "Forbidden"}, ErrorKind.REJECTED),
        ],
    )
    def test_status_mapping(self, status: int, payload: object, kind: ErrorKind) -> None:
        response = httpx.Response(status, json=payload) if payload is not None else httpx.Response(status)
        result = interpret(response)
        assert isinstance(result, Error)
        assert result.error.kind is kind
        assert result.error.status == status

    def test_credentials_401_is_invalid_credentials(self) -> None:
        result = interpret(httpx.Response(401, json={"message": "Credenciales inválidas"}), credentials=True)
        assert result == Error(Errors.invalid_credentials("Credenciales inválidas"))

    def test_validation_messages_are_joined(self) -> None:
        result = interpret(httpx.Response(400, json={"message": ["email must be an email", "password too short"]}))
        assert isinstance(result, Error)
        assert result.error.message == "email must be an email, password too short"

    def test_reason_phrase_when_body_is_silent(self) -> None:
        result = interpret(httpx.Response(404))
        assert isinstance(result, Error)
        assert result.error.message == "Not Found"

    def test_empty_success_body(self) -> None:
        assert interpret(httpx.Response(204)) == Ok(None)

    def test_malformed_success_body(self) -> None:
        result = interpret(httpx.Response(200, content=b"<html>"))
        assert isinstance(result, Error)
        assert result.error.kind is ErrorKind.REJECTED


class TestHttpTransport:
    async def test_network_failure_is_remote_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        http = http_for(handler)
        result = await http.request("GET", "cart")
        await http.aclose()

        assert isinstance(result, Error)
        assert result.error.kind is ErrorKind.REMOTE_UNAVAILABLE
        assert isinstance(result.error.cause, httpx.ConnectError)

    async def test_paths_resolve_against_base_url(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json={"ok": True})

        http = http_for(handler)
        assert await http.request("GET", "orders/my-orders") == Ok({"ok": True})
        assert seen == ["/api/orders/my-orders"]


class TestAuthApi:
    async def test_login(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert (request.method, request.url.path) == ("POST", "/api/auth/login")
            assert body(request) == {"email": "ana@example.com", "password": "secret"}
            return httpx.Response(
                200,
                json={
                    "accessToken": "jwt-token",
                    "user": {"id": 7, "email": "ana@example.com", "name": "Ana", "role": "admin"},
                    "expiresIn": "1h",
                },
            )

        grant = (await AuthApi(http_for(handler)).login(CREDENTIALS)).unwrap()

        assert grant.access_token == "jwt-token"
        assert grant.user is not None
        assert grant.user.id == "7"
        assert grant.user.role is Role.ADMIN
        assert grant.expires_in == "1h"

    async def test_login_rejected(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "Credenciales inválidas"})

        result = await AuthApi(http_for(handler)).login(Credentials("ana@example.com", "wrong"))

        assert isinstance(result, Error)
        assert result.error.kind is ErrorKind.INVALID_CREDENTIALS
        assert result.error.message == "Credenciales inválidas"

    async def test_enveloped_refresh(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Authorization"] == "Bearer old"
            return httpx.Response(200, json={"success": True, "data": {"access_token": "new", "expires_in": 3600}})

        grant = (await AuthApi(http_for(handler)).refresh("old")).unwrap()

        assert grant.access_token == "new"
        assert grant.user is None

    async def test_verify(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert (request.method, request.url.path) == ("GET", "/api/auth/verify")
            return httpx.Response(200, json={"valid": True, "user": {"id": "u1", "email": "ana@example.com", "name": "Ana"}})

        verification = (await AuthApi(http_for(handler)).verify("t")).unwrap()

        assert verification.valid
        assert verification.user is not None
        assert verification.user.role is Role.USER

    async def test_malformed_token_payload(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"user": {"id": "u1"}})

        result = await AuthApi(http_for(handler)).login(CREDENTIALS)

        assert isinstance(result, Error)
        assert result.error.kind is ErrorKind.REJECTED

    async def test_conflict_on_register(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(409, json={"message": "El email ya está registrado"})

        result = await AuthApi(http_for(handler)).register(Registration("Ana", "ana@example.com", "secret"))

        assert isinstance(result, Error)
        assert result.error.kind is ErrorKind.CONFLICT


class TestAuthorizedTransport:
    @pytest.fixture
    async def signed_in(self, session: SessionManager) -> SessionManager:
        await session.login(CREDENTIALS)
        return session

    async def test_sends_bearer_and_idempotency_key(self, signed_in: SessionManager) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"success": True, "data": ORDER})

        orders = OrderApi(AuthorizedTransport(http_for(handler), signed_in))
        submission = OrderSubmission(
            delivery_type=DeliveryType.DELIVERY,
            items=(),
            total=Decimal(18000),
            idempotency_key="c-123",
            shipping_address_id="A1",
        )

        order = (await orders.create_order(submission)).unwrap()

        request = seen[0]
        assert (request.method, request.url.path) == ("POST", "/api/orders/from-cart")
        assert request.headers["Authorization"] == "Bearer token-1"
        assert request.headers["Idempotency-Key"] == "c-123"
        assert body(request) == {"deliveryType": "delivery", "shippingAddressId": "A1"}
        assert order.id == "o1"
        assert order.status is OrderStatus.PENDING
        assert order.payment_status is PaymentStatus.PENDING
        assert order.total == Decimal("18000.00")
        assert order.shipping_address_id == "A1"

    async def test_renews_and_retries_once(self, signed_in: SessionManager, gateway: FakeAuthGateway) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["Authorization"])
            if request.headers["Authorization"] == "Bearer token-1":
                return httpx.Response(401, json={"message": "jwt expired"})
            return httpx.Response(200, json=[])

        result = await CartApi(AuthorizedTransport(http_for(handler), signed_in)).current_items()

        assert result == Ok([])
        assert seen == ["Bearer token-1", "Bearer token-2"]
        assert gateway.calls.count("refresh") == 1

    async def test_failed_renewal_surfaces_expiry(self, signed_in: SessionManager, gateway: FakeAuthGateway) -> None:
        gateway.refresh_result = Error(Errors.session_expired())

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "jwt expired"})

        result = await CartApi(AuthorizedTransport(http_for(handler), signed_in)).current_items()

        assert isinstance(result, Error)
        assert result.error.kind is ErrorKind.SESSION_EXPIRED
        assert signed_in.state is SessionState.UNAUTHENTICATED

    async def test_without_session(self, session: SessionManager) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=[])

        result = await CartApi(AuthorizedTransport(http_for(handler), session)).current_items()

        assert isinstance(result, Error)
        assert result.error.kind is ErrorKind.UNAUTHENTICATED
        assert calls == []

    async def test_lapsed_session_sends_no_bearer(
        self,
        signed_in: SessionManager,
        clock: FakeClock,
        storage: MemoryStorage,
    ) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=[])

        clock.advance(seconds=7200)
        result = await CartApi(AuthorizedTransport(http_for(handler), signed_in)).current_items()

        assert isinstance(result, Error)
        assert result.error.kind is ErrorKind.UNAUTHENTICATED
        assert calls == []
        assert len(storage) == 0


class TestCollaborators:
    @pytest.fixture
    async def signed_in(self, session: SessionManager) -> SessionManager:
        await session.login(CREDENTIALS)
        return session

    async def test_cart_items(self, signed_in: SessionManager) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "data": [
                        {"product": {"id": 1, "name": "Yerba"}, "quantity": 2, "unitPrice": "4000", "subtotal": "8000"},
                        {"product": {"id": 2, "name": "Mate"}, "quantity": 1, "unitPrice": "10000", "subtotal": "10000"},
                    ],
                },
            )

        items = (await CartApi(AuthorizedTransport(http_for(handler), signed_in)).current_items()).unwrap()

        assert [(i.product_id, i.quantity) for i in items] == [("1", 2), ("2", 1)]
        assert sum(i.subtotal for i in items) == Decimal(18000)

    async def test_cart_clear(self, signed_in: SessionManager) -> None:
        seen: list[tuple[str, str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            return httpx.Response(200, json={"success": True})

        assert await CartApi(AuthorizedTransport(http_for(handler), signed_in)).clear() == Ok(None)
        assert seen == [("DELETE", "/api/cart/clear")]

    async def test_addresses(self, signed_in: SessionManager) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/address"
            return httpx.Response(
                200,
                json=[
                    {
                        "id": "A1",
                        "recipientName": "Ana",
                        "streetAddress": "Av. Siempre Viva 742",
                        "city": "Córdoba",
                        "province": "Córdoba",
                        "postalCode": "5000",
                        "isDefault": True,
                    }
                ],
            )

        addresses = (await AddressApi(AuthorizedTransport(http_for(handler), signed_in)).list_addresses()).unwrap()

        assert addresses[0].id == "A1"
        assert addresses[0].is_default

    async def test_payment_preference(self, signed_in: SessionManager) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert body(request) == {"orderId": "o1"}
            return httpx.Response(201, json={"preferenceId": "pref-1", "initPoint": "https://mp.example/pay"})

        preference = (await PaymentApi(AuthorizedTransport(http_for(handler), signed_in)).create_preference("o1")).unwrap()

        assert preference.preference_id == "pref-1"
        assert preference.sandbox_init_point is None

    async def test_order_status(self, signed_in: SessionManager) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert (request.method, request.url.path) == ("GET", "/api/orders/o1")
            return httpx.Response(200, json={**ORDER, "status": "shipped", "paymentStatus": "approved"})

        order = (await OrderApi(AuthorizedTransport(http_for(handler), signed_in)).get_order_status("o1")).unwrap()

        assert order.status is OrderStatus.SHIPPED
        assert order.payment_status is PaymentStatus.APPROVED

    async def test_my_orders(self, signed_in: SessionManager) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/orders/my-orders"
            return httpx.Response(200, json={"success": True, "data": [ORDER, {**ORDER, "id": "o2"}]})

        orders = (await OrderApi(AuthorizedTransport(http_for(handler), signed_in)).my_orders()).unwrap()

        assert [o.id for o in orders] == ["o1", "o2"]

    async def test_confirm_order(self, signed_in: SessionManager) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert (request.method, request.url.path) == ("PATCH", "/api/orders/o1/confirm")
            assert body(request) == {"confirm": True}
            return httpx.Response(200, json={**ORDER, "status": "confirmed"})

        order = (await OrderApi(AuthorizedTransport(http_for(handler), signed_in)).confirm_order("o1")).unwrap()

        assert order.status is OrderStatus.CONFIRMED
