"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field

import httpx


# In-memory backend
@dataclass(slots=True)
class FakeBackend:
    """Serves the storefront REST API from memory through httpx.MockTransport."""

    users: dict[str, dict[str, str]] = field(default_factory=lambda: {
        "ana@example.com": {"id": "u1", "email": "ana@example.com", "name": "Ana", "role": "user"},
        "root@example.com": {"id": "u9", "email": "root@example.com", "name": "Root", "role": "admin"},
    })
    cart: list[dict[str, object]] = field(default_factory=lambda: [
        {"product": {"id": "p1", "name": "Mate"}, "quantity": 1, "unitPrice": "10000", "subtotal": "10000"},
        {"product": {"id": "p2", "name": "Yerba 1kg"}, "quantity": 2, "unitPrice": "4000", "subtotal": "8000"},
    ])
    addresses: list[dict[str, object]] = field(default_factory=lambda: [
        {
            "id": "A1",
            "recipientName": "Ana",
            "streetAddress": "Av. Siempre Viva 742",
            "city": "Córdoba",
            "province": "Córdoba",
            "postalCode": "5000",
            "isDefault": True,
        },
    ])
    orders: dict[str, dict[str, object]] = field(default_factory=dict)
    tokens: dict[str, str] = field(default_factory=dict)
    issued: int = 0

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/")
        body = json.loads(request.content) if request.content else {}
        print(f"  [API] {request.method} {path}")

        if (request.method, path) == ("POST", "auth/login"):
            user = self.users.get(body["email"])
            if user is None or body["password"] != "secret":
                return httpx.Response(401, json={"message": "Credenciales inválidas"})
            return httpx.Response(200, json=self._grant(user))

        user = self._bearer(request)
        if user is None:
            return httpx.Response(401, json={"message": "Unauthorized"})

        match request.method, path:
            case "POST", "auth/refresh":
                return httpx.Response(200, json=self._grant(user))
            case "GET", "auth/verify":
                return httpx.Response(200, json={"valid": True, "user": user})
            case "POST", "auth/logout":
                self.tokens = {t: u for t, u in self.tokens.items() if u != user["email"]}
                return httpx.Response(204)
            case "GET", "cart":
                return httpx.Response(200, json={"success": True, "data": self.cart})
            case "DELETE", "cart/clear":
                self.cart = []
                return httpx.Response(200, json={"success": True})
            case "GET", "address":
                return httpx.Response(200, json=self.addresses)
            case "POST", "orders/from-cart":
                key = request.headers.get("Idempotency-Key", "")
                if key not in self.orders:
                    self.orders[key] = self._order(body)
                return httpx.Response(201, json={"success": True, "data": self.orders[key]})
            case "POST", "payments/create-preference":
                return httpx.Response(
                    201,
                    json={"preferenceId": f"pref-{body['orderId']}", "initPoint": "https://mp.example/checkout"},
                )
        return httpx.Response(404, json={"message": f"Cannot {request.method} /{path}"})

    def _grant(self, user: dict[str, str]) -> dict[str, object]:
        self.issued += 1
        token = f"token-{self.issued}"
        self.tokens[token] = user["email"]
        return {"accessToken": token, "user": user, "expiresIn": "1h"}

    def _bearer(self, request: httpx.Request) -> dict[str, str] | None:
        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        email = self.tokens.get(token)
        return self.users.get(email) if email else None

    def _order(self, body: dict[str, object]) -> dict[str, object]:
        number = len(self.orders) + 1
        total = sum(int(str(line["subtotal"])) for line in self.cart)
        order: dict[str, object] = {
            "id": f"o{number}",
            "orderNumber": f"ORD-{number:04d}",
            "status": "pending",
            "paymentStatus": "pending",
            "deliveryType": body["deliveryType"],
            "total": str(total),
        }
        if "shippingAddressId" in body:
            order["shippingAddress"] = {"id": body["shippingAddressId"]}
        return order


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]]) -> None:
    asyncio.run(main())
