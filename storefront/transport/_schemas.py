"""
Wire schemas — pydantic models between JSON payloads and domain types.

Request bodies build from the domain (from_domain), response payloads
convert to it (to_domain). Keys are camelCase on the wire.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from storefront._errors import Errors, StorefrontError
from storefront._types import Error, Ok, Result
from storefront.checkout._types import (
    Address,
    DeliveryType,
    LineItem,
    OrderRecord,
    OrderStatus,
    OrderSubmission,
    PaymentPreference,
    PaymentStatus,
)
from storefront.session._types import Credentials, Grant, Registration, Role, User, Verification


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        # Ids arrive as numbers from some endpoints
        coerce_numbers_to_str=True,
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ═══════════════════════════════════════════════════════════════════════════════
# Decoding
# ═══════════════════════════════════════════════════════════════════════════════


def unwrap(payload: Any) -> Any:
    """Strip the {success, message, data} envelope when present."""
    if isinstance(payload, dict) and "data" in payload and "success" in payload:
        return payload["data"]
    return payload


def decode[T](schema: type[BaseModel], payload: Any) -> Result[T, StorefrontError]:
    """Validate payload against schema and convert it to the domain."""
    try:
        model = schema.model_validate(unwrap(payload))
    except ValidationError as e:
        return Error(Errors.rejected(200, f"Malformed {schema.__name__}: {e.error_count()} error(s)"))
    return Ok(model.to_domain())  # type: ignore[attr-defined]


def decode_list[T](schema: type[BaseModel], payload: Any) -> Result[list[T], StorefrontError]:
    items = unwrap(payload)
    if not isinstance(items, list):
        return Error(Errors.rejected(200, f"Expected a list of {schema.__name__}"))
    decoded: list[T] = []
    for item in items:
        match decode(schema, item):
            case Ok(value):
                decoded.append(value)
            case Error(err):
                return Error(err)
    return Ok(decoded)


# ═══════════════════════════════════════════════════════════════════════════════
# Auth
# ═══════════════════════════════════════════════════════════════════════════════


class LoginBody(WireModel):
    email: str
    password: str

    @classmethod
    def from_domain(cls, dom: Credentials) -> LoginBody:
        return cls(email=dom.email, password=dom.password)


class RegisterBody(WireModel):
    name: str
    email: str
    password: str

    @classmethod
    def from_domain(cls, dom: Registration) -> RegisterBody:
        return cls(name=dom.name, email=dom.email, password=dom.password)


class UserPayload(WireModel):
    id: str
    email: str
    name: str = ""
    role: Role = Role.USER

    def to_domain(self) -> User:
        return User(id=self.id, email=self.email, name=self.name, role=self.role)


class TokenPayload(WireModel):
    # Backends answer with accessToken, access_token or token
    access_token: str = Field(validation_alias=AliasChoices("accessToken", "access_token", "token"))
    user: UserPayload | None = None
    expires_in: str | int | None = None

    def to_domain(self) -> Grant:
        return Grant(
            access_token=self.access_token,
            user=self.user.to_domain() if self.user else None,
            expires_in=self.expires_in,
        )


class VerifyPayload(WireModel):
    valid: bool
    user: UserPayload | None = None
    expires_in: str | int | None = None

    def to_domain(self) -> Verification:
        return Verification(
            valid=self.valid,
            user=self.user.to_domain() if self.user else None,
            expires_in=self.expires_in,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Addresses and Cart
# ═══════════════════════════════════════════════════════════════════════════════


class AddressPayload(WireModel):
    id: str
    recipient_name: str
    street_address: str
    city: str
    province: str
    postal_code: str
    phone: str | None = None
    full_address: str | None = None
    is_default: bool = False

    def to_domain(self) -> Address:
        return Address(
            id=self.id,
            recipient_name=self.recipient_name,
            street_address=self.street_address,
            city=self.city,
            province=self.province,
            postal_code=self.postal_code,
            phone=self.phone,
            full_address=self.full_address,
            is_default=self.is_default,
        )


class ProductRef(WireModel):
    id: str
    name: str


class LineItemPayload(WireModel):
    product: ProductRef
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    def to_domain(self) -> LineItem:
        return LineItem(
            product_id=self.product.id,
            name=self.product.name,
            quantity=self.quantity,
            unit_price=self.unit_price,
            subtotal=self.subtotal,
        )


# ═══════════════════════════════════════════════════════════════════════════════
# Orders and Payments
# ═══════════════════════════════════════════════════════════════════════════════


class CreateOrderBody(WireModel):
    """orders/from-cart body. The backend builds lines from the server-side cart."""

    delivery_type: DeliveryType
    shipping_address_id: str | None = None
    notes: str | None = None

    @classmethod
    def from_domain(cls, dom: OrderSubmission) -> CreateOrderBody:
        return cls(
            delivery_type=dom.delivery_type,
            shipping_address_id=dom.shipping_address_id,
            notes=dom.notes,
        )


class AddressRef(WireModel):
    id: str


class OrderPayload(WireModel):
    id: str
    status: OrderStatus
    payment_status: PaymentStatus
    delivery_type: DeliveryType
    total: Decimal
    order_number: str | None = None
    shipping_address: AddressRef | None = None
    notes: str | None = None

    def to_domain(self) -> OrderRecord:
        return OrderRecord(
            id=self.id,
            status=self.status,
            payment_status=self.payment_status,
            delivery_type=self.delivery_type,
            total=self.total,
            order_number=self.order_number,
            shipping_address_id=self.shipping_address.id if self.shipping_address else None,
            notes=self.notes or None,
        )


class PreferenceBody(WireModel):
    order_id: str


class PreferencePayload(WireModel):
    preference_id: str
    init_point: str
    sandbox_init_point: str | None = None

    def to_domain(self) -> PaymentPreference:
        return PaymentPreference(
            preference_id=self.preference_id,
            init_point=self.init_point,
            sandbox_init_point=self.sandbox_init_point,
        )


__all__ = (
    "WireModel",
    "unwrap",
    "decode",
    "decode_list",
    "LoginBody",
    "RegisterBody",
    "UserPayload",
    "TokenPayload",
    "VerifyPayload",
    "AddressPayload",
    "ProductRef",
    "LineItemPayload",
    "CreateOrderBody",
    "AddressRef",
    "OrderPayload",
    "PreferenceBody",
    "PreferencePayload",
)
