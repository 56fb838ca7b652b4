"""
Checkout types — wizard state, selection, cart snapshot and order records.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum, StrEnum, auto
from typing import Protocol

from pydantic import TypeAdapter

from storefront._errors import StorefrontError
from storefront._types import Millis, Result


# ═══════════════════════════════════════════════════════════════════════════════
# Choices
# ═══════════════════════════════════════════════════════════════════════════════


class DeliveryType(StrEnum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class PaymentMethod(StrEnum):
    TRANSFER = "transfer"
    CASH = "cash"
    MERCADOPAGO = "mercadopago"
    MERCADOPAGO_CARD = "mercadopago-card"

    @property
    def is_online(self) -> bool:
        """Paid through a Mercado Pago checkout after the order exists."""
        return self in (PaymentMethod.MERCADOPAGO, PaymentMethod.MERCADOPAGO_CARD)


class WizardStep(Enum):
    """
    Position in the checkout wizard.

        SELECTING_DELIVERY → SELECTING_ADDRESS (delivery only)
                           → SELECTING_PAYMENT → REVIEWING
                           → SUBMITTING → COMPLETED | FAILED
    """

    SELECTING_DELIVERY = auto()
    SELECTING_ADDRESS = auto()
    SELECTING_PAYMENT = auto()
    REVIEWING = auto()
    SUBMITTING = auto()
    COMPLETED = auto()
    FAILED = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# Selection — Persisted Wizard Progress
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CheckoutSelection:
    """
    In-progress checkout choices.

    selected_address_id is a weak reference: used for lookup, never owned.
    checkout_id is minted once per begin_checkout and identifies the order
    submission to the backend across user-triggered retries.
    """

    checkout_id: str
    delivery_type: DeliveryType
    created_at: Millis
    selected_address_id: str | None = None
    payment_method: PaymentMethod | None = None
    owner_id: str | None = None

    def is_expired(self, now: Millis, ttl_ms: int) -> bool:
        return now - self.created_at >= ttl_ms

    def touched(self, now: Millis) -> CheckoutSelection:
        return replace(self, created_at=now)

    @property
    def is_delivery(self) -> bool:
        return self.delivery_type is DeliveryType.DELIVERY


SELECTION_CODEC: TypeAdapter[CheckoutSelection] = TypeAdapter(CheckoutSelection)


# ═══════════════════════════════════════════════════════════════════════════════
# Collaborator Data
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Address:
    id: str
    recipient_name: str
    street_address: str
    city: str
    province: str
    postal_code: str
    phone: str | None = None
    full_address: str | None = None
    is_default: bool = False


@dataclass(frozen=True, slots=True)
class LineItem:
    product_id: str
    name: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


@dataclass(frozen=True, slots=True)
class CartSnapshot:
    items: tuple[LineItem, ...]

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal(0))


# ═══════════════════════════════════════════════════════════════════════════════
# Submission — Derived, Never Persisted
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class OrderSubmission:
    """
    Order about to be submitted.

    Pickup orders never carry an address. Delivery orders carry
    shipping_address_id when a saved address was chosen, and omit it when
    the address was supplied inline.
    """

    delivery_type: DeliveryType
    items: tuple[LineItem, ...]
    total: Decimal
    idempotency_key: str
    shipping_address_id: str | None = None
    notes: str | None = None


class OrderStatus(StrEnum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    READY_PICKUP = "ready_pickup"
    SHIPPED = "shipped"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentStatus(StrEnum):
    PENDING = "pending"
    PAYMENT_PENDING = "payment_pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class OrderRecord:
    id: str
    status: OrderStatus
    payment_status: PaymentStatus
    delivery_type: DeliveryType
    total: Decimal
    order_number: str | None = None
    shipping_address_id: str | None = None
    notes: str | None = None


@dataclass(frozen=True, slots=True)
class PaymentPreference:
    """Mercado Pago checkout to send the buyer to."""

    preference_id: str
    init_point: str
    sandbox_init_point: str | None = None


# ═══════════════════════════════════════════════════════════════════════════════
# Collaborators
# ═══════════════════════════════════════════════════════════════════════════════


class OrderGateway(Protocol):
    async def create_order(self, submission: OrderSubmission) -> Result[OrderRecord, StorefrontError]: ...

    async def get_order_status(self, order_id: str) -> Result[OrderRecord, StorefrontError]: ...


class AddressGateway(Protocol):
    async def list_addresses(self) -> Result[list[Address], StorefrontError]: ...


class CartGateway(Protocol):
    async def current_items(self) -> Result[list[LineItem], StorefrontError]: ...

    async def clear(self) -> Result[None, StorefrontError]: ...


class PaymentGateway(Protocol):
    async def create_preference(self, order_id: str) -> Result[PaymentPreference, StorefrontError]: ...


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "DeliveryType",
    "PaymentMethod",
    "WizardStep",
    "CheckoutSelection",
    "SELECTION_CODEC",
    "Address",
    "LineItem",
    "CartSnapshot",
    "OrderSubmission",
    "OrderStatus",
    "PaymentStatus",
    "OrderRecord",
    "PaymentPreference",
    "OrderGateway",
    "AddressGateway",
    "CartGateway",
    "PaymentGateway",
)
