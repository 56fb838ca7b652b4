"""
Checkout — the multi-step order wizard.

    from storefront import checkout as C

    checkout.begin_checkout(C.DeliveryType.PICKUP)
    checkout.select_payment(C.PaymentMethod.CASH)
    result = await checkout.finalize()
"""

from storefront.checkout._types import (
    DeliveryType,
    PaymentMethod,
    WizardStep,
    CheckoutSelection,
    Address,
    LineItem,
    CartSnapshot,
    OrderSubmission,
    OrderStatus,
    PaymentStatus,
    OrderRecord,
    PaymentPreference,
    OrderGateway,
    AddressGateway,
    CartGateway,
    PaymentGateway,
)
from storefront.checkout._policy import CheckoutPolicy
from storefront.checkout._orchestrator import CheckoutOrchestrator, CheckoutSnapshot

__all__ = (
    # Types
    "DeliveryType",
    "PaymentMethod",
    "WizardStep",
    "CheckoutSelection",
    "Address",
    "LineItem",
    "CartSnapshot",
    "OrderSubmission",
    "OrderStatus",
    "PaymentStatus",
    "OrderRecord",
    "PaymentPreference",
    # Collaborators
    "OrderGateway",
    "AddressGateway",
    "CartGateway",
    "PaymentGateway",
    # Policy
    "CheckoutPolicy",
    # Orchestrator
    "CheckoutOrchestrator",
    "CheckoutSnapshot",
)
