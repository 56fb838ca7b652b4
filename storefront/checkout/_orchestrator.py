"""
Checkout Orchestrator — owner of the checkout wizard.

    checkout = CheckoutOrchestrator(
        CheckoutStateStore(storage),
        session,
        cart=cart_api,
        orders=order_api,
        addresses=address_api,
        payments=payment_api,
    )

    checkout.begin_checkout(DeliveryType.DELIVERY, address_id="A1")
    checkout.select_payment(PaymentMethod.MERCADOPAGO)

    match await checkout.finalize(notes="Ring twice"):
        case Ok(order):
            link = await checkout.request_payment(order)
        case Error(err):
            # Wizard is FAILED, selection kept: the user may retry.
            show(err.message)

Only this class writes to the CheckoutStateStore. The selection expires
30 minutes after the last interaction; expiry is judged on every read.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, replace

import structlog
from pydantic import ValidationError

from storefront._errors import Errors, StorefrontError
from storefront._signal import Channel
from storefront._types import Clock, Error, Ok, Result, system_clock
from storefront.checkout._policy import CheckoutPolicy
from storefront.checkout._types import (
    SELECTION_CODEC,
    Address,
    AddressGateway,
    CartGateway,
    CartSnapshot,
    CheckoutSelection,
    DeliveryType,
    OrderGateway,
    OrderRecord,
    OrderSubmission,
    PaymentGateway,
    PaymentMethod,
    PaymentPreference,
    WizardStep,
)
from storefront.session import SessionManager
from storefront.store import CheckoutStateStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CheckoutSnapshot:
    """Read-only view of the wizard, pushed on every step change."""

    step: WizardStep
    selection: CheckoutSelection | None
    error: StorefrontError | None = None


def _new_checkout_id() -> str:
    return uuid.uuid4().hex


class CheckoutOrchestrator:
    def __init__(
        self,
        state: CheckoutStateStore,
        session: SessionManager,
        *,
        cart: CartGateway,
        orders: OrderGateway,
        addresses: AddressGateway,
        payments: PaymentGateway,
        policy: CheckoutPolicy | None = None,
        clock: Clock = system_clock,
        new_id: Callable[[], str] = _new_checkout_id,
    ) -> None:
        self._state = state
        self._session = session
        self._cart = cart
        self._orders = orders
        self._addresses = addresses
        self._payments = payments
        self._policy = policy or CheckoutPolicy()
        self._clock = clock
        self._new_id = new_id

        self._step = WizardStep.SELECTING_DELIVERY
        self._error: StorefrontError | None = None
        # checkout_id of the submission in flight
        self._submitting: str | None = None
        # order id → payment method chosen for it
        self._paid_with: dict[str, PaymentMethod | None] = {}

        self.changes: Channel[CheckoutSnapshot] = Channel("checkout")

    # ═══════════════════════════════════════════════════════════════════════════
    # Read-only accessors
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def step(self) -> WizardStep:
        return self._step

    @property
    def last_error(self) -> StorefrontError | None:
        return self._error

    def is_active(self) -> bool:
        """
        Whether a live selection exists.

        Recomputed on every call: an expired selection is cleared here.
        """
        return self.current_selection() is not None

    def current_selection(self) -> CheckoutSelection | None:
        selection = self._load()
        if selection is None and self._step not in (WizardStep.COMPLETED, WizardStep.SUBMITTING):
            self._move(WizardStep.SELECTING_DELIVERY)
        return selection

    def snapshot(self) -> CheckoutSnapshot:
        return CheckoutSnapshot(self._step, self._load(), self._error)

    def resume(self) -> WizardStep:
        """Rebuild the wizard position from a persisted selection (after a reload)."""
        selection = self._load()
        self._move(self._step_for(selection) if selection else WizardStep.SELECTING_DELIVERY)
        return self._step

    # ═══════════════════════════════════════════════════════════════════════════
    # Wizard
    # ═══════════════════════════════════════════════════════════════════════════

    def begin_checkout(
        self,
        delivery_type: DeliveryType,
        address_id: str | None = None,
    ) -> Result[CheckoutSelection, StorefrontError]:
        """Start a new checkout. Any previous selection is replaced."""
        if self._submitting is not None:
            return Error(Errors.submission_in_progress(self._submitting))

        if address_id is not None and delivery_type is DeliveryType.PICKUP:
            logger.warning("pickup_address_ignored", address_id=address_id)
            address_id = None

        user = self._session.user
        selection = CheckoutSelection(
            checkout_id=self._new_id(),
            delivery_type=delivery_type,
            created_at=self._clock(),
            selected_address_id=address_id,
            owner_id=user.id if user else None,
        )
        self._save(selection)
        self._error = None
        logger.info(
            "checkout_started",
            checkout_id=selection.checkout_id,
            delivery_type=delivery_type.value,
        )
        self._move(self._step_for(selection))
        return Ok(selection)

    def update_address(self, address_id: str) -> Result[CheckoutSelection, StorefrontError]:
        """Choose a saved address. Re-stamps the selection."""
        selection = self._load()
        if selection is None:
            logger.warning("address_update_without_checkout", address_id=address_id)
            return Error(Errors.incomplete_selection())

        if not selection.is_delivery:
            logger.warning(
                "address_update_ignored",
                checkout_id=selection.checkout_id,
                delivery_type=selection.delivery_type.value,
            )
            return Ok(selection)

        return self._mutate(replace(selection, selected_address_id=address_id))

    def select_payment(self, method: PaymentMethod) -> Result[CheckoutSelection, StorefrontError]:
        selection = self._load()
        if selection is None:
            return Error(Errors.incomplete_selection())
        return self._mutate(replace(selection, payment_method=method))

    def cancel(self) -> Result[None, StorefrontError]:
        """
        Abandon checkout, whatever the selection holds.

        Rejected with SUBMISSION_IN_PROGRESS while finalize() is in flight:
        the order request has already left.
        """
        if self._submitting is not None:
            logger.warning("cancel_rejected_in_flight", checkout_id=self._submitting)
            return Error(Errors.submission_in_progress(self._submitting))

        self._state.clear()
        self._error = None
        logger.info("checkout_cancelled")
        self._move(WizardStep.SELECTING_DELIVERY)
        return Ok(None)

    def _mutate(self, selection: CheckoutSelection) -> Result[CheckoutSelection, StorefrontError]:
        user = self._session.user
        if not self._session.is_valid() or user is None:
            return Error(Errors.unauthenticated())

        updated = replace(selection, owner_id=user.id).touched(self._clock())
        self._save(updated)
        self._move(self._step_for(updated))
        return Ok(updated)

    @staticmethod
    def _step_for(selection: CheckoutSelection) -> WizardStep:
        if selection.payment_method is not None:
            return WizardStep.REVIEWING
        if selection.is_delivery and selection.selected_address_id is None:
            return WizardStep.SELECTING_ADDRESS
        return WizardStep.SELECTING_PAYMENT

    # ═══════════════════════════════════════════════════════════════════════════
    # Lookups
    # ═══════════════════════════════════════════════════════════════════════════

    async def selected_address(self) -> Result[Address | None, StorefrontError]:
        """Resolve the selected address id to display data."""
        selection = self._load()
        if selection is None or selection.selected_address_id is None:
            return Ok(None)

        wanted = selection.selected_address_id
        result = await self._addresses.list_addresses()
        return result.map(lambda addresses: next((a for a in addresses if a.id == wanted), None))

    # ═══════════════════════════════════════════════════════════════════════════
    # Submission
    # ═══════════════════════════════════════════════════════════════════════════

    async def build_submission(self, notes: str | None = None) -> Result[OrderSubmission, StorefrontError]:
        """
        Assemble the order DTO from the selection and a fresh cart snapshot.

        Fails with UNAUTHENTICATED, INCOMPLETE_SELECTION or EMPTY_CART.
        """
        match self._require_context():
            case Error(err):
                return Error(err)
            case Ok(_):
                pass

        items = await self._cart.current_items()
        match items:
            case Error(err):
                return Error(err)
            case Ok(lines):
                cart = CartSnapshot(tuple(lines))

        if cart.is_empty:
            return Error(Errors.empty_cart())

        # The selection may have expired or the session ended while the cart loaded
        match self._require_context():
            case Error(err):
                return Error(err)
            case Ok(selection):
                pass

        return Ok(
            OrderSubmission(
                delivery_type=selection.delivery_type,
                items=cart.items,
                total=cart.total,
                idempotency_key=selection.checkout_id,
                shipping_address_id=selection.selected_address_id if selection.is_delivery else None,
                notes=notes.strip() if notes and notes.strip() else None,
            )
        )

    def _require_context(self) -> Result[CheckoutSelection, StorefrontError]:
        # A signed-out owner cannot see their selection, so identity comes first
        if not self._session.is_valid():
            return Error(Errors.unauthenticated())
        selection = self._load()
        if selection is None:
            return Error(Errors.incomplete_selection())
        return Ok(selection)

    async def finalize(self, notes: str | None = None) -> Result[OrderRecord, StorefrontError]:
        """
        Submit the order.

        A call while another submission is in flight is rejected with
        SUBMISSION_IN_PROGRESS. Failures are returned as-is and never
        retried here; the selection survives them.
        """
        if self._submitting is not None:
            logger.warning("submission_rejected_in_flight", checkout_id=self._submitting)
            return Error(Errors.submission_in_progress(self._submitting))

        selection = self._load()
        # Claimed before the first suspension point
        self._submitting = selection.checkout_id if selection else "unknown"
        self._error = None
        self._move(WizardStep.SUBMITTING)
        try:
            return await self._submit(selection, notes)
        finally:
            self._submitting = None

    async def _submit(
        self,
        selection: CheckoutSelection | None,
        notes: str | None,
    ) -> Result[OrderRecord, StorefrontError]:
        built = await self.build_submission(notes)
        match built:
            case Error(err):
                return self._fail(err)
            case Ok(submission):
                pass

        logger.info(
            "order_submitting",
            checkout_id=submission.idempotency_key,
            delivery_type=submission.delivery_type.value,
            items=len(submission.items),
            total=str(submission.total),
        )
        created = await self._orders.create_order(submission)
        match created:
            case Error(err):
                return self._fail(err)
            case Ok(order):
                pass

        self._paid_with[order.id] = selection.payment_method if selection else None
        self._state.clear()
        cleared = await self._cart.clear()
        if isinstance(cleared, Error):
            # The order exists; a stale cart view is not a checkout failure
            logger.warning("cart_clear_failed", order_id=order.id, kind=cleared.error.kind.name)

        logger.info("order_submitted", order_id=order.id, checkout_id=submission.idempotency_key)
        self._move(WizardStep.COMPLETED)
        return Ok(order)

    def _fail(self, err: StorefrontError) -> Result[OrderRecord, StorefrontError]:
        logger.warning("order_submission_failed", kind=err.kind.name, status=err.status, message=err.message)
        self._error = err
        self._move(WizardStep.FAILED)
        return Error(err)

    # ═══════════════════════════════════════════════════════════════════════════
    # Payment
    # ═══════════════════════════════════════════════════════════════════════════

    async def request_payment(
        self,
        order: OrderRecord,
        method: PaymentMethod | None = None,
    ) -> Result[PaymentPreference, StorefrontError]:
        """
        Create a Mercado Pago checkout for an order paid online.

        method defaults to the one chosen for the order during checkout.
        """
        method = method or self._paid_with.get(order.id)
        if method is None or not method.is_online:
            return Error(Errors.validation(f"Order {order.id} is not paid online"))
        if not self._session.is_valid():
            return Error(Errors.unauthenticated())
        return await self._payments.create_preference(order.id)

    # ═══════════════════════════════════════════════════════════════════════════
    # Persistence
    # ═══════════════════════════════════════════════════════════════════════════

    def _load(self) -> CheckoutSelection | None:
        raw = self._state.load()
        if raw is None:
            return None

        try:
            selection = SELECTION_CODEC.validate_json(raw)
        except ValidationError:
            logger.info("checkout_selection_malformed")
            self._state.clear()
            return None

        if selection.is_expired(self._clock(), self._policy.ttl_ms):
            logger.info("checkout_selection_expired", checkout_id=selection.checkout_id)
            self._state.clear()
            return None

        if selection.owner_id is not None:
            user = self._session.user
            if user is None:
                return None
            if user.id != selection.owner_id:
                logger.info("checkout_selection_foreign", checkout_id=selection.checkout_id)
                self._state.clear()
                return None

        return selection

    def _save(self, selection: CheckoutSelection) -> None:
        self._state.save(SELECTION_CODEC.dump_json(selection).decode())

    def _move(self, step: WizardStep) -> None:
        if step is self._step:
            return
        logger.debug("checkout_step", previous=self._step.name, step=step.name)
        self._step = step
        self.changes.emit(CheckoutSnapshot(step, self._load(), self._error))


__all__ = ("CheckoutOrchestrator", "CheckoutSnapshot")
