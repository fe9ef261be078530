"""Orders for lab services: creation, payment, fulfilment, refunds and cancellation."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Hashable

from medchain.primitives import (
    DispatchError,
    Event,
    Origin,
    System,
    blake2_256,
    encode_u64,
    ensure_signed,
)
from medchain.traits import GeneticTestingProvider, OrderEventEmitter, ServicesProvider

PALLET = "Orders"
REFUND_PERIOD_MS = 7 * 24 * 60 * 60 * 1000
_U32_MAX = (1 << 32) - 1


class OrderError(DispatchError):
    """Base class of errors raised by the orders pallet."""


class ServiceDoesNotExist(OrderError):
    """The ordered service does not exist."""


class OrderNotFound(OrderError):
    """The order does not exist."""


class UnauthorizedOrderFulfillment(OrderError):
    """Only the seller who owns the service may fulfill the order."""


class UnauthorizedOrderCancellation(OrderError):
    """Only the customer who created the order may cancel it."""


class DnaSampleNotSuccessfullyProcessed(OrderError):
    """The order cannot be fulfilled before its sample is processed."""


class OrderNotYetExpired(OrderError):
    """The order cannot be refunded yet."""


class Unauthorized(OrderError):
    """The account is not allowed to make this call."""


class DnaSampleInitializationError(OrderError):
    """The DNA sample for the order could not be created."""


class OrderStatus(enum.Enum):
    UNPAID = "Unpaid"
    PAID = "Paid"
    SUCCESS = "Success"
    REFUNDED = "Refunded"
    CANCELLED = "Cancelled"


@dataclass(frozen=True)
class Order:
    """An order of a service placed by a customer."""

    id: bytes
    service_id: bytes
    customer_id: Hashable
    customer_box_public_key: bytes
    seller_id: Hashable
    dna_sample_tracking_id: bytes
    price: int
    created_at: int
    updated_at: int
    status: OrderStatus = OrderStatus.UNPAID


def _encode_account_id(account_id: Hashable) -> bytes:
    if isinstance(account_id, (bytes, bytearray)):
        return bytes(account_id)
    if isinstance(account_id, int) and not isinstance(account_id, bool):
        return encode_u64(account_id)
    raise TypeError(f"cannot encode account id of type {type(account_id).__name__}")


def _encode_nonce(nonce: int) -> bytes:
    if not 0 <= nonce <= _U32_MAX:
        raise ValueError(f"nonce {nonce} does not fit in u32")
    return nonce.to_bytes(4, "little")


class Orders(OrderEventEmitter):
    """The orders pallet."""

    def __init__(
        self,
        system: System,
        services: ServicesProvider,
        genetic_testing: GeneticTestingProvider,
        escrow_key: Hashable,
    ) -> None:
        self.system = system
        self.services = services
        self.genetic_testing = genetic_testing
        self.escrow_key = escrow_key
        self._orders: dict[bytes, Order] = {}
        self._orders_by_customer: dict[Hashable, list[bytes]] = {}
        self._orders_by_seller: dict[Hashable, list[bytes]] = {}
        self._last_order_by_customer: dict[Hashable, bytes] = {}

    # ----- dispatchable calls -----

    def _emit(self, name: str, order: Order) -> None:
        self.system.deposit_event(Event(PALLET, name, (order,)))

    def create_order(
        self, origin: Origin, service_id: bytes, customer_box_public_key: bytes
    ) -> None:
        who = ensure_signed(origin)
        self._emit("OrderCreated", self.do_create_order(who, service_id, customer_box_public_key))

    def cancel_order(self, origin: Origin, order_id: bytes) -> None:
        who = ensure_signed(origin)
        self._emit("OrderCancelled", self.do_cancel_order(who, order_id))

    def set_order_paid(self, origin: Origin, order_id: bytes) -> None:
        who = ensure_signed(origin)
        self._emit("OrderPaid", self.do_set_order_paid(who, order_id))

    def fulfill_order(self, origin: Origin, order_id: bytes) -> None:
        who = ensure_signed(origin)
        self._emit("OrderSuccess", self.do_fulfill_order(who, order_id))

    def refund_order(self, origin: Origin, order_id: bytes) -> None:
        # The refund call goes through the fulfilment path and reports a refund.
        who = ensure_signed(origin)
        self._emit("OrderRefunded", self.do_fulfill_order(who, order_id))

    # ----- logic -----

    def do_create_order(
        self, customer_id: Hashable, service_id: bytes, customer_box_public_key: bytes
    ) -> Order:
        service = self.services.service_by_id(service_id)
        if service is None:
            raise ServiceDoesNotExist(f"no service {bytes(service_id).hex()}")
        order_id = self.generate_order_id(customer_id, service_id)
        seller_id = service.owner_id
        now = self.system.now()
        try:
            dna_sample = self.genetic_testing.create_dna_sample(seller_id, customer_id, order_id)
        except DispatchError as error:
            raise DnaSampleInitializationError("could not create the DNA sample") from error
        order = Order(
            id=order_id,
            service_id=service_id,
            customer_id=customer_id,
            customer_box_public_key=customer_box_public_key,
            seller_id=seller_id,
            dna_sample_tracking_id=dna_sample.tracking_id,
            price=service.price,
            created_at=now,
            updated_at=now,
        )
        self._insert_order(order)
        return order

    def _existing(self, order_id: bytes) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFound(f"no order {bytes(order_id).hex()}")
        return order

    def do_cancel_order(self, customer_id: Hashable, order_id: bytes) -> Order:
        order = self._existing(order_id)
        if order.customer_id != customer_id:
            raise UnauthorizedOrderCancellation(f"{customer_id!r} did not create the order")
        try:
            self.genetic_testing.delete_dna_sample(order.dna_sample_tracking_id)
        except DispatchError:
            pass
        return self.update_order_status(order_id, OrderStatus.CANCELLED)

    def _ensure_escrow(self, account_id: Hashable) -> None:
        if account_id != self.escrow_key:
            raise Unauthorized(f"{account_id!r} is not the escrow account")

    def do_set_order_paid(self, escrow_account_id: Hashable, order_id: bytes) -> Order:
        self._ensure_escrow(escrow_account_id)
        order = self.update_order_status(order_id, OrderStatus.PAID)
        if order is None:
            raise OrderNotFound(f"no order {bytes(order_id).hex()}")
        return order

    def do_fulfill_order(self, seller_id: Hashable, order_id: bytes) -> Order:
        order = self._existing(order_id)
        if order.seller_id != seller_id:
            raise UnauthorizedOrderFulfillment(f"{seller_id!r} is not the seller")
        dna_sample = self.genetic_testing.dna_sample_by_tracking_id(order.dna_sample_tracking_id)
        if dna_sample is None or not dna_sample.process_success():
            raise DnaSampleNotSuccessfullyProcessed("the DNA sample is not processed")
        return self.update_order_status(order_id, OrderStatus.SUCCESS)

    def do_refund_order(self, escrow_account_id: Hashable, order_id: bytes) -> Order:
        self._ensure_escrow(escrow_account_id)
        order = self._existing(order_id)
        if not self.order_can_be_refunded(order):
            raise OrderNotYetExpired("the order cannot be refunded yet")
        return self.update_order_status(order_id, OrderStatus.REFUNDED)

    def generate_order_id(self, customer_id: Hashable, service_id: bytes) -> bytes:
        """Hash of the customer id, the service id and the customer's account nonce."""
        nonce = self.system.account_nonce(customer_id)
        seed = _encode_account_id(customer_id) + bytes(service_id) + _encode_nonce(nonce)
        return blake2_256(seed)

    def update_order_status(self, order_id: bytes, status: OrderStatus) -> Order | None:
        order = self._orders.get(order_id)
        if order is None:
            return None
        order = replace(order, status=status, updated_at=self.system.now())
        self._orders[order_id] = order
        return order

    def _insert_order(self, order: Order) -> None:
        self._orders[order.id] = order
        self._last_order_by_customer[order.customer_id] = order.id
        self._orders_by_seller.setdefault(order.seller_id, []).append(order.id)
        self._orders_by_customer.setdefault(order.customer_id, []).append(order.id)

    def remove_order_id_from_orders_by_seller(self, seller_id: Hashable, order_id: bytes) -> None:
        orders = self._orders_by_seller.get(seller_id, [])
        self._orders_by_seller[seller_id] = [o for o in orders if o != order_id]

    def remove_order_id_from_orders_by_customer(
        self, customer_id: Hashable, order_id: bytes
    ) -> None:
        orders = self._orders_by_customer.get(customer_id, [])
        self._orders_by_customer[customer_id] = [o for o in orders if o != order_id]

    def order_can_be_refunded(self, order: Order) -> bool:
        """An order is refundable once seven days have passed or its sample was rejected."""
        expires_at = order.created_at + REFUND_PERIOD_MS
        if self.system.now() > expires_at:
            return True
        dna_sample = self.genetic_testing.dna_sample_by_tracking_id(order.dna_sample_tracking_id)
        return dna_sample is not None and dna_sample.is_rejected()

    # ----- queries -----

    def order_by_id(self, order_id: bytes) -> Order | None:
        return self._orders.get(order_id)

    def orders_by_customer_id(self, customer_id: Hashable) -> list[bytes] | None:
        orders = self._orders_by_customer.get(customer_id)
        return None if orders is None else list(orders)

    def orders_by_seller_id(self, seller_id: Hashable) -> list[bytes] | None:
        orders = self._orders_by_seller.get(seller_id)
        return None if orders is None else list(orders)

    def last_order_by_customer_id(self, customer_id: Hashable) -> bytes | None:
        return self._last_order_by_customer.get(customer_id)

    def emit_event_order_failed(self, order_id: bytes) -> None:
        order = self._orders.get(order_id)
        if order is None:
            self.system.deposit_event(Event(PALLET, "OrderNotFound"))
        else:
            self._emit("OrderFailed", order)