from dataclasses import dataclass, field

import pytest

from medchain.labs import LabInfo, Labs
from medchain.orders import (
    REFUND_PERIOD_MS,
    DnaSampleInitializationError,
    DnaSampleNotSuccessfullyProcessed,
    Order,
    OrderNotFound,
    OrderNotYetExpired,
    Orders,
    OrderStatus,
    ServiceDoesNotExist,
    Unauthorized,
    UnauthorizedOrderCancellation,
    UnauthorizedOrderFulfillment,
)
from medchain.primitives import BadOrigin, DispatchError, EthereumAddress, Event, Origin, System
from medchain.services import ServiceInfo, Services
from medchain.traits import DnaSampleTracking, GeneticTestingProvider
from medchain.user_profile import UserProfile

LAB = b"\x01" * 32
CUSTOMER = b"\x02" * 32
ESCROW = b"\x03" * 32
STRANGER = b"\x04" * 32
BOX_KEY = b"\x05" * 32


@dataclass
class FakeSample(DnaSampleTracking):
    tracking_id: bytes
    success: bool = False
    failed: bool = False
    rejected: bool = False

    def process_success(self):
        return self.success

    def process_failed(self):
        return self.failed

    def is_rejected(self):
        return self.rejected


@dataclass
class FakeGeneticTesting(GeneticTestingProvider):
    samples: dict = field(default_factory=dict)
    deleted: list = field(default_factory=list)
    fail: bool = False

    def create_dna_sample(self, lab_id, owner_id, order_id):
        if self.fail:
            raise DispatchError("cannot create")
        sample = FakeSample(order_id[:6].hex().encode())
        self.samples[sample.tracking_id] = sample
        return sample

    def dna_sample_by_tracking_id(self, tracking_id):
        return self.samples.get(tracking_id)

    def delete_dna_sample(self, tracking_id):
        self.deleted.append(tracking_id)
        return self.samples.pop(tracking_id)


@pytest.fixture
def chain():
    system = System()
    profile = UserProfile(system)
    labs = Labs(system, profile)
    services = Services(system, labs)
    labs.services = services
    labs.do_create_lab(LAB, LabInfo(name=b"lab", country=b"ID", region=b"JB", city=b"BDG"))
    profile.set_eth_address_by_account_id(LAB, EthereumAddress(b"\x09" * 20))
    service = services.do_create_service(LAB, ServiceInfo(name=b"test", price=100))
    genetic = FakeGeneticTesting()
    orders = Orders(system, services, genetic, ESCROW)
    return system, orders, genetic, service


def place(orders, service):
    return orders.do_create_order(CUSTOMER, service.id, BOX_KEY)


def test_create_order_stores_and_indexes(chain):
    system, orders, genetic, service = chain
    system.set_timestamp(1000)
    order = place(orders, service)
    assert order.status is OrderStatus.UNPAID
    assert order.seller_id == LAB
    assert order.price == service.price
    assert order.created_at == order.updated_at == 1000
    assert order.customer_box_public_key == BOX_KEY
    assert order.dna_sample_tracking_id in genetic.samples
    assert orders.order_by_id(order.id) == order
    assert orders.orders_by_customer_id(CUSTOMER) == [order.id]
    assert orders.orders_by_seller_id(LAB) == [order.id]
    assert orders.last_order_by_customer_id(CUSTOMER) == order.id


def test_create_order_dispatch_emits_event(chain):
    system, orders, _, service = chain
    orders.create_order(Origin.signed(CUSTOMER), service.id, BOX_KEY)
    order = orders.order_by_id(orders.last_order_by_customer_id(CUSTOMER))
    assert system.events[-1] == Event("Orders", "OrderCreated", (order,))


def test_unsigned_origin_rejected(chain):
    _, orders, _, service = chain
    with pytest.raises(BadOrigin):
        orders.create_order(Origin.unsigned(), service.id, BOX_KEY)


def test_create_order_unknown_service(chain):
    _, orders, _, _ = chain
    with pytest.raises(ServiceDoesNotExist):
        orders.do_create_order(CUSTOMER, b"\x00" * 32, BOX_KEY)


def test_create_order_sample_failure(chain):
    _, orders, genetic, service = chain
    genetic.fail = True
    with pytest.raises(DnaSampleInitializationError):
        place(orders, service)
    assert orders.orders_by_customer_id(CUSTOMER) is None


def test_order_id_depends_on_nonce(chain):
    system, orders, _, service = chain
    first = orders.generate_order_id(CUSTOMER, service.id)
    assert first == orders.generate_order_id(CUSTOMER, service.id)
    assert len(first) == 32
    system.inc_account_nonce(CUSTOMER)
    assert orders.generate_order_id(CUSTOMER, service.id) != first
    assert orders.generate_order_id(STRANGER, service.id) != first


def test_cancel_order(chain):
    system, orders, genetic, service = chain
    order = place(orders, service)
    with pytest.raises(UnauthorizedOrderCancellation):
        orders.do_cancel_order(STRANGER, order.id)
    system.set_timestamp(5000)
    cancelled = orders.do_cancel_order(CUSTOMER, order.id)
    assert cancelled.status is OrderStatus.CANCELLED
    assert cancelled.updated_at == 5000
    assert genetic.deleted == [order.dna_sample_tracking_id]


def test_cancel_unknown_order(chain):
    _, orders, _, _ = chain
    with pytest.raises(OrderNotFound):
        orders.do_cancel_order(CUSTOMER, b"\x00" * 32)


def test_set_order_paid(chain):
    system, orders, _, service = chain
    order = place(orders, service)
    with pytest.raises(Unauthorized):
        orders.set_order_paid(Origin.signed(CUSTOMER), order.id)
    orders.set_order_paid(Origin.signed(ESCROW), order.id)
    assert orders.order_by_id(order.id).status is OrderStatus.PAID
    assert system.events[-1].name == "OrderPaid"
    with pytest.raises(OrderNotFound):
        orders.do_set_order_paid(ESCROW, b"\x00" * 32)


def test_fulfill_order(chain):
    _, orders, genetic, service = chain
    order = place(orders, service)
    with pytest.raises(UnauthorizedOrderFulfillment):
        orders.do_fulfill_order(CUSTOMER, order.id)
    with pytest.raises(DnaSampleNotSuccessfullyProcessed):
        orders.do_fulfill_order(LAB, order.id)
    genetic.samples[order.dna_sample_tracking_id].success = True
    assert orders.do_fulfill_order(LAB, order.id).status is OrderStatus.SUCCESS


def test_refund_before_expiry_rejected(chain):
    system, orders, _, service = chain
    order = place(orders, service)
    with pytest.raises(Unauthorized):
        orders.do_refund_order(CUSTOMER, order.id)
    system.set_timestamp(order.created_at + REFUND_PERIOD_MS)
    with pytest.raises(OrderNotYetExpired):
        orders.do_refund_order(ESCROW, order.id)


def test_refund_after_expiry(chain):
    system, orders, _, service = chain
    order = place(orders, service)
    system.set_timestamp(order.created_at + REFUND_PERIOD_MS + 1)
    assert orders.order_can_be_refunded(order) is True
    assert orders.do_refund_order(ESCROW, order.id).status is OrderStatus.REFUNDED


def test_refund_when_sample_rejected(chain):
    _, orders, genetic, service = chain
    order = place(orders, service)
    assert orders.order_can_be_refunded(order) is False
    genetic.samples[order.dna_sample_tracking_id].rejected = True
    assert orders.do_refund_order(ESCROW, order.id).status is OrderStatus.REFUNDED


def test_refund_dispatch_goes_through_fulfilment(chain):
    system, orders, genetic, service = chain
    order = place(orders, service)
    genetic.samples[order.dna_sample_tracking_id].success = True
    orders.refund_order(Origin.signed(LAB), order.id)
    stored = orders.order_by_id(order.id)
    assert stored.status is OrderStatus.SUCCESS
    assert system.events[-1] == Event("Orders", "OrderRefunded", (stored,))


def test_update_status_unknown_returns_none(chain):
    _, orders, _, _ = chain
    assert orders.update_order_status(b"\x00" * 32, OrderStatus.PAID) is None


def test_emit_event_order_failed(chain):
    system, orders, _, service = chain
    orders.emit_event_order_failed(b"\x00" * 32)
    assert system.events[-1] == Event("Orders", "OrderNotFound", ())
    order = place(orders, service)
    orders.emit_event_order_failed(order.id)
    assert system.events[-1] == Event("Orders", "OrderFailed", (order,))


def test_remove_order_ids_from_indexes(chain):
    _, orders, _, service = chain
    order = place(orders, service)
    orders.remove_order_id_from_orders_by_seller(LAB, order.id)
    orders.remove_order_id_from_orders_by_customer(CUSTOMER, order.id)
    assert orders.orders_by_seller_id(LAB) == []
    assert orders.orders_by_customer_id(CUSTOMER) == []
    assert isinstance(orders.order_by_id(order.id), Order)
    assert orders.order_by_id(order.id).id == order.id