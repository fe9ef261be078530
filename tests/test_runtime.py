from dataclasses import dataclass

import pytest

from medchain.hospital_certifications import HospitalCertificationInfo
from medchain.hospitals import HospitalInfo
from medchain.labs import LabInfo
from medchain.orders import OrderStatus, Unauthorized
from medchain.primitives import EthereumAddress, Origin
from medchain.runtime import Runtime
from medchain.services import ServiceInfo
from medchain.traits import DnaSampleTracking, GeneticTestingProvider

ESCROW = 99
LAB = 10
CUSTOMER = 20
HOSPITAL = 30


@dataclass
class Sample(DnaSampleTracking):
    tracking_id: bytes
    success: bool = False

    def process_success(self):
        return self.success

    def process_failed(self):
        return False

    def is_rejected(self):
        return False


class FakeGeneticTesting(GeneticTestingProvider):
    def __init__(self):
        self.samples = {}

    def create_dna_sample(self, lab_id, owner_id, order_id):
        sample = Sample(order_id[:8])
        self.samples[sample.tracking_id] = sample
        return sample

    def dna_sample_by_tracking_id(self, tracking_id):
        return self.samples.get(tracking_id)

    def delete_dna_sample(self, tracking_id):
        return self.samples.pop(tracking_id)


@pytest.fixture
def runtime():
    return Runtime(ESCROW, FakeGeneticTesting())


def _lab_with_service(rt):
    rt.labs.register_lab(Origin.signed(LAB), LabInfo(name=b"Lab", country=b"ID", region=b"JB", city=b"BDG"))
    rt.user_profile.set_eth_address(Origin.signed(LAB), EthereumAddress(b"\x0a" * 20))
    rt.services.create_service(Origin.signed(LAB), ServiceInfo(name=b"DNA", price=500))
    return rt.labs.lab_by_account_id(LAB).services[0]


def test_version_identifies_node_template(runtime):
    assert runtime.version.spec_name == "node-template"
    assert runtime.version.spec_version == 100


def test_order_flow_across_pallets(runtime):
    service_id = _lab_with_service(runtime)
    runtime.orders.create_order(Origin.signed(CUSTOMER), service_id, b"\x01" * 32)
    order_id = runtime.orders.last_order_by_customer_id(CUSTOMER)
    order = runtime.orders.order_by_id(order_id)
    assert order.seller_id == LAB
    assert order.price == 500
    with pytest.raises(Unauthorized):
        runtime.orders.set_order_paid(Origin.signed(CUSTOMER), order_id)
    runtime.orders.set_order_paid(Origin.signed(ESCROW), order_id)
    assert runtime.orders.order_by_id(order_id).status is OrderStatus.PAID
    runtime.orders.genetic_testing.samples[order.dna_sample_tracking_id].success = True
    runtime.orders.fulfill_order(Origin.signed(LAB), order_id)
    assert runtime.orders.order_by_id(order_id).status is OrderStatus.SUCCESS
    assert runtime.system.events[-1].name == "OrderSuccess"


def test_deregistering_lab_deletes_its_services(runtime):
    service_id = _lab_with_service(runtime)
    assert runtime.services.service_by_id(service_id).owner_id == LAB
    runtime.labs.deregister_lab(Origin.signed(LAB))
    assert runtime.services.service_by_id(service_id) is None
    assert runtime.services.services_count() == 0
    assert runtime.labs.lab_by_account_id(LAB) is None


def test_hospital_certifications_wired_to_hospitals(runtime):
    runtime.hospitals.register_hospital(Origin.signed(HOSPITAL), HospitalInfo(name=b"H"))
    runtime.user_profile.set_eth_address(Origin.signed(HOSPITAL), EthereumAddress(b"\x1e" * 20))
    runtime.hospital_certifications.create_certification(
        Origin.signed(HOSPITAL), HospitalCertificationInfo(title=b"ISO")
    )
    cert_ids = runtime.hospitals.hospital_by_account_id(HOSPITAL).certifications
    assert runtime.hospital_certifications.certification_by_id(cert_ids[0]).owner_id == HOSPITAL
    runtime.hospitals.deregister_hospital(Origin.signed(HOSPITAL))
    assert runtime.hospital_certifications.certification_by_id(cert_ids[0]) is None


def test_account_nonce_reads_system(runtime):
    runtime.system.inc_account_nonce(CUSTOMER)
    assert runtime.account_nonce(CUSTOMER) == runtime.system.account_nonce(CUSTOMER)
    assert runtime.account_nonce(CUSTOMER) > runtime.account_nonce(LAB)