# medchain

An in-memory ledger for a genetic-testing marketplace. Labs and hospitals
register themselves and publish services and certifications. Customers
place orders, and each order then moves through payment, fulfilment, refund
or cancellation. All state is held in Python objects. The package depends
only on the standard library.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Modules

- `medchain.primitives` holds the basic building blocks:
  - dispatch origins: `Origin.signed`, `Origin.unsigned`, `ensure_signed`, which raises `BadOrigin`;
  - the `DispatchError` base class and `EthereumAddress`, a 20-byte value;
  - `Event`;
  - hashing and encoding helpers: `blake2_256`, `encode_u64`, `encode_compact`, `decode_compact`, `build_country_region_code`;
  - `System`, which keeps the event log (`events`), account nonces (`account_nonce`, `inc_account_nonce`) and the current timestamp in milliseconds (`now`, `set_timestamp`).
- `medchain.version` holds `RuntimeVersion`, `VERSION`, `NativeVersion`, `native_version()`, the timing constants (`MILLISECS_PER_BLOCK`, `MINUTES`, `HOURS`, `DAYS`, …) and `blocks_for_duration()`.
- `medchain.traits` holds the abstract interfaces through which the modules call each other:
  - `ServicesProvider` and `ServiceOwner`;
  - `CertificationsProvider` and `CertificationOwner`;
  - `HospitalCertificationsProvider` and `HospitalCertificationOwner`;
  - `DoctorCertificationsProvider` and `ElectronicMedicalRecordInfosProvider`;
  - `GeneticTestingProvider` and `DnaSampleTracking`;
  - `EscrowController`, `OrderEventEmitter` and `UserProfileProvider`.
- `medchain.multiaddress` holds `MultiAddress`, which covers the `AddressKind` variants `ID`, `INDEX`, `RAW`, `ADDRESS32` and `ADDRESS20`. It can `encode` and `decode` an address. `AccountIdLookup` turns an `ID` address into an account id and raises `AddressLookupError` for every other kind.
- `medchain.user_profile.UserProfile` keeps a two-way mapping between accounts and Ethereum addresses.
- `medchain.services.Services` creates, updates and deletes services, and keeps the service counters.
- `medchain.labs.Labs` is the lab registry. It indexes labs by country-region code and city and owns the labs' services and certifications.
- `medchain.orders.Orders` runs the order lifecycle through `OrderStatus`: `UNPAID`, `PAID`, `SUCCESS`, `REFUNDED` and `CANCELLED`.
- `medchain.hospitals.Hospitals` and `medchain.hospital_certifications.HospitalCertifications` hold the hospital registry and the hospital certifications.
- `medchain.runtime.Runtime` connects all of the above, with a single shared `System`.

## Usage

Each module has dispatchable methods, such as `register_lab` or `create_order`. These take an `Origin`. A successful call adds an `Event` to `system.events`. A failed call raises a subclass of `DispatchError`. Each module also has a `do_*` method that takes a plain account id and returns the stored record.

`Runtime(escrow_key, genetic_testing, certifications=None)` builds the whole ledger. You supply the genetic-testing provider. The lab certifications provider is optional.

```python
from dataclasses import dataclass

from medchain.labs import LabInfo
from medchain.primitives import EthereumAddress, Origin
from medchain.runtime import Runtime
from medchain.services import ServiceInfo
from medchain.traits import DnaSampleTracking, GeneticTestingProvider


@dataclass
class Sample(DnaSampleTracking):
    tracking_id: bytes

    def process_success(self):
        return True

    def process_failed(self):
        return False

    def is_rejected(self):
        return False


class Testing(GeneticTestingProvider):
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


runtime = Runtime(escrow_key=99, genetic_testing=Testing())
lab, customer, escrow = Origin.signed(1), Origin.signed(2), Origin.signed(99)

runtime.user_profile.set_eth_address(lab, EthereumAddress(bytes(20)))
runtime.labs.register_lab(lab, LabInfo(name=b"Lab", country=b"ID", region=b"JB", city=b"BDG"))
runtime.services.create_service(lab, ServiceInfo(name=b"WGS", price=100))

service_id = runtime.labs.lab_by_account_id(1).services[0]
runtime.orders.create_order(customer, service_id, bytes(32))
order_id = runtime.orders.last_order_by_customer_id(2)

runtime.orders.set_order_paid(escrow, order_id)
runtime.orders.fulfill_order(lab, order_id)
assert runtime.system.events[-1].name == "OrderSuccess"
```

Rules enforced by the modules:

- Only a registered lab or hospital that has an Ethereum address set may create services or certifications.
- Deregistering a lab also removes its services and certifications. Deregistering a hospital also removes its certifications.
- Only the escrow account may mark an order as paid or call `do_refund_order`.
- An order can be refunded after seven days, or earlier if its DNA sample was rejected.
- The dispatchable `Orders.refund_order` does not use the escrow path. It calls `do_fulfill_order` and then emits `OrderRefunded`.
- An order id is derived from the customer, the service and the customer's account nonce. Nothing in the package increments the nonce on its own. To give repeat orders of the same service distinct ids, call `System.inc_account_nonce`.

## What the package does not do

- It keeps all state in memory. It has no persistent storage, no networking, no block production or consensus, and no command-line program.
- It implements no doctors, doctor certifications, lab certifications, genetic testing or electronic medical records. For these it defines only the interfaces in `medchain.traits`, and you supply the implementations yourself.