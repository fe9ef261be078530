"""Interfaces through which pallets talk to each other."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Hashable

from medchain.primitives import EthereumAddress


class CertificationsProvider(ABC):
    """Gives access to lab certifications."""

    @abstractmethod
    def remove_certification(self, owner_id: Hashable, certification_id: bytes) -> Any:
        """Delete a certification owned by ``owner_id`` and return it."""

    @abstractmethod
    def certification_by_id(self, certification_id: bytes) -> Any | None:
        """Return the certification, or ``None`` if it does not exist."""


class CertificationOwner(ABC):
    """An entity that can own certifications."""

    @abstractmethod
    def can_create_certification(self, account_id: Hashable) -> bool:
        """Whether ``account_id`` may create a certification."""

    @abstractmethod
    def get_owner(self, account_id: Hashable) -> Any | None:
        """Return the owner record, or ``None``."""

    @abstractmethod
    def associate_certification(self, owner_id: Hashable, certification_id: bytes) -> None:
        """Record that ``certification_id`` belongs to ``owner_id``."""

    @abstractmethod
    def disassociate_certification(self, owner_id: Hashable, certification_id: bytes) -> None:
        """Forget that ``certification_id`` belongs to ``owner_id``."""


class DoctorCertificationsProvider(ABC):
    """Gives access to doctor certifications."""

    @abstractmethod
    def remove_certification(self, owner_id: Hashable, certification_id: bytes) -> Any:
        """Delete a certification owned by ``owner_id`` and return it."""

    @abstractmethod
    def certification_by_id(self, certification_id: bytes) -> Any | None:
        """Return the certification, or ``None`` if it does not exist."""


class ElectronicMedicalRecordInfosProvider(ABC):
    """Gives access to electronic medical record entries."""

    @abstractmethod
    def remove_electronic_medical_record_info(self, owner_id: Hashable, info_id: bytes) -> Any:
        """Delete a record entry owned by ``owner_id`` and return it."""

    @abstractmethod
    def electronic_medical_record_info_by_id(self, info_id: bytes) -> Any | None:
        """Return the record entry, or ``None`` if it does not exist."""


class EscrowController(ABC):
    """Receives a callback when an escrow has been paid."""

    @abstractmethod
    def on_escrow_paid(self, controller_id: bytes) -> None:
        """Called once the escrow identified by ``controller_id`` is paid."""


class DnaSampleTracking(ABC):
    """State of a DNA sample; implementations also expose ``tracking_id`` bytes."""

    @abstractmethod
    def process_success(self) -> bool:
        """Whether the sample was processed successfully."""

    @abstractmethod
    def process_failed(self) -> bool:
        """Whether processing the sample failed."""

    @abstractmethod
    def is_rejected(self) -> bool:
        """Whether the sample was rejected."""


class GeneticTestingProvider(ABC):
    """Creates and looks up DNA samples for orders."""

    @abstractmethod
    def create_dna_sample(self, lab_id: Hashable, owner_id: Hashable, order_id: bytes) -> DnaSampleTracking:
        """Create a sample for an order; raise on failure."""

    @abstractmethod
    def dna_sample_by_tracking_id(self, tracking_id: bytes) -> DnaSampleTracking | None:
        """Return the sample, or ``None`` if it does not exist."""

    @abstractmethod
    def delete_dna_sample(self, tracking_id: bytes) -> DnaSampleTracking:
        """Delete the sample and return it; raise on failure."""


class HospitalCertificationsProvider(ABC):
    """Gives access to hospital certifications."""

    @abstractmethod
    def remove_certification(self, owner_id: Hashable, certification_id: bytes) -> Any:
        """Delete a certification owned by ``owner_id`` and return it."""

    @abstractmethod
    def certification_by_id(self, certification_id: bytes) -> Any | None:
        """Return the certification, or ``None`` if it does not exist."""


class HospitalCertificationOwner(ABC):
    """An entity that can own hospital certifications."""

    @abstractmethod
    def can_create_certification(self, account_id: Hashable) -> bool:
        """Whether ``account_id`` may create a certification."""

    @abstractmethod
    def get_owner(self, account_id: Hashable) -> Any | None:
        """Return the owner record, or ``None``."""

    @abstractmethod
    def associate_certification(self, owner_id: Hashable, certification_id: bytes) -> None:
        """Record that ``certification_id`` belongs to ``owner_id``."""

    @abstractmethod
    def disassociate_certification(self, owner_id: Hashable, certification_id: bytes) -> None:
        """Forget that ``certification_id`` belongs to ``owner_id``."""


class OrderEventEmitter(ABC):
    """Lets other pallets report order outcomes."""

    @abstractmethod
    def emit_event_order_failed(self, order_id: bytes) -> None:
        """Deposit an event saying the order failed."""


class ServicesProvider(ABC):
    """Gives access to services offered by labs."""

    @abstractmethod
    def remove_service(self, owner_id: Hashable, service_id: bytes) -> Any:
        """Delete a service owned by ``owner_id`` and return it."""

    @abstractmethod
    def service_by_id(self, service_id: bytes) -> Any | None:
        """Return the service, or ``None`` if it does not exist."""


class ServiceOwner(ABC):
    """An entity that can own services."""

    @abstractmethod
    def can_create_service(self, account_id: Hashable) -> bool:
        """Whether ``account_id`` may create a service."""

    @abstractmethod
    def get_owner(self, account_id: Hashable) -> Any | None:
        """Return the owner record, or ``None``."""

    @abstractmethod
    def associate_service(self, owner_id: Hashable, service_id: bytes) -> None:
        """Record that ``service_id`` belongs to ``owner_id``."""

    @abstractmethod
    def disassociate_service(self, owner_id: Hashable, service_id: bytes) -> None:
        """Forget that ``service_id`` belongs to ``owner_id``."""


class UserProfileProvider(ABC):
    """Looks up profile data of an account."""

    @abstractmethod
    def get_eth_address_by_account_id(self, account_id: Hashable) -> EthereumAddress | None:
        """Return the account's Ethereum address, or ``None`` if unset."""