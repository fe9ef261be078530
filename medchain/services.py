"""Services offered by labs: creation, update, deletion and counters."""

from __future__ import annotations

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
from medchain.traits import ServiceOwner, ServicesProvider

PALLET = "Services"
_U64_MASK = (1 << 64) - 1


class ServiceError(DispatchError):
    """Base class of errors raised by the services pallet."""


class NotAllowedToCreate(ServiceError):
    """The user is not allowed to create a service."""


class NotServiceOwner(ServiceError):
    """The user is not the owner of the service."""


class ServiceDoesNotExist(ServiceError):
    """The service does not exist."""


@dataclass(frozen=True)
class ServiceInfo:
    """Service information that the owner may change."""

    name: bytes = b""
    price: int = 0
    category: bytes = b""
    description: bytes = b""
    long_description: bytes | None = None
    image: bytes | None = None


@dataclass(frozen=True)
class Service:
    """A service stored on chain."""

    id: bytes
    owner_id: Hashable
    info: ServiceInfo

    @property
    def price(self) -> int:
        return self.info.price


def _encode_account_id(account_id: Hashable) -> bytes:
    if isinstance(account_id, (bytes, bytearray)):
        return bytes(account_id)
    if isinstance(account_id, int) and not isinstance(account_id, bool):
        return encode_u64(account_id)
    raise TypeError(f"cannot encode account id of type {type(account_id).__name__}")


class Services(ServicesProvider):
    """The services pallet."""

    def __init__(self, system: System, owner: ServiceOwner) -> None:
        self.system = system
        self.owner = owner
        self._services: dict[bytes, Service] = {}
        self._services_count: int | None = None
        self._services_count_by_owner: dict[Hashable, int] = {}

    # ----- dispatchable calls -----

    def create_service(self, origin: Origin, info: ServiceInfo) -> None:
        who = ensure_signed(origin)
        service = self.do_create_service(who, info)
        self.system.deposit_event(Event(PALLET, "ServiceCreated", (service, who)))

    def update_service(self, origin: Origin, service_id: bytes, info: ServiceInfo) -> None:
        who = ensure_signed(origin)
        service = self.do_update_service(who, service_id, info)
        self.system.deposit_event(Event(PALLET, "ServiceUpdated", (service, who)))

    def delete_service(self, origin: Origin, service_id: bytes) -> None:
        who = ensure_signed(origin)
        service = self.do_delete_service(who, service_id)
        self.system.deposit_event(Event(PALLET, "ServiceDeleted", (service, who)))

    # ----- logic -----

    def generate_service_id(self, owner_id: Hashable, service_count: int) -> bytes:
        """Hash of the encoded owner id followed by the encoded service count."""
        return blake2_256(_encode_account_id(owner_id) + encode_u64(service_count))

    def do_create_service(self, owner_id: Hashable, info: ServiceInfo) -> Service:
        if not self.owner.can_create_service(owner_id):
            raise NotAllowedToCreate(f"{owner_id!r} may not create services")
        service_id = self.generate_service_id(owner_id, self.services_count_by_owner(owner_id))
        service = Service(service_id, owner_id, info)
        self._services[service_id] = service
        self._services_count = ((self._services_count or 0) + 1) & _U64_MASK
        self._services_count_by_owner[owner_id] = (
            self.services_count_by_owner(owner_id) + 1
        ) & _U64_MASK
        self.owner.associate_service(owner_id, service_id)
        return service

    def _owned_service(self, owner_id: Hashable, service_id: bytes) -> Service:
        service = self._services.get(service_id)
        if service is None:
            raise ServiceDoesNotExist(f"no service {bytes(service_id).hex()}")
        if service.owner_id != owner_id:
            raise NotServiceOwner(f"{owner_id!r} does not own the service")
        return service

    def do_update_service(
        self, owner_id: Hashable, service_id: bytes, info: ServiceInfo
    ) -> Service:
        service = replace(self._owned_service(owner_id, service_id), info=info)
        self._services[service_id] = service
        return service

    def do_delete_service(self, owner_id: Hashable, service_id: bytes) -> Service:
        self._owned_service(owner_id, service_id)
        service = self._services.pop(service_id)
        self.owner.disassociate_service(owner_id, service.id)
        self._services_count = (self._services_count if self._services_count is not None else 1) - 1
        self._services_count_by_owner[owner_id] = (
            self._services_count_by_owner.get(owner_id, 1) - 1
        )
        return service

    # ----- queries -----

    def service_by_id(self, service_id: bytes) -> Service | None:
        return self._services.get(service_id)

    def services_count(self) -> int:
        return self._services_count or 0

    def services_count_by_owner(self, owner_id: Hashable) -> int:
        return self._services_count_by_owner.get(owner_id, 0)

    def remove_service(self, owner_id: Hashable, service_id: bytes) -> Service:
        return self.do_delete_service(owner_id, service_id)