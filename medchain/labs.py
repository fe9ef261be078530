"""Labs: registration, location index, counters and ownership of services and certifications."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Hashable

from medchain.primitives import (
    DispatchError,
    Event,
    Origin,
    System,
    build_country_region_code,
    ensure_signed,
)
from medchain.traits import (
    CertificationOwner,
    CertificationsProvider,
    ServiceOwner,
    ServicesProvider,
    UserProfileProvider,
)

PALLET = "Labs"
_U64_MASK = (1 << 64) - 1

_Location = tuple[bytes, bytes]


class LabError(DispatchError):
    """Base class of errors raised by the labs pallet."""


class LabAlreadyRegistered(LabError):
    """The account already has a lab registered."""


class LabDoesNotExist(LabError):
    """No lab is registered for the account."""


@dataclass(frozen=True)
class LabInfo:
    """Lab information supplied by the lab itself."""

    box_public_key: bytes = bytes(32)
    name: bytes = b""
    email: bytes = b""
    country: bytes = b""
    region: bytes = b""
    city: bytes = b""
    address: bytes = b""
    latitude: bytes | None = None
    longitude: bytes | None = None
    profile_image: bytes | None = None


@dataclass
class Lab:
    """A registered lab with the services and certifications it owns."""

    account_id: Hashable
    info: LabInfo
    services: list[bytes] = field(default_factory=list)
    certifications: list[bytes] = field(default_factory=list)

    @property
    def country(self) -> bytes:
        return self.info.country

    @property
    def region(self) -> bytes:
        return self.info.region

    @property
    def city(self) -> bytes:
        return self.info.city

    def country_region(self) -> bytes:
        """The ``COUNTRY-REGION`` code of the lab's location."""
        return build_country_region_code(self.info.country, self.info.region)

    def update_info(self, info: LabInfo) -> None:
        self.info = info

    def add_service(self, service_id: bytes) -> None:
        self.services.append(service_id)

    def remove_service(self, service_id: bytes) -> None:
        if service_id in self.services:
            self.services.remove(service_id)

    def add_certification(self, certification_id: bytes) -> None:
        self.certifications.append(certification_id)

    def remove_certification(self, certification_id: bytes) -> None:
        if certification_id in self.certifications:
            self.certifications.remove(certification_id)


def _snapshot(lab: Lab) -> Lab:
    return replace(lab, services=list(lab.services), certifications=list(lab.certifications))


class Labs(ServiceOwner, CertificationOwner):
    """The labs pallet."""

    def __init__(
        self,
        system: System,
        user_profile: UserProfileProvider,
        services: ServicesProvider | None = None,
        certifications: CertificationsProvider | None = None,
    ) -> None:
        self.system = system
        self.user_profile = user_profile
        self.services = services
        self.certifications = certifications
        self._labs: dict[Hashable, Lab] = {}
        self._labs_by_location: dict[_Location, list[Hashable]] = {}
        self._lab_count: int | None = None
        self._lab_count_by_location: dict[_Location, int] = {}

    # ----- dispatchable calls -----

    def register_lab(self, origin: Origin, info: LabInfo) -> None:
        who = ensure_signed(origin)
        lab = self.do_create_lab(who, info)
        self.system.deposit_event(Event(PALLET, "LabRegistered", (lab, who)))

    def update_lab(self, origin: Origin, info: LabInfo) -> None:
        who = ensure_signed(origin)
        lab = self.do_update_lab(who, info)
        self.system.deposit_event(Event(PALLET, "LabUpdated", (lab, who)))

    def deregister_lab(self, origin: Origin) -> None:
        who = ensure_signed(origin)
        if who not in self._labs:
            raise LabDoesNotExist(f"no lab registered for {who!r}")
        lab = self.do_delete_lab(who)
        self.system.deposit_event(Event(PALLET, "LabDeleted", (lab, who)))

    # ----- logic -----

    def do_create_lab(self, account_id: Hashable, info: LabInfo) -> Lab:
        if account_id in self._labs:
            raise LabAlreadyRegistered(f"{account_id!r} already has a lab")
        lab = Lab(account_id, info)
        self._labs[account_id] = lab
        self._insert_into_location(lab)
        self._lab_count = ((self._lab_count or 0) + 1) & _U64_MASK
        self._add_count_by_location(lab)
        return _snapshot(lab)

    def do_update_lab(self, account_id: Hashable, info: LabInfo) -> Lab:
        lab = self._labs.get(account_id)
        if lab is None:
            raise LabDoesNotExist(f"no lab registered for {account_id!r}")
        if (lab.country, lab.region, lab.city) != (info.country, info.region, info.city):
            self._remove_from_location(lab)
            self._sub_count_by_location(lab)
        lab.update_info(info)
        self._insert_into_location(lab)
        self._add_count_by_location(lab)
        return _snapshot(lab)

    def do_delete_lab(self, account_id: Hashable) -> Lab:
        stored = self._labs.get(account_id)
        if stored is None:
            raise LabDoesNotExist(f"no lab registered for {account_id!r}")
        lab = _snapshot(stored)
        if self.services is not None:
            for service_id in lab.services:
                try:
                    self.services.remove_service(account_id, service_id)
                except DispatchError:
                    pass
        if self.certifications is not None:
            for certification_id in lab.certifications:
                try:
                    self.certifications.remove_certification(account_id, certification_id)
                except DispatchError:
                    pass
        self._remove_from_location(lab)
        self._sub_count_by_location(lab)
        self._labs.pop(lab.account_id, None)
        self._lab_count = (self._lab_count if self._lab_count is not None else 1) - 1
        return lab

    def _location(self, lab: Lab) -> _Location:
        return lab.country_region(), bytes(lab.city)

    def _insert_into_location(self, lab: Lab) -> None:
        self._labs_by_location.setdefault(self._location(lab), []).append(lab.account_id)

    def _remove_from_location(self, lab: Lab) -> None:
        key = self._location(lab)
        remaining = self._labs_by_location.get(key, [])
        self._labs_by_location[key] = [a for a in remaining if a != lab.account_id]

    def _add_count_by_location(self, lab: Lab) -> None:
        key = self._location(lab)
        self._lab_count_by_location[key] = (
            self._lab_count_by_location.get(key, 0) + 1
        ) & _U64_MASK

    def _sub_count_by_location(self, lab: Lab) -> None:
        key = self._location(lab)
        self._lab_count_by_location[key] = self._lab_count_by_location.get(key, 1) - 1

    # ----- queries -----

    def lab_by_account_id(self, account_id: Hashable) -> Lab | None:
        lab = self._labs.get(account_id)
        return None if lab is None else _snapshot(lab)

    def labs_by_country_region_city(
        self, country_region_code: bytes, city_code: bytes
    ) -> list[Hashable] | None:
        labs = self._labs_by_location.get((bytes(country_region_code), bytes(city_code)))
        return None if labs is None else list(labs)

    def lab_count(self) -> int:
        return self._lab_count or 0

    def lab_count_by_country_region_city(self, country_region_code: bytes, city_code: bytes) -> int:
        return self._lab_count_by_location.get((bytes(country_region_code), bytes(city_code)), 0)

    # ----- owner interfaces -----

    def _may_create(self, account_id: Hashable) -> bool:
        eth_address = self.user_profile.get_eth_address_by_account_id(account_id)
        return account_id in self._labs and eth_address is not None

    def can_create_service(self, account_id: Hashable) -> bool:
        """A lab with an Ethereum address set may create services."""
        return self._may_create(account_id)

    def can_create_certification(self, account_id: Hashable) -> bool:
        """A lab with an Ethereum address set may create certifications."""
        return self._may_create(account_id)

    def get_owner(self, account_id: Hashable) -> Lab | None:
        return self.lab_by_account_id(account_id)

    def associate_service(self, owner_id: Hashable, service_id: bytes) -> None:
        lab = self._labs.get(owner_id)
        if lab is not None:
            lab.add_service(service_id)

    def disassociate_service(self, owner_id: Hashable, service_id: bytes) -> None:
        lab = self._labs.get(owner_id)
        if lab is not None:
            lab.remove_service(service_id)

    def associate_certification(self, owner_id: Hashable, certification_id: bytes) -> None:
        lab = self._labs.get(owner_id)
        if lab is not None:
            lab.add_certification(certification_id)

    def disassociate_certification(self, owner_id: Hashable, certification_id: bytes) -> None:
        lab = self._labs.get(owner_id)
        if lab is not None:
            lab.remove_certification(certification_id)