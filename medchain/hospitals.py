"""Hospitals: registration, location index, counters and ownership of certifications."""

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
    HospitalCertificationOwner,
    HospitalCertificationsProvider,
    UserProfileProvider,
)

PALLET = "Hospitals"
_U64_MASK = (1 << 64) - 1

_Location = tuple[bytes, bytes]


class HospitalError(DispatchError):
    """Base class of errors raised by the hospitals pallet."""


class HospitalAlreadyRegistered(HospitalError):
    """The account already has a hospital registered."""


class HospitalDoesNotExist(HospitalError):
    """No hospital is registered for the account."""


@dataclass(frozen=True)
class HospitalInfo:
    """Hospital information supplied by the hospital itself."""

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
class Hospital:
    """A registered hospital with the certifications it owns."""

    account_id: Hashable
    info: HospitalInfo
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
        """The ``COUNTRY-REGION`` code of the hospital's location."""
        return build_country_region_code(self.info.country, self.info.region)

    def update_info(self, info: HospitalInfo) -> None:
        self.info = info

    def add_certification(self, certification_id: bytes) -> None:
        self.certifications.append(certification_id)

    def remove_certification(self, certification_id: bytes) -> None:
        if certification_id in self.certifications:
            self.certifications.remove(certification_id)


def _snapshot(hospital: Hospital) -> Hospital:
    return replace(hospital, certifications=list(hospital.certifications))


class Hospitals(HospitalCertificationOwner):
    """The hospitals pallet."""

    def __init__(
        self,
        system: System,
        user_profile: UserProfileProvider,
        certifications: HospitalCertificationsProvider | None = None,
    ) -> None:
        self.system = system
        self.user_profile = user_profile
        self.certifications = certifications
        self._hospitals: dict[Hashable, Hospital] = {}
        self._hospitals_by_location: dict[_Location, list[Hashable]] = {}
        self._hospital_count: int | None = None
        self._hospital_count_by_location: dict[_Location, int] = {}

    # ----- dispatchable calls -----

    def register_hospital(self, origin: Origin, info: HospitalInfo) -> None:
        who = ensure_signed(origin)
        hospital = self.do_create_hospital(who, info)
        self.system.deposit_event(Event(PALLET, "HospitalRegistered", (hospital, who)))

    def update_hospital(self, origin: Origin, info: HospitalInfo) -> None:
        who = ensure_signed(origin)
        hospital = self.do_update_hospital(who, info)
        self.system.deposit_event(Event(PALLET, "HospitalUpdated", (hospital, who)))

    def deregister_hospital(self, origin: Origin) -> None:
        who = ensure_signed(origin)
        if who not in self._hospitals:
            raise HospitalDoesNotExist(f"no hospital registered for {who!r}")
        hospital = self.do_delete_hospital(who)
        self.system.deposit_event(Event(PALLET, "HospitalDeleted", (hospital, who)))

    # ----- logic -----

    def do_create_hospital(self, account_id: Hashable, info: HospitalInfo) -> Hospital:
        if account_id in self._hospitals:
            raise HospitalAlreadyRegistered(f"{account_id!r} already has a hospital")
        hospital = Hospital(account_id, info)
        self._hospitals[account_id] = hospital
        self._insert_into_location(hospital)
        self._hospital_count = ((self._hospital_count or 0) + 1) & _U64_MASK
        self._add_count_by_location(hospital)
        return _snapshot(hospital)

    def do_update_hospital(self, account_id: Hashable, info: HospitalInfo) -> Hospital:
        hospital = self._hospitals.get(account_id)
        if hospital is None:
            raise HospitalDoesNotExist(f"no hospital registered for {account_id!r}")
        if (hospital.country, hospital.region, hospital.city) != (
            info.country,
            info.region,
            info.city,
        ):
            self._remove_from_location(hospital)
            self._sub_count_by_location(hospital)
        hospital.update_info(info)
        self._insert_into_location(hospital)
        self._add_count_by_location(hospital)
        return _snapshot(hospital)

    def do_delete_hospital(self, account_id: Hashable) -> Hospital:
        stored = self._hospitals.get(account_id)
        if stored is None:
            raise HospitalDoesNotExist(f"no hospital registered for {account_id!r}")
        hospital = _snapshot(stored)
        if self.certifications is not None:
            for certification_id in hospital.certifications:
                try:
                    self.certifications.remove_certification(account_id, certification_id)
                except DispatchError:
                    pass
        self._remove_from_location(hospital)
        self._sub_count_by_location(hospital)
        self._hospitals.pop(hospital.account_id, None)
        self._hospital_count = (
            self._hospital_count if self._hospital_count is not None else 1
        ) - 1
        return hospital

    def _location(self, hospital: Hospital) -> _Location:
        return hospital.country_region(), bytes(hospital.city)

    def _insert_into_location(self, hospital: Hospital) -> None:
        self._hospitals_by_location.setdefault(self._location(hospital), []).append(
            hospital.account_id
        )

    def _remove_from_location(self, hospital: Hospital) -> None:
        key = self._location(hospital)
        remaining = self._hospitals_by_location.get(key, [])
        self._hospitals_by_location[key] = [a for a in remaining if a != hospital.account_id]

    def _add_count_by_location(self, hospital: Hospital) -> None:
        key = self._location(hospital)
        self._hospital_count_by_location[key] = (
            self._hospital_count_by_location.get(key, 0) + 1
        ) & _U64_MASK

    def _sub_count_by_location(self, hospital: Hospital) -> None:
        key = self._location(hospital)
        self._hospital_count_by_location[key] = self._hospital_count_by_location.get(key, 1) - 1

    # ----- queries -----

    def hospital_by_account_id(self, account_id: Hashable) -> Hospital | None:
        hospital = self._hospitals.get(account_id)
        return None if hospital is None else _snapshot(hospital)

    def hospitals_by_country_region_city(
        self, country_region_code: bytes, city_code: bytes
    ) -> list[Hashable] | None:
        hospitals = self._hospitals_by_location.get(
            (bytes(country_region_code), bytes(city_code))
        )
        return None if hospitals is None else list(hospitals)

    def hospital_count(self) -> int:
        return self._hospital_count or 0

    def hospital_count_by_country_region_city(
        self, country_region_code: bytes, city_code: bytes
    ) -> int:
        return self._hospital_count_by_location.get(
            (bytes(country_region_code), bytes(city_code)), 0
        )

    # ----- owner interface -----

    def can_create_certification(self, account_id: Hashable) -> bool:
        """A hospital with an Ethereum address set may create certifications."""
        eth_address = self.user_profile.get_eth_address_by_account_id(account_id)
        return account_id in self._hospitals and eth_address is not None

    def get_owner(self, account_id: Hashable) -> Hospital | None:
        return self.hospital_by_account_id(account_id)

    def associate_certification(self, owner_id: Hashable, certification_id: bytes) -> None:
        hospital = self._hospitals.get(owner_id)
        if hospital is not None:
            hospital.add_certification(certification_id)

    def disassociate_certification(self, owner_id: Hashable, certification_id: bytes) -> None:
        hospital = self._hospitals.get(owner_id)
        if hospital is not None:
            hospital.remove_certification(certification_id)