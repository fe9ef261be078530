"""Hospital certifications: creation, update, deletion and counters."""

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
from medchain.traits import HospitalCertificationOwner, HospitalCertificationsProvider

PALLET = "HospitalCertifications"
_U64_MASK = (1 << 64) - 1


class HospitalCertificationError(DispatchError):
    """Base class of errors raised by the hospital certifications pallet."""


class NotAllowedToCreate(HospitalCertificationError):
    """The user is not allowed to create a certification."""


class NotHospitalCertificationOwner(HospitalCertificationError):
    """The user is not the owner of the certification."""


class HospitalCertificationDoesNotExist(HospitalCertificationError):
    """The certification does not exist."""


@dataclass(frozen=True)
class HospitalCertificationInfo:
    """Certification information that the owner may change."""

    title: bytes = b""
    issuer: bytes = b""
    month: bytes = b""
    year: bytes = b""
    description: bytes = b""


@dataclass(frozen=True)
class HospitalCertification:
    """A hospital certification stored on chain."""

    id: bytes
    owner_id: Hashable
    info: HospitalCertificationInfo


def _encode_account_id(account_id: Hashable) -> bytes:
    if isinstance(account_id, (bytes, bytearray)):
        return bytes(account_id)
    if isinstance(account_id, int) and not isinstance(account_id, bool):
        return encode_u64(account_id)
    raise TypeError(f"cannot encode account id of type {type(account_id).__name__}")


class HospitalCertifications(HospitalCertificationsProvider):
    """The hospital certifications pallet."""

    def __init__(self, system: System, owner: HospitalCertificationOwner) -> None:
        self.system = system
        self.owner = owner
        self._certifications: dict[bytes, HospitalCertification] = {}
        self._certifications_count: int | None = None
        self._count_by_owner: dict[Hashable, int] = {}

    # ----- dispatchable calls -----

    def _emit(self, name: str, certification: HospitalCertification, who: Hashable) -> None:
        self.system.deposit_event(Event(PALLET, name, (certification, who)))

    def create_certification(self, origin: Origin, info: HospitalCertificationInfo) -> None:
        who = ensure_signed(origin)
        self._emit("HospitalCertificationCreated", self.do_create_certification(who, info), who)

    def update_certification(
        self, origin: Origin, certification_id: bytes, info: HospitalCertificationInfo
    ) -> None:
        who = ensure_signed(origin)
        certification = self.do_update_certification(who, certification_id, info)
        self._emit("HospitalCertificationUpdated", certification, who)

    def delete_certification(self, origin: Origin, certification_id: bytes) -> None:
        who = ensure_signed(origin)
        certification = self.do_delete_certification(who, certification_id)
        self._emit("HospitalCertificationDeleted", certification, who)

    # ----- logic -----

    def generate_certification_id(self, owner_id: Hashable, certification_count: int) -> bytes:
        """Hash of the encoded owner id followed by the encoded certification count."""
        return blake2_256(_encode_account_id(owner_id) + encode_u64(certification_count))

    def do_create_certification(
        self, owner_id: Hashable, info: HospitalCertificationInfo
    ) -> HospitalCertification:
        if not self.owner.can_create_certification(owner_id):
            raise NotAllowedToCreate(f"{owner_id!r} may not create certifications")
        certification_id = self.generate_certification_id(
            owner_id, self.certification_count_by_owner(owner_id)
        )
        certification = HospitalCertification(certification_id, owner_id, info)
        self._certifications[certification_id] = certification
        self._certifications_count = ((self._certifications_count or 0) + 1) & _U64_MASK
        self._count_by_owner[owner_id] = (
            self.certification_count_by_owner(owner_id) + 1
        ) & _U64_MASK
        self.owner.associate_certification(owner_id, certification_id)
        return certification

    def _owned(self, owner_id: Hashable, certification_id: bytes) -> HospitalCertification:
        certification = self._certifications.get(certification_id)
        if certification is None:
            raise HospitalCertificationDoesNotExist(
                f"no certification {bytes(certification_id).hex()}"
            )
        if certification.owner_id != owner_id:
            raise NotHospitalCertificationOwner(f"{owner_id!r} does not own the certification")
        return certification

    def do_update_certification(
        self, owner_id: Hashable, certification_id: bytes, info: HospitalCertificationInfo
    ) -> HospitalCertification:
        certification = replace(self._owned(owner_id, certification_id), info=info)
        self._certifications[certification_id] = certification
        return certification

    def do_delete_certification(
        self, owner_id: Hashable, certification_id: bytes
    ) -> HospitalCertification:
        self._owned(owner_id, certification_id)
        certification = self._certifications.pop(certification_id)
        self.owner.disassociate_certification(owner_id, certification.id)
        self._certifications_count = (
            self._certifications_count if self._certifications_count is not None else 1
        ) - 1
        self._count_by_owner[owner_id] = self._count_by_owner.get(owner_id, 1) - 1
        return certification

    # ----- queries -----

    def certification_by_id(self, certification_id: bytes) -> HospitalCertification | None:
        return self._certifications.get(certification_id)

    def certifications_count(self) -> int:
        return self._certifications_count or 0

    def certification_count_by_owner(self, owner_id: Hashable) -> int:
        return self._count_by_owner.get(owner_id, 0)

    def remove_certification(
        self, owner_id: Hashable, certification_id: bytes
    ) -> HospitalCertification:
        return self.do_delete_certification(owner_id, certification_id)