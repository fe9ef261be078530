"""Core chain primitives: origins, errors, events, hashing and SCALE encoding."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Hashable

_U64_MAX = (1 << 64) - 1
_COMPACT_MAX_BYTES = 67
_COMPACT_MAX = (1 << (8 * _COMPACT_MAX_BYTES)) - 1


class DispatchError(Exception):
    """Base class for every error a dispatchable call can raise."""


class BadOrigin(DispatchError):
    """The call required a signed origin but did not get one."""


@dataclass(frozen=True)
class Origin:
    """The origin of a call: signed by an account, or unsigned."""

    account_id: Hashable | None = None

    @classmethod
    def signed(cls, account_id: Hashable) -> "Origin":
        if account_id is None:
            raise ValueError("a signed origin needs an account id")
        return cls(account_id)

    @classmethod
    def unsigned(cls) -> "Origin":
        return cls(None)

    @property
    def is_signed(self) -> bool:
        return self.account_id is not None


def ensure_signed(origin: Origin) -> Hashable:
    """Return the signing account of ``origin`` or raise :class:`BadOrigin`."""
    if origin is None or origin.account_id is None:
        raise BadOrigin("origin is not signed")
    return origin.account_id


def blake2_256(data: bytes) -> bytes:
    """Blake2b hash with a 32-byte digest, as used for chain hashes."""
    return hashlib.blake2b(bytes(data), digest_size=32).digest()


def encode_u64(value: int) -> bytes:
    """SCALE-encode an unsigned 64-bit integer (little endian, fixed width)."""
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"value {value} does not fit in u64")
    return value.to_bytes(8, "little")


def encode_compact(value: int) -> bytes:
    """SCALE compact encoding of a non-negative integer."""
    if value < 0:
        raise ValueError("compact encoding needs a non-negative integer")
    if value < 1 << 6:
        return bytes([value << 2])
    if value < 1 << 14:
        return ((value << 2) | 0b01).to_bytes(2, "little")
    if value < 1 << 30:
        return ((value << 2) | 0b10).to_bytes(4, "little")
    if value > _COMPACT_MAX:
        raise ValueError(f"value {value} is too large for compact encoding")
    length = max(4, (value.bit_length() + 7) // 8)
    return bytes([((length - 4) << 2) | 0b11]) + value.to_bytes(length, "little")


def decode_compact(data: bytes) -> tuple[int, int]:
    """Decode a SCALE compact integer; return ``(value, bytes_consumed)``."""
    data = bytes(data)
    if not data:
        raise ValueError("no data to decode")
    mode = data[0] & 0b11
    if mode == 0b00:
        return data[0] >> 2, 1
    if mode == 0b01:
        width, minimum = 2, 1 << 6
    elif mode == 0b10:
        width, minimum = 4, 1 << 14
    else:
        width, minimum = (data[0] >> 2) + 4, 1 << 30
    if len(data) < (width if mode != 0b11 else width + 1):
        raise ValueError("truncated compact integer")
    if mode == 0b11:
        body = data[1 : 1 + width]
        value = int.from_bytes(body, "little")
        if body[-1] == 0 or value < minimum:
            raise ValueError("non-canonical compact integer")
        return value, width + 1
    value = int.from_bytes(data[:width], "little") >> 2
    if value < minimum:
        raise ValueError("non-canonical compact integer")
    return value, width


def build_country_region_code(country_code: bytes, region_code: bytes) -> bytes:
    """Join a country code and a region code with a dash: ``XX-YYY``."""
    return bytes(country_code) + b"-" + bytes(region_code)


@dataclass(frozen=True)
class EthereumAddress:
    """A 20-byte Ethereum account address."""

    value: bytes = bytes(20)

    def __post_init__(self) -> None:
        raw = bytes(self.value)
        if len(raw) != 20:
            raise ValueError(f"an Ethereum address is 20 bytes, got {len(raw)}")
        object.__setattr__(self, "value", raw)

    def __bytes__(self) -> bytes:
        return self.value

    def __str__(self) -> str:
        return "0x" + self.value.hex()


@dataclass(frozen=True)
class Event:
    """An event deposited by a pallet."""

    pallet: str
    name: str
    data: tuple[Any, ...] = ()


@dataclass
class System:
    """Chain-wide state shared by pallets: events, account nonces and time."""

    events: list[Event] = field(default_factory=list, init=False)
    _nonces: dict[Hashable, int] = field(default_factory=dict, init=False, repr=False)
    _timestamp: int = field(default=0, init=False)

    def __init__(self) -> None:
        self.events = []
        self._nonces = {}
        self._timestamp = 0

    def deposit_event(self, event: Event) -> None:
        self.events.append(event)

    def account_nonce(self, account_id: Hashable) -> int:
        return self._nonces.get(account_id, 0)

    def inc_account_nonce(self, account_id: Hashable) -> int:
        nonce = self.account_nonce(account_id) + 1
        self._nonces[account_id] = nonce
        return nonce

    def now(self) -> int:
        """Current timestamp in milliseconds since the Unix epoch."""
        return self._timestamp

    def set_timestamp(self, moment: int) -> None:
        if moment < 0:
            raise ValueError("timestamp cannot be negative")
        self._timestamp = moment