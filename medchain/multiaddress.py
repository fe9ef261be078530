"""Multi-format address wrapper for on-chain accounts and its account lookup."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Hashable

from medchain.primitives import decode_compact, encode_compact

_U32_MAX = (1 << 32) - 1
_ACCOUNT_ID_LEN = 32


class AddressKind(enum.IntEnum):
    """The variants of :class:`MultiAddress`, valued by their wire index."""

    ID = 0
    INDEX = 1
    RAW = 2
    ADDRESS32 = 3
    ADDRESS20 = 4


_NAMES = {
    AddressKind.ID: "Id",
    AddressKind.INDEX: "Index",
    AddressKind.RAW: "Raw",
    AddressKind.ADDRESS32: "Address32",
    AddressKind.ADDRESS20: "Address20",
}

_FIXED_LENGTHS = {
    AddressKind.ADDRESS32: 32,
    AddressKind.ADDRESS20: 20,
}


@dataclass(frozen=True)
class MultiAddress:
    """An account address in one of several formats."""

    kind: AddressKind
    value: Any

    def __post_init__(self) -> None:
        kind = AddressKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if kind is AddressKind.INDEX:
            if isinstance(self.value, bool) or not isinstance(self.value, int):
                raise TypeError("an account index is an integer")
            if not 0 <= self.value <= _U32_MAX:
                raise ValueError(f"account index {self.value} does not fit in u32")
        elif kind is AddressKind.RAW:
            object.__setattr__(self, "value", bytes(self.value))
        elif kind in _FIXED_LENGTHS:
            raw = bytes(self.value)
            expected = _FIXED_LENGTHS[kind]
            if len(raw) != expected:
                raise ValueError(f"{_NAMES[kind]} needs {expected} bytes, got {len(raw)}")
            object.__setattr__(self, "value", raw)
        elif self.value is None:
            raise ValueError("an account id address needs an account id")

    @classmethod
    def from_account_id(cls, account_id: Hashable) -> "MultiAddress":
        """Wrap an account id."""
        return cls(AddressKind.ID, account_id)

    def encode(self) -> bytes:
        """SCALE-encode the address: variant index followed by its payload."""
        prefix = bytes([self.kind])
        if self.kind is AddressKind.ID:
            if not isinstance(self.value, (bytes, bytearray)):
                raise TypeError("only byte account ids can be encoded")
            if len(self.value) != _ACCOUNT_ID_LEN:
                raise ValueError(f"an account id is {_ACCOUNT_ID_LEN} bytes")
            return prefix + bytes(self.value)
        if self.kind is AddressKind.INDEX:
            return prefix + encode_compact(self.value)
        if self.kind is AddressKind.RAW:
            return prefix + encode_compact(len(self.value)) + self.value
        return prefix + self.value

    @classmethod
    def decode(cls, data: bytes) -> "MultiAddress":
        """Decode an address; the whole of ``data`` must be consumed."""
        data = bytes(data)
        if not data:
            raise ValueError("no data to decode")
        try:
            kind = AddressKind(data[0])
        except ValueError:
            raise ValueError(f"unknown address variant {data[0]}") from None
        body = data[1:]
        if kind is AddressKind.INDEX:
            value, used = decode_compact(body)
            rest = body[used:]
        elif kind is AddressKind.RAW:
            length, used = decode_compact(body)
            value = body[used : used + length]
            if len(value) != length:
                raise ValueError("truncated raw address")
            rest = body[used + length :]
        else:
            width = _ACCOUNT_ID_LEN if kind is AddressKind.ID else _FIXED_LENGTHS[kind]
            value = body[:width]
            if len(value) != width:
                raise ValueError(f"truncated {_NAMES[kind]} address")
            rest = body[width:]
        if rest:
            raise ValueError("trailing bytes after address")
        return cls(kind, value)

    def __str__(self) -> str:
        name = _NAMES[self.kind]
        if self.kind in (AddressKind.RAW, AddressKind.ADDRESS32, AddressKind.ADDRESS20):
            return f"MultiAddress::{name}({self.value.hex()})"
        if isinstance(self.value, (bytes, bytearray)):
            return f"{name}({bytes(self.value).hex()})"
        return f"{name}({self.value!r})"


class AddressLookupError(LookupError):
    """The address cannot be turned into an account id."""


class AccountIdLookup:
    """Resolves a :class:`MultiAddress` to the account id it wraps."""

    def lookup(self, address: MultiAddress) -> Hashable:
        if address.kind is not AddressKind.ID:
            raise AddressLookupError(f"cannot look up a {_NAMES[address.kind]} address")
        return address.value

    def unlookup(self, account_id: Hashable) -> MultiAddress:
        return MultiAddress.from_account_id(account_id)