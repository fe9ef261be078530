"""Runtime version information and chain timing constants."""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction

MILLISECS_PER_BLOCK = 6000
SLOT_DURATION = MILLISECS_PER_BLOCK

MINUTES = 60_000 // MILLISECS_PER_BLOCK
HOURS = MINUTES * 60
DAYS = HOURS * 24

NORMAL_DISPATCH_RATIO = Fraction(75, 100)
WEIGHT_PER_SECOND = 1_000_000_000_000
MAX_BLOCK_WEIGHT = 2 * WEIGHT_PER_SECOND
MAX_BLOCK_LENGTH = 5 * 1024 * 1024
BLOCK_HASH_COUNT = 2400
SS58_PREFIX = 42
MINIMUM_PERIOD = SLOT_DURATION // 2
EXISTENTIAL_DEPOSIT = 500
MAX_LOCKS = 50
TRANSACTION_BYTE_FEE = 1


@dataclass(frozen=True)
class RuntimeVersion:
    """Identifies a runtime build."""

    spec_name: str = "node-template"
    impl_name: str = "node-template"
    authoring_version: int = 1
    spec_version: int = 100
    impl_version: int = 1
    transaction_version: int = 1
    apis: tuple[str, ...] = (
        "Core",
        "Metadata",
        "BlockBuilder",
        "TaggedTransactionQueue",
        "OffchainWorkerApi",
        "AuraApi",
        "SessionKeys",
        "GrandpaApi",
        "AccountNonceApi",
        "TransactionPaymentApi",
    )


VERSION = RuntimeVersion()


@dataclass(frozen=True)
class NativeVersion:
    """Version of the natively compiled runtime and the versions it can author with."""

    runtime_version: RuntimeVersion
    can_author_with: frozenset[int] = field(default_factory=frozenset)


def native_version() -> NativeVersion:
    """The version information used when the runtime runs natively."""
    return NativeVersion(runtime_version=VERSION)


def blocks_for_duration(milliseconds: int) -> int:
    """Number of whole blocks produced in ``milliseconds`` of chain time."""
    if milliseconds < 0:
        raise ValueError("duration cannot be negative")
    return milliseconds // MILLISECS_PER_BLOCK