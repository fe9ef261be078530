import pytest

from medchain.version import (
    DAYS,
    HOURS,
    MILLISECS_PER_BLOCK,
    MINUTES,
    VERSION,
    NativeVersion,
    blocks_for_duration,
    native_version,
)


def test_native_version_wraps_runtime_version():
    version = native_version()
    assert version.runtime_version == VERSION
    assert version.runtime_version.spec_name == "node-template"
    assert version.can_author_with == frozenset()


def test_native_version_is_stable():
    assert native_version() == NativeVersion(runtime_version=VERSION)


def test_blocks_per_minute():
    assert blocks_for_duration(60_000) == MINUTES


def test_blocks_per_hour_and_day():
    assert blocks_for_duration(60 * 60_000) == HOURS
    assert blocks_for_duration(24 * 60 * 60_000) == DAYS


def test_partial_block_is_not_counted():
    assert blocks_for_duration(MILLISECS_PER_BLOCK - 1) == 0
    assert blocks_for_duration(MILLISECS_PER_BLOCK) == 1


def test_negative_duration_rejected():
    with pytest.raises(ValueError):
        blocks_for_duration(-1)