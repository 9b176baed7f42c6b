"""Tests for the analytics cache manager."""
import json
from unittest.mock import Mock

import pytest

from prepflight.core.cache_manager import CacheManager, CacheType
from prepflight.errors import InvalidCacheTypeError


def test_round_trip(cache: CacheManager) -> None:
    """A value read right after writing it is deep-equal."""
    data = {"totalQuestions": 3, "byCategory": {"021": {"name": "Airframe", "total": 3}}, "labels": ["Sun"]}
    cache.set("basic-stats-u1", data)
    assert cache.get("basic-stats-u1") == data


def test_missing_key(cache: CacheManager) -> None:
    assert cache.get("nothing-here") is None


def test_entry_format(cache: CacheManager, store, clock) -> None:
    """Entries are JSON with a millisecond write timestamp."""
    cache.set("k", [1, 2])
    entry = json.loads(store.get("k"))
    assert entry == {"timestamp": int(clock.now * 1000), "data": [1, 2]}


def test_entry_valid_just_before_ttl(cache: CacheManager, clock) -> None:
    cache.set("k", "v")
    clock.advance(3599.999)
    assert cache.get("k") == "v"


def test_expired_entry_removed(cache: CacheManager, store, clock) -> None:
    """Stale entries read as None and are deleted."""
    cache.set("k", "v")
    clock.advance(3600)
    assert cache.get("k") is None
    assert "k" not in store


def test_unreadable_entry_removed(cache: CacheManager, store) -> None:
    store.set("k", "{not json")
    assert cache.get("k") is None
    assert "k" not in store


@pytest.mark.parametrize(
    "entry",
    [
        {"timestamp": "1700000000000", "data": {"x": 1}},
        {"timestamp": None, "data": {"x": 1}},
        {"timestamp": True, "data": {"x": 1}},
        {"data": {"x": 1}},
        [1, 2],
    ],
)
def test_malformed_entry_removed(cache: CacheManager, store, entry) -> None:
    """Well-formed JSON with a bad timestamp is treated as unreadable."""
    store.set("k", json.dumps(entry))
    assert cache.get("k") is None
    assert "k" not in store


def test_store_read_failure_is_a_miss(cache: CacheManager, store, monkeypatch) -> None:
    monkeypatch.setattr(store, "get", Mock(side_effect=RuntimeError("database is locked")))
    assert cache.get("k") is None


def test_store_write_failure_is_skipped(cache: CacheManager, store, monkeypatch) -> None:
    monkeypatch.setattr(store, "set", Mock(side_effect=RuntimeError("database is locked")))
    cache.set("k", {"x": 1})
    assert "k" not in store


def test_set_overwrites(cache: CacheManager) -> None:
    cache.set("k", 1)
    cache.set("k", 2)
    assert cache.get("k") == 2


def test_falsy_payloads_are_cached(cache: CacheManager) -> None:
    cache.set("k", [])
    assert cache.get("k") == []


@pytest.mark.parametrize(
    "cache_type, expected",
    [
        ("basicStats", "basic-stats-u1"),
        ("monthlyProgress", "monthly-progress-u1"),
        ("recentStudyTime", "recent-study-time-u1"),
        (CacheType.USER_PROGRESS, "user-progress-u1"),
    ],
)
def test_generate_key(cache_type, expected) -> None:
    assert CacheManager.generate_key("u1", cache_type) == expected


def test_generate_key_rejects_unknown_type() -> None:
    with pytest.raises(InvalidCacheTypeError, match="Invalid cache type: skills"):
        CacheManager.generate_key("u1", "skills")


def test_invalidate_single_and_many(cache: CacheManager) -> None:
    for cache_type in CacheType:
        cache.set(CacheManager.generate_key("u1", cache_type), {"x": 1})
    cache.set(CacheManager.generate_key("u2", "basicStats"), {"x": 2})

    cache.invalidate("u1", "basicStats")
    assert cache.get("basic-stats-u1") is None
    assert cache.get("monthly-progress-u1") == {"x": 1}

    cache.invalidate("u1", [CacheType.MONTHLY_PROGRESS, "recentStudyTime"])
    assert cache.get("monthly-progress-u1") is None
    assert cache.get("recent-study-time-u1") is None
    assert cache.get("user-progress-u1") == {"x": 1}
    assert cache.get("basic-stats-u2") == {"x": 2}


def test_invalidate_unknown_type_raises(cache: CacheManager) -> None:
    with pytest.raises(InvalidCacheTypeError):
        cache.invalidate("u1", ["basicStats", "bogus"])
