from __future__ import annotations

import pytest

from courier.core.dedup import DedupCache, dedup_key_for
from courier.core.models import ChatPeer, DedupKey, UnknownPeer, UserPeer

from fakes import raw_message


def test_should_process_true_then_false() -> None:
    cache = DedupCache()
    key = DedupKey("42", 7)
    assert cache.should_process(key) is True
    assert cache.should_process(key) is False
    assert len(cache) == 1


def test_same_message_id_in_other_channel_is_distinct() -> None:
    cache = DedupCache()
    assert cache.should_process(DedupKey("42", 7))
    assert cache.should_process(DedupKey("43", 7))


def test_eviction_drops_oldest_half_and_stays_bounded() -> None:
    cache = DedupCache(max_entries=10)
    keys = [DedupKey("42", i) for i in range(11)]
    for key in keys:
        assert cache.should_process(key)
        assert len(cache) <= 10

    # Inserting the 11th key evicted the 5 oldest.
    assert len(cache) == 6
    for key in keys[:5]:
        assert key not in cache
    for key in keys[5:]:
        assert key in cache


def test_evicted_key_is_processed_again() -> None:
    cache = DedupCache(max_entries=4)
    first = DedupKey("1", 1)
    cache.should_process(first)
    for i in range(2, 6):
        cache.should_process(DedupKey("1", i))
    assert first not in cache
    assert cache.should_process(first)


def test_default_capacity_never_exceeded() -> None:
    cache = DedupCache()
    for i in range(5000):
        cache.should_process(DedupKey("c", i))
        assert len(cache) <= 1000


def test_rejects_tiny_capacity() -> None:
    with pytest.raises(ValueError):
        DedupCache(max_entries=1)


def test_key_precedence() -> None:
    assert dedup_key_for(raw_message()) == DedupKey("42", 7)
    assert dedup_key_for(raw_message(peer=ChatPeer(5))) == DedupKey("5", 7)
    assert dedup_key_for(raw_message(peer=UserPeer(9))) == DedupKey("9", 7)
    assert dedup_key_for(raw_message(peer=UnknownPeer("weird"))) == DedupKey("unknown", 7)
    assert str(DedupKey("42", 7)) == "42:7"
