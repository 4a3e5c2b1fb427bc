from __future__ import annotations

import pytest


def test_entry_expires_with_clock(store, clock):
    store.set_with_expiry("k", "v", 10)
    assert store.get("k") == "v"
    assert store.ttl("k") == 10

    clock.advance(9.5)
    assert store.exists("k") is True
    assert store.ttl("k") == 1

    clock.advance(0.5)
    assert store.get("k") is None
    assert store.exists("k") is False
    assert store.ttl("k") is None


def test_set_replaces_value_and_expiry(store, clock):
    store.set_with_expiry("k", "old", 5)
    clock.advance(4)
    store.set_with_expiry("k", "new", 5)
    clock.advance(4)
    assert store.get("k") == "new"


def test_delete_reports_presence(store):
    store.set_with_expiry("k", "v", 5)
    assert store.delete("k") is True
    assert store.delete("k") is False


def test_delete_if_equals_only_removes_matching_value(store):
    store.set_with_expiry("k", "v1", 5)
    assert store.delete_if_equals("k", "v2") is False
    assert store.get("k") == "v1"
    assert store.delete_if_equals("k", "v1") is True
    assert store.delete_if_equals("k", "v1") is False


def test_non_positive_ttl_rejected(store):
    with pytest.raises(ValueError):
        store.set_with_expiry("k", "v", 0)


def test_factory_falls_back_to_memory_without_redis_url():
    from household_api.repositories.ttl_store import MemoryTTLStore, get_ttl_store

    assert isinstance(get_ttl_store(), MemoryTTLStore)
    assert get_ttl_store() is get_ttl_store()


def test_writes_sweep_expired_entries(store, clock):
    for i in range(1000):
        store.set_with_expiry(f"limit:login:user{i}", "1", 60)
    store.set_with_expiry("revoked:abc", "1", 7200)

    clock.advance(3600)
    store.set_with_expiry("limit:login:fresh", "1", 60)

    assert len(store._entries) == 2
    assert store.get("revoked:abc") == "1"


def test_rewritten_key_survives_sweep_of_its_old_expiry(store, clock):
    store.set_with_expiry("k", "old", 10)
    clock.advance(5)
    store.set_with_expiry("k", "new", 60)
    clock.advance(10)
    store.set_with_expiry("other", "v", 10)
    assert store.get("k") == "new"
