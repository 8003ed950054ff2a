"""Tests for the share code registry."""

import threading
from datetime import datetime, timedelta, timezone

from gcopy_auth.services.share_codes import InMemoryShareCodeRegistry

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
TTL = timedelta(minutes=5)


def test_lookup_missing_code():
    registry = InMemoryShareCodeRegistry()
    assert registry.lookup("AB12") is None
    assert "AB12" not in registry


def test_upsert_overwrites():
    registry = InMemoryShareCodeRegistry()
    registry.upsert("AB12", NOW)
    registry.upsert("AB12", NOW + TTL)
    assert registry.lookup("AB12") == NOW + TTL
    assert len(registry) == 1


def test_join_or_create_creates_new_group():
    registry = InMemoryShareCodeRegistry()
    expires_at, created = registry.join_or_create("AB12", NOW, TTL)
    assert created is True
    assert expires_at == NOW + TTL
    assert registry.lookup("AB12") == NOW + TTL


def test_join_or_create_joins_live_group():
    """A live group is joined without touching its expiry."""
    registry = InMemoryShareCodeRegistry()
    registry.join_or_create("AB12", NOW, TTL)

    expires_at, created = registry.join_or_create("AB12", NOW + timedelta(minutes=4), TTL)
    assert created is False
    assert expires_at == NOW + TTL
    assert len(registry) == 1


def test_join_at_exact_expiry_instant():
    registry = InMemoryShareCodeRegistry()
    registry.join_or_create("AB12", NOW, TTL)
    _, created = registry.join_or_create("AB12", NOW + TTL, TTL)
    assert created is False


def test_expired_group_is_recreated():
    registry = InMemoryShareCodeRegistry()
    registry.join_or_create("AB12", NOW, TTL)

    later = NOW + timedelta(minutes=6)
    expires_at, created = registry.join_or_create("AB12", later, TTL)
    assert created is True
    assert expires_at == later + TTL
    assert len(registry) == 1


def test_expired_entries_are_not_evicted():
    registry = InMemoryShareCodeRegistry()
    registry.upsert("old", NOW - timedelta(days=1))
    registry.join_or_create("new", NOW, TTL)
    assert registry.lookup("old") == NOW - timedelta(days=1)
    assert len(registry) == 2


def test_concurrent_first_presentation_creates_one_group():
    """Racing presenters of an unseen code end up in one group."""
    registry = InMemoryShareCodeRegistry()
    results = []
    barrier = threading.Barrier(8)

    def present():
        barrier.wait()
        results.append(registry.join_or_create("RACE", NOW, TTL))

    threads = [threading.Thread(target=present) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(registry) == 1
    assert sum(1 for _, created in results if created) == 1
    assert {expires_at for expires_at, _ in results} == {NOW + TTL}
