"""
Tests for cachespine.backends.memory module.

Covers:
- CacheBackend protocol compliance
- raw get/set/delete/flush, LRU eviction, TTL expiry
- Atomic increment semantics
"""

import time

import pytest

from cachespine.backends.base import CacheBackend
from cachespine.backends.memory import InMemoryBackend
from cachespine.errors import CacheValueError


class TestInMemoryBackend:
    """Test InMemoryBackend primitives."""

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryBackend(), CacheBackend)

    def test_capabilities(self):
        backend = InMemoryBackend()
        assert backend.atomic_increment is True
        assert backend.signed_increment is True

    def test_basic_get_set(self):
        backend = InMemoryBackend()
        assert backend.raw_set("k", b"value", 0) is True
        assert backend.raw_get("k") == b"value"

    def test_get_missing_key_is_none(self):
        assert InMemoryBackend().raw_get("missing") is None

    def test_empty_bytes_are_present(self):
        backend = InMemoryBackend()
        backend.raw_set("k", b"", 0)
        assert backend.raw_get("k") == b""

    def test_delete_is_idempotent(self):
        backend = InMemoryBackend()
        backend.raw_set("k", b"v", 0)
        assert backend.raw_delete("k") is True
        assert backend.raw_delete("k") is True
        assert backend.raw_get("k") is None

    def test_flush(self):
        backend = InMemoryBackend()
        for i in range(3):
            backend.raw_set(f"k{i}", b"1", 0)
        assert backend.size() == 3
        backend.raw_flush()
        assert backend.size() == 0

    def test_ttl_expiry(self):
        backend = InMemoryBackend()
        backend.raw_set("temp", b"v", 1)
        assert backend.raw_get("temp") == b"v"
        # Manually expire by manipulating the store
        backend._store["temp"] = (b"v", time.time() - 1)
        assert backend.raw_get("temp") is None
        assert backend.size() == 0

    def test_zero_ttl_never_expires(self):
        backend = InMemoryBackend()
        backend.raw_set("permanent", b"v", 0)
        assert backend._store["permanent"][1] is None

    def test_lru_eviction(self):
        """Oldest key should be evicted when max_size reached."""
        backend = InMemoryBackend(max_size=3)
        for key in ("k1", "k2", "k3"):
            backend.raw_set(key, b"1", 0)

        backend.raw_set("k4", b"1", 0)
        assert backend.size() == 3
        assert backend.raw_get("k1") is None
        assert backend.raw_get("k4") == b"1"

    def test_lru_updates_on_get(self):
        backend = InMemoryBackend(max_size=3)
        for key in ("k1", "k2", "k3"):
            backend.raw_set(key, b"1", 0)

        backend.raw_get("k1")
        backend.raw_set("k4", b"1", 0)
        assert backend.raw_get("k1") == b"1"
        assert backend.raw_get("k2") is None

    def test_overwrite_does_not_evict(self):
        backend = InMemoryBackend(max_size=2)
        backend.raw_set("a", b"1", 0)
        backend.raw_set("b", b"1", 0)
        backend.raw_set("a", b"2", 0)
        assert backend.raw_get("b") == b"1"
        assert backend.raw_get("a") == b"2"


class TestInMemoryIncrement:
    def test_increment_existing(self):
        backend = InMemoryBackend()
        backend.raw_set("n", b"10", 0)
        assert backend.raw_increment("n", 5) == 15
        assert backend.raw_get("n") == b"15"

    def test_increment_negative(self):
        backend = InMemoryBackend()
        backend.raw_set("n", b"1", 0)
        assert backend.raw_increment("n", -3) == -2

    def test_increment_absent_returns_none(self):
        backend = InMemoryBackend()
        assert backend.raw_increment("n", 1) is None
        assert backend.raw_get("n") is None

    def test_increment_keeps_expiry(self):
        backend = InMemoryBackend()
        backend.raw_set("n", b"1", 60)
        expires_at = backend._store["n"][1]
        backend.raw_increment("n", 1)
        assert backend._store["n"][1] == expires_at

    def test_increment_non_integer(self):
        backend = InMemoryBackend()
        backend.raw_set("n", b"s:abc", 0)
        with pytest.raises(CacheValueError):
            backend.raw_increment("n", 1)


class TestLazyConnection:
    def test_connect_is_idempotent(self):
        backend = InMemoryBackend()
        assert backend.connected is False
        backend.connect()
        client = backend._client
        backend.connect()
        assert backend._client is client
        assert "connected" in repr(backend)

    def test_close(self):
        backend = InMemoryBackend()
        backend.connect()
        backend.close()
        assert backend.connected is False
        assert "idle" in repr(backend)
