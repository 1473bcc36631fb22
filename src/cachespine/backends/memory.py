"""Process-local backend: bounded LRU with per-key expiry."""

from __future__ import annotations

import threading
import time

from cachespine.backends.base import BaseBackend
from cachespine.codec import is_packed_integer
from cachespine.errors import CacheValueError


class _MemorySlot:
    """Marker client; the in-memory backend has nothing to connect to."""


class InMemoryBackend(BaseBackend):
    """Bounded in-memory backend with TTL support.

    Uses LRU eviction when ``max_size`` is reached. Thread-safe; increments
    happen under the lock, so they are atomic for every thread of this
    process but invisible to other processes.

    Example:
        backend = InMemoryBackend(max_size=500)
        store = CacheStore(backend, CacheOptions(prefix="app:"))
    """

    name = "memory"
    atomic_increment = True
    signed_increment = True

    def __init__(self, *, max_size: int = 10_000):
        super().__init__()
        self._store: dict[str, tuple[bytes, float | None]] = {}
        self._access_order: list[str] = []
        self._max_size = max_size
        self._lock = threading.RLock()

    def _open(self) -> _MemorySlot:
        return _MemorySlot()

    def _live(self, key: str) -> bytes | None:
        """Return the value for *key* if present and not expired. Lock held."""
        if key not in self._store:
            return None

        value, expires_at = self._store[key]
        if expires_at is not None and time.time() >= expires_at:
            self._evict(key)
            return None
        return value

    def _touch(self, key: str) -> None:
        if key in self._access_order:
            self._access_order.remove(key)
        self._access_order.append(key)

    def _evict(self, key: str) -> None:
        self._store.pop(key, None)
        if key in self._access_order:
            self._access_order.remove(key)

    def raw_get(self, key: str) -> bytes | None:
        with self._lock:
            value = self._live(key)
            if value is not None:
                self._touch(key)
            return value

    def raw_set(self, key: str, data: bytes, ttl: int) -> bool:
        expires_at = (time.time() + ttl) if ttl > 0 else None

        with self._lock:
            # Evict LRU if at capacity
            if key not in self._store and len(self._store) >= self._max_size:
                if self._access_order:
                    self._evict(self._access_order[0])

            self._store[key] = (bytes(data), expires_at)
            self._touch(key)
        return True

    def raw_delete(self, key: str) -> bool:
        with self._lock:
            self._evict(key)
        return True

    def raw_flush(self) -> bool:
        with self._lock:
            self._store.clear()
            self._access_order.clear()
        return True

    def raw_increment(self, key: str, step: int) -> int | None:
        with self._lock:
            current = self._live(key)
            if current is None:
                return None
            if not is_packed_integer(current):
                raise CacheValueError(f"Value at {key!r} is not an integer").with_context(
                    backend=self.name, key=key, operation="increment"
                )

            new_value = int(current) + step
            _, expires_at = self._store[key]
            self._store[key] = (str(new_value).encode("ascii"), expires_at)
            self._touch(key)
            return new_value

    def size(self) -> int:
        """Return current number of stored keys (expired ones included)."""
        return len(self._store)
