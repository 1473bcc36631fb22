"""
High-level cache façade.

``CacheStore`` gives callers one contract (get/set/has/delete/clear,
increment/decrement, remember/pull) on top of any :class:`CacheBackend`.
It owns key prefixing, TTL defaults and value packing; the backend only
moves bytes.

Manifesto:
    The same call must mean the same thing on every backend. A stored ``0``
    or ``""`` is a value, not a miss; "no TTL" is the configured default,
    not forever; a corrupt entry is an error, not the default.

    - **Explicit absence:** misses are detected by ``raw_get`` returning None
    - **Uniform TTL:** ``resolve_ttl`` applied before every write
    - **Honest atomicity:** compound operations document their races

Architecture:
    ::

        caller ──► CacheStore.op(name)
                     │
                     ├── KeyCodec.derive(name)      → physical key
                     ├── resolve_ttl(ttl, expire)   → seconds (0 = never)
                     ├── pack / unpack              → bytes ⇄ value
                     └── backend.raw_*(key, ...)    → storage

Concurrency:
    Every operation is a synchronous call. Concurrent ``set`` on one key is
    last-write-wins. ``increment`` is atomic only when the backend declares
    ``atomic_increment`` (and ``signed_increment`` for negative amounts);
    otherwise it is read-modify-write. ``decrement``, ``remember`` and
    ``pull`` are always compound, non-atomic operations:

    - ``decrement`` reads, subtracts and writes back. Two concurrent
      decrements can lose one update. Construct the store with
      ``atomic_decrement=True`` to route it through ``increment(name, -step)``.
    - ``remember`` checks then writes. Two callers can both see a miss and
      both write; the last writer wins.
    - ``pull`` reads then deletes. A write landing in between is deleted
      without ever being returned.

Examples:
    >>> from cachespine import CacheStore, CacheOptions, InMemoryBackend
    >>> store = CacheStore(InMemoryBackend(), CacheOptions(prefix="app:"))
    >>> store.set("visits", 10)
    True
    >>> store.increment("visits")
    11
    >>> store.pull("visits")
    11
    >>> store.get("visits", "missing")
    'missing'

Guardrails:
    ❌ DON'T: Use ``remember`` for set-once correctness (leases, locks)
    ✅ DO: Use it for recomputable cache fills

    ❌ DON'T: Share a prefix between applications and call ``clear()``
    ✅ DO: Remember ``clear()`` flushes the whole backend namespace

Tags:
    cache, facade, ttl, counters, cachespine

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from cachespine.backends.base import CacheBackend
from cachespine.codec import is_packed_integer, pack, unpack
from cachespine.errors import CacheValueError, CodecError
from cachespine.keys import KeyCodec
from cachespine.logging import get_logger
from cachespine.settings import CacheOptions
from cachespine.ttl import EXPIRED, TTL, resolve_ttl

logger = get_logger(__name__)

_MISSING = object()


class CacheStore:
    """Uniform cache operations over a :class:`CacheBackend`.

    Args:
        backend: Storage engine. Its connection is opened on first use.
        options: Prefix and default TTL (``expire``); defaults apply if omitted.
        atomic_decrement: Implement ``decrement`` as ``increment(name, -step)``.
    """

    def __init__(
        self,
        backend: CacheBackend,
        options: CacheOptions | None = None,
        *,
        atomic_decrement: bool = False,
    ):
        self._backend = backend
        self._options = options or CacheOptions()
        self._keys = KeyCodec(self._options.prefix)
        self._atomic_decrement = atomic_decrement

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    @property
    def options(self) -> CacheOptions:
        return self._options

    def _key(self, name: str) -> str:
        self._backend.connect()
        return self._keys.derive(name)

    def _unpack(self, key: str, stored: bytes, operation: str) -> Any:
        try:
            return unpack(stored)
        except CodecError as exc:
            raise exc.with_context(backend=self._backend.name, key=key, operation=operation)

    # ------------------------------------------------------------------ #
    # Basic operations
    # ------------------------------------------------------------------ #

    def get(self, name: str, default: Any = None) -> Any:
        """Return the value stored under *name*, or *default* if absent.

        Raises:
            CodecError: If the stored entry is corrupt.
        """
        key = self._key(name)
        stored = self._backend.raw_get(key)
        if stored is None:
            logger.debug("cache_miss", key=key)
            return default

        logger.debug("cache_hit", key=key)
        return self._unpack(key, stored, "get")

    def set(self, name: str, value: Any, ttl: TTL = None) -> bool:
        """Store *value* under *name*.

        *ttl* may be seconds, a ``timedelta`` or an absolute ``datetime``;
        ``None`` uses the configured ``expire`` and ``0`` never expires. A
        TTL that is already in the past deletes the key instead.
        """
        key = self._key(name)
        seconds = resolve_ttl(ttl, self._options.expire)
        data = pack(value)

        if seconds == EXPIRED:
            logger.debug("cache_set_expired", key=key)
            return self._backend.raw_delete(key)

        logger.debug("cache_set", key=key, ttl=seconds)
        return self._backend.raw_set(key, data, seconds)

    def has(self, name: str) -> bool:
        """True if an entry exists, even one holding 0, "", False or None."""
        return self._backend.raw_get(self._key(name)) is not None

    def delete(self, name: str) -> bool:
        """Remove *name*. Deleting an absent entry succeeds."""
        key = self._key(name)
        logger.debug("cache_delete", key=key)
        return self._backend.raw_delete(key)

    def clear(self) -> bool:
        """Flush the backend.

        Warning: removes everything the backend can reach, including keys
        outside this store's prefix.
        """
        self._backend.connect()
        logger.warning("cache_flush", backend=self._backend.name, prefix=self._options.prefix)
        return self._backend.raw_flush()

    # ------------------------------------------------------------------ #
    # Counters
    # ------------------------------------------------------------------ #

    def _atomic_for(self, step: int, current: int) -> bool:
        if not self._backend.atomic_increment:
            return False
        if self._backend.signed_increment:
            return True
        return step >= 0 and current >= 0

    def increment(self, name: str, step: int = 1) -> int:
        """Add *step* to the integer under *name* and return the new value.

        An absent entry is initialised to *step* with the default TTL. The
        add itself is atomic when the backend supports it; otherwise the new
        value is written back with ``set`` (default TTL, racy).

        Raises:
            CacheValueError: If the stored value is not an integer.
        """
        key = self._key(name)
        stored = self._backend.raw_get(key)
        if stored is None:
            self.set(name, step)
            return step

        if not is_packed_integer(stored):
            raise CacheValueError(f"Cannot increment non-integer value at {key!r}").with_context(
                backend=self._backend.name, key=key, operation="increment"
            )

        current = int(stored)
        if self._atomic_for(step, current):
            result = self._backend.raw_increment(key, step)
            if result is not None:
                return result
            # Expired or deleted between the read and the add
            self.set(name, step)
            return step

        logger.debug("cache_increment_fallback", key=key, backend=self._backend.name, step=step)
        new_value = current + step
        self.set(name, new_value)
        return new_value

    def decrement(self, name: str, step: int = 1) -> int:
        """Subtract *step* from the integer under *name*; absent counts as 0.

        Not atomic: the value is read, reduced and written back with
        ``set`` (default TTL). A concurrent writer between the read and the
        write is overwritten. Stores built with ``atomic_decrement=True``
        call ``increment(name, -step)`` instead.

        Raises:
            CacheValueError: If the stored value is not an integer.
        """
        if self._atomic_decrement:
            return self.increment(name, -step)

        current = self.get(name, 0)
        if not isinstance(current, int) or isinstance(current, bool):
            raise CacheValueError(
                f"Cannot decrement non-integer value at {self._keys.derive(name)!r}"
            ).with_context(backend=self._backend.name, operation="decrement")

        new_value = current - step
        self.set(name, new_value)
        return new_value

    inc = increment
    dec = decrement

    # ------------------------------------------------------------------ #
    # Compound operations
    # ------------------------------------------------------------------ #

    def remember(self, name: str, value: Any, ttl: TTL = None) -> Any:
        """Return the existing entry, or store *value* and return it.

        A callable *value* is only invoked on a miss, and its result is what
        gets stored. Check-then-write: concurrent initialisers may both
        write, last writer wins.
        """
        if not self.has(name):
            if callable(value):
                value = value()
            self.set(name, value, ttl)
            return value

        return self.get(name)

    def pull(self, name: str, default: Any = None) -> Any:
        """Return the entry under *name* and delete it; *default* if absent.

        Read-then-delete, not atomic.
        """
        value = self.get(name, _MISSING)
        if value is _MISSING:
            return default

        self.delete(name)
        return value

    # ------------------------------------------------------------------ #
    # Multi-key helpers
    # ------------------------------------------------------------------ #

    def get_many(self, names: Iterable[str], default: Any = None) -> dict[str, Any]:
        """Fetch several entries; absent ones map to *default*."""
        return {name: self.get(name, default) for name in names}

    def set_many(self, values: Mapping[str, Any], ttl: TTL = None) -> bool:
        """Store every item of *values*; True only if all writes succeeded."""
        results = [self.set(name, value, ttl) for name, value in values.items()]
        return all(results)

    def delete_many(self, names: Iterable[str]) -> bool:
        """Delete several entries; True only if all deletes succeeded."""
        results = [self.delete(name) for name in names]
        return all(results)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def close(self) -> None:
        """Close the backend connection; the next operation reconnects."""
        self._backend.close()

    def __enter__(self) -> CacheStore:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"CacheStore(backend={self._backend.name!r}, prefix={self._options.prefix!r})"


__all__ = ["CacheStore"]
