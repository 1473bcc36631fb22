"""
Primitive contract every cache storage engine implements.

``CacheStore`` is written against this protocol only. A backend moves opaque
bytes under physical keys; packing, key prefixing and TTL resolution happen
in the store.

Manifesto:
    Backends differ in what they can do atomically and how they connect,
    but the store must give callers the same semantics on all of them. The
    primitive set is therefore tiny, and the differences are declared as
    capability flags instead of being discovered at runtime.

    - **Explicit absence:** ``raw_get`` returns ``None`` only for a missing key
    - **Idempotent delete:** Deleting an absent key is not an error
    - **Declared atomicity:** ``atomic_increment`` / ``signed_increment``
    - **Lazy connection:** ``connect()`` is cheap to call on every operation

Architecture:
    ::

        CacheBackend (Protocol)
        └── BaseBackend (ABC, lazy connect under a lock)
            ├── InMemoryBackend   - process-local LRU, atomic, signed
            ├── RedisBackend      - Lua-scripted atomic INCRBY, signed
            └── MemcachedBackend  - incr (unsigned), HashClient cluster

        raw_get(key)               → bytes | None
        raw_set(key, data, ttl)    → bool      (ttl seconds, 0 = never)
        raw_delete(key)            → bool      (idempotent)
        raw_flush()                → bool      (everything reachable!)
        raw_increment(key, step)   → int | None (None = key absent)
        connect() / close()

Guardrails:
    ❌ DON'T: Return ``False`` or ``b""`` to mean "not found"
    ✅ DO: Return ``None``; ``b""`` is a legitimate stored value

    ❌ DON'T: Call ``raw_flush`` on a shared production server casually
    ✅ DO: Give each application its own database/namespace

Tags:
    cache, backend, protocol, connection, cachespine

Doc-Types:
    - API Reference
    - Backend Implementation Guide
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Any, Protocol, runtime_checkable

from cachespine.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class CacheBackend(Protocol):
    """Protocol for cache storage engines.

    Implementations:
        - :class:`~cachespine.backends.memory.InMemoryBackend`
        - :class:`~cachespine.backends.redis.RedisBackend`
        - :class:`~cachespine.backends.memcached.MemcachedBackend`
    """

    name: str
    atomic_increment: bool
    signed_increment: bool

    def connect(self) -> None:
        """Establish the connection if not already done. Idempotent."""
        ...

    def close(self) -> None:
        """Tear down the connection; the next operation reconnects."""
        ...

    def raw_get(self, key: str) -> bytes | None:
        """Return stored bytes, or ``None`` if the key does not exist."""
        ...

    def raw_set(self, key: str, data: bytes, ttl: int) -> bool:
        """Store *data* unconditionally. *ttl* seconds, 0 = never expires."""
        ...

    def raw_delete(self, key: str) -> bool:
        """Remove *key*. No-op if it does not exist."""
        ...

    def raw_flush(self) -> bool:
        """Remove every key reachable by this backend instance."""
        ...

    def raw_increment(self, key: str, step: int) -> int | None:
        """Add *step* to an existing integer; ``None`` if the key is absent."""
        ...


class BaseBackend(ABC):
    """Shared lazy-connection handling for concrete backends.

    ``connect()`` opens the client exactly once per instance even when many
    threads hit a fresh backend at the same moment. Subclasses implement
    ``_open()`` (return the client) and may override ``_shutdown()``.
    """

    name: str = "base"
    atomic_increment: bool = False
    signed_increment: bool = False

    def __init__(self) -> None:
        self._client: Any = None
        self._connect_lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self._client is not None

    def connect(self) -> None:
        if self._client is not None:
            return
        with self._connect_lock:
            if self._client is None:
                self._client = self._open()
                logger.debug("cache_connect", backend=self.name)

    def close(self) -> None:
        with self._connect_lock:
            client, self._client = self._client, None
        if client is not None:
            self._shutdown(client)
            logger.debug("cache_close", backend=self.name)

    @property
    def client(self) -> Any:
        """The underlying client, connecting on first access."""
        self.connect()
        return self._client

    @abstractmethod
    def _open(self) -> Any:
        """Create and return the underlying client."""

    def _shutdown(self, client: Any) -> None:
        """Release *client*; default does nothing."""

    @abstractmethod
    def raw_get(self, key: str) -> bytes | None: ...

    @abstractmethod
    def raw_set(self, key: str, data: bytes, ttl: int) -> bool: ...

    @abstractmethod
    def raw_delete(self, key: str) -> bool: ...

    @abstractmethod
    def raw_flush(self) -> bool: ...

    def raw_increment(self, key: str, step: int) -> int | None:
        raise NotImplementedError(f"{self.name} backend has no atomic increment")

    def __repr__(self) -> str:
        state = "connected" if self.connected else "idle"
        return f"{self.__class__.__name__}({state})"


__all__ = ["CacheBackend", "BaseBackend"]
