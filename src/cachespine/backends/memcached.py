"""Memcached backend over one or more servers.

Requires ``pymemcache`` (``pip install cachespine[memcached]``). Keys are
spread across every configured server with pymemcache's ``HashClient``.

Memcached specifics handled here:

- TTLs above 30 days are read by the server as a unix timestamp, so longer
  relative TTLs are converted to an absolute expiry before sending.
- ``incr`` only adds non-negative amounts and ``decr`` clamps at zero, so the
  backend declares ``signed_increment = False`` and the store falls back to
  read-modify-write for negative steps or negative counters.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from cachespine.backends.base import BaseBackend
from cachespine.errors import CacheConnectionError, CacheValueError, ConfigurationError
from cachespine.logging import get_logger
from cachespine.settings import CacheOptions

logger = get_logger(__name__)

DEFAULT_PORT = 11211

# Larger expirations are interpreted by memcached as absolute unix time.
MAX_RELATIVE_TTL = 60 * 60 * 24 * 30


def memcached_expire(ttl: int, *, now: float | None = None) -> int:
    """Convert relative *ttl* seconds to the value memcached expects."""
    if ttl > MAX_RELATIVE_TTL:
        return int(now if now is not None else time.time()) + ttl
    return ttl


class MemcachedBackend(BaseBackend):
    """Memcached cluster backend.

    Example:
        opts = CacheOptions(host="10.0.0.1,10.0.0.2", port="11211,11212", timeout=0.5)
        store = CacheStore(MemcachedBackend(opts), opts)

    Raises:
        ConfigurationError: If ``pymemcache`` is not installed.
    """

    name = "memcached"
    atomic_increment = True
    signed_increment = False

    def __init__(self, options: CacheOptions | None = None):
        super().__init__()
        try:
            from pymemcache import exceptions
            from pymemcache.client.hash import HashClient
        except ImportError as exc:
            raise ConfigurationError(
                "Memcached backend requires 'pymemcache'. "
                "Install with: pip install cachespine[memcached]",
                cause=exc,
            ).with_context(backend=self.name) from exc

        self._client_class = HashClient
        self._exceptions = exceptions
        self._options = options or CacheOptions()
        self._servers = self._options.servers(DEFAULT_PORT)

    @property
    def servers(self) -> list[tuple[str, int]]:
        return list(self._servers)

    def _open(self) -> Any:
        return self._client_class(
            self._servers,
            connect_timeout=self._options.connect_timeout,
            timeout=self._options.connect_timeout,
            use_pooling=self._options.persistent,
            allow_unicode_keys=True,
            default_noreply=False,
            ignore_exc=False,
        )

    def _shutdown(self, client: Any) -> None:
        client.close()

    @contextmanager
    def _errors(self, operation: str, key: str | None = None) -> Iterator[None]:
        """Translate pymemcache failures into CacheError subclasses.

        Client errors (an illegal key, a value the server refuses) become
        CacheValueError. Socket and server failures become
        CacheConnectionError.
        """
        exc_mod = self._exceptions
        hosts = ",".join(f"{h}:{p}" for h, p in self._servers)
        try:
            yield
        except exc_mod.MemcacheClientError as exc:
            raise CacheValueError(
                f"Memcached rejected {operation}: {exc}", cause=exc
            ).with_context(backend=self.name, operation=operation, key=key, host=hosts) from exc
        except (OSError, exc_mod.MemcacheError) as exc:
            raise CacheConnectionError(
                f"Memcached unreachable at {hosts}", cause=exc
            ).with_context(backend=self.name, operation=operation, key=key, host=hosts) from exc

    def raw_get(self, key: str) -> bytes | None:
        with self._errors("get", key):
            return self.client.get(key)

    def raw_set(self, key: str, data: bytes, ttl: int) -> bool:
        with self._errors("set", key):
            return bool(self.client.set(key, data, expire=memcached_expire(ttl), noreply=False))

    def raw_delete(self, key: str) -> bool:
        with self._errors("delete", key):
            self.client.delete(key, noreply=False)
        return True

    def raw_flush(self) -> bool:
        """Flush every configured server. Affects all applications using them."""
        with self._errors("flush"):
            self.client.flush_all(noreply=False)
        return True

    def raw_increment(self, key: str, step: int) -> int | None:
        if step < 0:
            raise CacheValueError(
                "Memcached cannot atomically add a negative step"
            ).with_context(backend=self.name, key=key, operation="increment")

        with self._errors("increment", key):
            try:
                result = self.client.incr(key, step, noreply=False)
            except self._exceptions.MemcacheClientError as exc:
                raise CacheValueError(
                    f"Value at {key!r} is not an integer", cause=exc
                ).with_context(backend=self.name, key=key, operation="increment") from exc
        return None if result is None else int(result)
