"""
Factory functions that build backends and stores from options.

Each factory imports its backend lazily, so choosing ``memory`` never loads
``redis`` or ``pymemcache``.

Examples:
    >>> from cachespine.factory import create_store
    >>> store = create_store("memory", prefix="app:", expire=300)
    >>> store.options.expire
    300

Tags:
    cachespine, configuration, factory-pattern, lazy-imports

Doc-Types:
    api-reference
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import ValidationError

from cachespine.backends.base import CacheBackend
from cachespine.errors import ConfigurationError
from cachespine.settings import CacheOptions
from cachespine.store import CacheStore


class CacheBackendKind(str, Enum):
    """Supported cache backends."""

    MEMORY = "memory"
    REDIS = "redis"
    MEMCACHED = "memcached"


def build_options(options: CacheOptions | None = None, **overrides: Any) -> CacheOptions:
    """Return *options* with *overrides* applied (options are immutable).

    Raises:
        ConfigurationError: If an override fails validation.
    """
    try:
        if options is None:
            return CacheOptions(**overrides)
        if not overrides:
            return options
        return CacheOptions(**{**options.model_dump(), **overrides})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid cache options: {exc}", cause=exc) from exc


def create_backend(kind: str | CacheBackendKind, options: CacheOptions | None = None) -> CacheBackend:
    """Create a backend instance for *kind*."""
    try:
        kind = CacheBackendKind(kind)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown cache backend '{kind}'", cause=exc) from exc

    match kind:
        case CacheBackendKind.MEMORY:
            from cachespine.backends.memory import InMemoryBackend

            return InMemoryBackend()
        case CacheBackendKind.REDIS:
            from cachespine.backends.redis import RedisBackend

            return RedisBackend(options)
        case CacheBackendKind.MEMCACHED:
            from cachespine.backends.memcached import MemcachedBackend

            return MemcachedBackend(options)


def create_store(
    kind: str | CacheBackendKind = CacheBackendKind.MEMORY,
    options: CacheOptions | None = None,
    *,
    atomic_decrement: bool = False,
    **overrides: Any,
) -> CacheStore:
    """Create a :class:`CacheStore` over a freshly built backend.

    Keyword *overrides* (``host``, ``port``, ``expire``, ``timeout``,
    ``persistent``, ``prefix``) are applied on top of *options*.
    """
    resolved = build_options(options, **overrides)
    backend = create_backend(kind, resolved)
    return CacheStore(backend, resolved, atomic_decrement=atomic_decrement)
