"""cachespine -- one cache contract over interchangeable storage backends.

Manifesto:
    Applications talk to a ``CacheStore``: get/set/has/delete/clear,
    increment/decrement, remember/pull. Whether the bytes end up in process
    memory, Redis or a memcached cluster is a constructor argument.

Architecture::

    store.py           CacheStore façade (the public contract)
    keys.py            prefix + name -> physical key
    codec.py           value <-> bytes with type markers
    ttl.py             None / seconds / timedelta / datetime -> seconds
    backends/          CacheBackend protocol + memory / redis / memcached
    settings.py        CacheOptions (pydantic-settings, CACHE_* env vars)
    factory.py         create_store("redis", prefix="app:")
    errors.py          CacheError hierarchy
    logging.py         structlog configuration
"""

from cachespine.backends import (
    BaseBackend,
    CacheBackend,
    InMemoryBackend,
    MemcachedBackend,
    RedisBackend,
)
from cachespine.codec import pack, unpack
from cachespine.errors import (
    CacheConnectionError,
    CacheError,
    CacheValueError,
    CodecError,
    ConfigurationError,
)
from cachespine.factory import CacheBackendKind, create_backend, create_store
from cachespine.keys import KeyCodec, derive_key
from cachespine.settings import CacheOptions
from cachespine.store import CacheStore
from cachespine.ttl import EXPIRED, NEVER, resolve_ttl

__version__ = "0.1.0"

__all__ = [
    "CacheStore",
    "CacheOptions",
    "CacheBackend",
    "BaseBackend",
    "InMemoryBackend",
    "RedisBackend",
    "MemcachedBackend",
    "CacheBackendKind",
    "create_backend",
    "create_store",
    "KeyCodec",
    "derive_key",
    "pack",
    "unpack",
    "resolve_ttl",
    "NEVER",
    "EXPIRED",
    "CacheError",
    "ConfigurationError",
    "CacheConnectionError",
    "CodecError",
    "CacheValueError",
]
