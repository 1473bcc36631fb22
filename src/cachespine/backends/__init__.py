"""Storage engines implementing the :class:`CacheBackend` primitive set.

Client libraries (``redis``, ``pymemcache``) are imported when a backend is
constructed, so importing this package never requires them.
"""

from cachespine.backends.base import BaseBackend, CacheBackend
from cachespine.backends.memcached import MemcachedBackend
from cachespine.backends.memory import InMemoryBackend
from cachespine.backends.redis import RedisBackend

__all__ = [
    "CacheBackend",
    "BaseBackend",
    "InMemoryBackend",
    "RedisBackend",
    "MemcachedBackend",
]
