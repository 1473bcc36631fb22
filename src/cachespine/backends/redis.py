"""Redis backend.

Requires the ``redis`` package (``pip install cachespine[redis]``). The
client is created lazily on first use; redis-py pools connections itself.

Only the first configured server is used: Redis clustering is a server-side
concern and is not expressed through the ``host`` list.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from cachespine.backends.base import BaseBackend
from cachespine.errors import CacheConnectionError, CacheValueError, ConfigurationError
from cachespine.logging import get_logger
from cachespine.settings import CacheOptions

logger = get_logger(__name__)

DEFAULT_PORT = 6379

# INCRBY creates missing keys; the store needs "absent" reported instead.
_INCREMENT_IF_EXISTS = """
if redis.call('EXISTS', KEYS[1]) == 1 then
    return redis.call('INCRBY', KEYS[1], ARGV[1])
end
return false
"""


class RedisBackend(BaseBackend):
    """Redis-backed distributed backend.

    Thread-safe and process-safe via Redis atomic operations. Increments run
    as a Lua script, so the existence check and the add are one atomic step.

    Example:
        backend = RedisBackend(CacheOptions(host="cache.internal", port=6380))
        store = CacheStore(backend)

    Raises:
        ConfigurationError: If the ``redis`` package is not installed.
    """

    name = "redis"
    atomic_increment = True
    signed_increment = True

    def __init__(
        self,
        options: CacheOptions | None = None,
        *,
        db: int = 0,
        url: str | None = None,
    ):
        super().__init__()
        try:
            import redis
        except ImportError as exc:
            raise ConfigurationError(
                "Redis backend requires 'redis' package. "
                "Install with: pip install cachespine[redis]",
                cause=exc,
            ).with_context(backend=self.name) from exc

        self._redis = redis
        self._options = options or CacheOptions()
        self._db = db
        self._url = url
        self._increment_script: Any = None

        servers = self._options.servers(DEFAULT_PORT)
        if len(servers) > 1 and url is None:
            logger.warning("redis_extra_hosts_ignored", hosts=[h for h, _ in servers[1:]])
        self._host, self._port = servers[0] if servers else ("127.0.0.1", DEFAULT_PORT)

    def _open(self) -> Any:
        if self._url is not None:
            return self._redis.from_url(self._url, decode_responses=False)
        return self._redis.Redis(
            host=self._host,
            port=self._port,
            db=self._db,
            socket_connect_timeout=self._options.connect_timeout,
            socket_timeout=self._options.connect_timeout,
            socket_keepalive=self._options.persistent,
            decode_responses=False,
        )

    def _shutdown(self, client: Any) -> None:
        self._increment_script = None
        client.close()

    @contextmanager
    def _errors(self, operation: str, key: str | None = None) -> Iterator[None]:
        """Translate redis-py failures into the cachespine taxonomy."""
        exceptions = self._redis.exceptions
        try:
            yield
        except (exceptions.ConnectionError, exceptions.TimeoutError) as exc:
            raise CacheConnectionError(
                f"Redis unreachable at {self._host}:{self._port}", cause=exc
            ).with_context(
                backend=self.name, operation=operation, key=key, host=f"{self._host}:{self._port}"
            ) from exc

    def raw_get(self, key: str) -> bytes | None:
        with self._errors("get", key):
            return self.client.get(key)

    def raw_set(self, key: str, data: bytes, ttl: int) -> bool:
        with self._errors("set", key):
            if ttl > 0:
                return bool(self.client.setex(key, ttl, data))
            return bool(self.client.set(key, data))

    def raw_delete(self, key: str) -> bool:
        with self._errors("delete", key):
            self.client.delete(key)
        return True

    def raw_flush(self) -> bool:
        """Remove all keys from the current Redis database.

        Warning: This flushes the entire Redis DB, not only this prefix.
        """
        with self._errors("flush"):
            return bool(self.client.flushdb())

    def raw_increment(self, key: str, step: int) -> int | None:
        with self._errors("increment", key):
            if self._increment_script is None:
                self._increment_script = self.client.register_script(_INCREMENT_IF_EXISTS)
            try:
                result = self._increment_script(keys=[key], args=[step])
            except self._redis.exceptions.ResponseError as exc:
                raise CacheValueError(
                    f"Value at {key!r} is not an integer", cause=exc
                ).with_context(backend=self.name, key=key, operation="increment") from exc
        return None if result is None else int(result)
