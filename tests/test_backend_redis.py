"""Tests for ``cachespine.backends.redis.RedisBackend``.

Requires ``redis`` package. Tests are skipped if not installed; the Redis
client itself is mocked.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

redis = pytest.importorskip("redis")

from cachespine.backends.redis import RedisBackend
from cachespine.errors import CacheConnectionError, CacheValueError
from cachespine.settings import CacheOptions
from cachespine.store import CacheStore


class TestRedisBackendInit:
    def test_client_not_created_until_first_use(self):
        with pytest.MonkeyPatch.context() as mp:
            mock_redis = MagicMock()
            mp.setattr(redis, "Redis", mock_redis)

            backend = RedisBackend()
            mock_redis.assert_not_called()
            backend.connect()
            backend.connect()
            mock_redis.assert_called_once()

    def test_default_connection_arguments(self):
        with pytest.MonkeyPatch.context() as mp:
            mock_redis = MagicMock()
            mp.setattr(redis, "Redis", mock_redis)

            RedisBackend().connect()
            mock_redis.assert_called_once_with(
                host="127.0.0.1",
                port=6379,
                db=0,
                socket_connect_timeout=None,
                socket_timeout=None,
                socket_keepalive=True,
                decode_responses=False,
            )

    def test_options_are_applied(self):
        with pytest.MonkeyPatch.context() as mp:
            mock_redis = MagicMock()
            mp.setattr(redis, "Redis", mock_redis)

            opts = CacheOptions(host="cache.internal", port="6380", timeout=2.5, persistent=False)
            RedisBackend(opts, db=3).connect()
            kwargs = mock_redis.call_args.kwargs
            assert kwargs["host"] == "cache.internal"
            assert kwargs["port"] == 6380
            assert kwargs["db"] == 3
            assert kwargs["socket_connect_timeout"] == 2.5
            assert kwargs["socket_keepalive"] is False

    def test_url(self):
        with pytest.MonkeyPatch.context() as mp:
            mock_from_url = MagicMock(return_value=MagicMock())
            mp.setattr(redis, "from_url", mock_from_url)

            RedisBackend(url="redis://custom:6380/1").connect()
            mock_from_url.assert_called_once_with("redis://custom:6380/1", decode_responses=False)

    def test_only_first_host_is_used(self):
        with pytest.MonkeyPatch.context() as mp:
            mock_redis = MagicMock()
            mp.setattr(redis, "Redis", mock_redis)

            RedisBackend(CacheOptions(host="a,b", port="7000,7001")).connect()
            assert mock_redis.call_args.kwargs["host"] == "a"
            assert mock_redis.call_args.kwargs["port"] == 7000


class TestRedisBackendOperations:
    @pytest.fixture
    def backend_and_client(self):
        with pytest.MonkeyPatch.context() as mp:
            client = MagicMock()
            mp.setattr(redis, "Redis", MagicMock(return_value=client))

            yield RedisBackend(), client

    def test_get_existing_key(self, backend_and_client):
        backend, client = backend_and_client
        client.get.return_value = b"s:value"
        assert backend.raw_get("k") == b"s:value"
        client.get.assert_called_once_with("k")

    def test_get_missing_key(self, backend_and_client):
        backend, client = backend_and_client
        client.get.return_value = None
        assert backend.raw_get("missing") is None

    def test_set_with_ttl(self, backend_and_client):
        backend, client = backend_and_client
        client.setex.return_value = True
        assert backend.raw_set("k", b"v", 60) is True
        client.setex.assert_called_once_with("k", 60, b"v")

    def test_set_never_expires(self, backend_and_client):
        backend, client = backend_and_client
        client.set.return_value = True
        backend.raw_set("k", b"v", 0)
        client.set.assert_called_once_with("k", b"v")
        client.setex.assert_not_called()

    def test_delete(self, backend_and_client):
        backend, client = backend_and_client
        client.delete.return_value = 0
        assert backend.raw_delete("k") is True
        client.delete.assert_called_once_with("k")

    def test_flush(self, backend_and_client):
        backend, client = backend_and_client
        client.flushdb.return_value = True
        assert backend.raw_flush() is True
        client.flushdb.assert_called_once()

    def test_increment_existing(self, backend_and_client):
        backend, client = backend_and_client
        script = MagicMock(return_value=8)
        client.register_script.return_value = script

        assert backend.raw_increment("k", 3) == 8
        script.assert_called_once_with(keys=["k"], args=[3])

    def test_increment_absent(self, backend_and_client):
        backend, client = backend_and_client
        client.register_script.return_value = MagicMock(return_value=None)
        assert backend.raw_increment("k", 3) is None

    def test_script_registered_once(self, backend_and_client):
        backend, client = backend_and_client
        client.register_script.return_value = MagicMock(return_value=1)
        backend.raw_increment("a", 1)
        backend.raw_increment("b", 1)
        client.register_script.assert_called_once()

    def test_increment_non_integer(self, backend_and_client):
        backend, client = backend_and_client
        client.register_script.return_value = MagicMock(
            side_effect=redis.exceptions.ResponseError("value is not an integer")
        )
        with pytest.raises(CacheValueError):
            backend.raw_increment("k", 1)

    def test_connection_error_is_wrapped(self, backend_and_client):
        backend, client = backend_and_client
        client.get.side_effect = redis.exceptions.ConnectionError("refused")

        with pytest.raises(CacheConnectionError) as exc_info:
            backend.raw_get("k")
        error = exc_info.value
        assert error.retryable is True
        assert error.context.backend == "redis"
        assert error.context.host == "127.0.0.1:6379"
        assert isinstance(error.cause, redis.exceptions.ConnectionError)

    def test_close_closes_client(self, backend_and_client):
        backend, client = backend_and_client
        backend.connect()
        backend.close()
        client.close.assert_called_once()
        assert backend.connected is False

    def test_store_round_trip(self, backend_and_client):
        backend, client = backend_and_client
        store = CacheStore(backend, CacheOptions(prefix="app:", expire=30))
        client.setex.return_value = True

        store.set("user", {"id": 1})
        client.setex.assert_called_once_with("app:user", 30, b'j:{"id":1}')

        client.get.return_value = b'j:{"id":1}'
        assert store.get("user") == {"id": 1}
