"""
Store Test Factory

Creates backend stores with various behaviours for testing the fragment
cache: a recording in-memory store, stores that always fail, and mocked
redis.asyncio clients for the Redis adapter.
"""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

from fragment_cache.core.exceptions import BackendError, BackendUnavailableError
from fragment_cache.core.interfaces.store import InMemoryStore


class RecordingStore(InMemoryStore):
    """InMemoryStore that records every protocol call in `calls`."""

    def __init__(self, initial_data: dict[str, Any] | None = None):
        super().__init__()
        self.calls: list[tuple] = []
        for key, value in (initial_data or {}).items():
            self._store[key] = value

    async def get(self, key, raw=False):
        self.calls.append(("get", key, raw))
        return await super().get(key, raw)

    async def set(self, key, value, expire=None, raw=False, keep_ttl=False):
        self.calls.append(("set", key, value, expire, raw, keep_ttl))
        return await super().set(key, value, expire, raw, keep_ttl)

    async def delete(self, key):
        self.calls.append(("delete", key))
        return await super().delete(key)

    async def delete_matching(self, pattern):
        self.calls.append(("delete_matching", pattern))
        return await super().delete_matching(pattern)

    async def multi_get(self, *keys):
        self.calls.append(("multi_get", *keys))
        return await super().multi_get(*keys)

    def calls_named(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def reset_calls(self) -> None:
        self.calls.clear()


class StoreTestFactory:
    """Factory for creating backend store test objects."""

    @staticmethod
    def recording_store(initial_data: dict[str, Any] | None = None) -> RecordingStore:
        """Create an in-memory store that records its calls."""
        return RecordingStore(initial_data)

    @staticmethod
    def failing_store(error: Exception | None = None) -> MagicMock:
        """Create a store whose every operation raises."""
        if error is None:
            error = BackendUnavailableError("Fragment store is down")

        store = MagicMock(spec=InMemoryStore)
        store.get = AsyncMock(side_effect=error)
        store.set = AsyncMock(side_effect=error)
        store.delete = AsyncMock(side_effect=error)
        store.delete_matching = AsyncMock(side_effect=error)
        store.multi_get = AsyncMock(side_effect=error)
        store.health_check = AsyncMock(side_effect=BackendError("health check failed"))
        return store

    @staticmethod
    def redis_client(initial_data: dict[str, str] | None = None) -> AsyncMock:
        """
        Create a redis.asyncio client mock.

        `scan_iter` is an async generator over the initial keys, the way
        redis-py exposes it.
        """
        client = AsyncMock()
        client.data = dict(initial_data or {})

        async def scan_iter(match=None, count=None):
            for key in list(client.data):
                yield key

        client.scan_iter = MagicMock(side_effect=scan_iter)
        client.get = AsyncMock(side_effect=lambda key: client.data.get(key))
        client.mget = AsyncMock(side_effect=lambda keys: [client.data.get(k) for k in keys])
        client.set = AsyncMock(side_effect=lambda key, value, **kwargs: client.data.__setitem__(key, value) or True)
        client.delete = AsyncMock(side_effect=lambda *keys: sum(1 for k in keys if client.data.pop(k, None) is not None))
        client.ping = AsyncMock(return_value=True)
        return client
