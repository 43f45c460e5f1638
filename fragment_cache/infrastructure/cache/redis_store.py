"""
Redis Backend Store

BackendStore implementation over redis.asyncio with connection pooling.

Architecture:
    RedisStore (Public API)
        ├── connection lifecycle (pool, ping, health)
        ├── _execute (retry on transient failures, error wrapping)
        └── JSON (orjson) value codec, bypassed with raw=True

Failure Policy:
    - ConnectionError / TimeoutError are retried with exponential jitter
      (FRAGMENT_BACKEND_RETRIES attempts), then raised as
      BackendUnavailableError
    - Any other RedisError or codec failure is raised as BackendError
    - The fragment cache manager turns both into a miss / no-op
"""

import base64
import re
import time
from typing import Any

import orjson
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from fragment_cache.core.config.constants import Stage
from fragment_cache.core.config.settings import Settings, get_settings
from fragment_cache.core.exceptions import BackendError, BackendUnavailableError
from fragment_cache.core.interfaces.store import KeyPattern
from fragment_cache.core.logging.logger import get_logger

logger = get_logger(__name__)

RETRY_BASE_DELAY = 0.01
RETRY_MAX_DELAY = 0.2
BYTES_TAG = "__bytes__"


def _encode_default(obj: Any) -> Any:
    # JSON has no bytes type; bytes are tagged so they decode back to bytes.
    if isinstance(obj, bytes | bytearray):
        return {BYTES_TAG: base64.b64encode(bytes(obj)).decode("ascii")}
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def _restore_bytes(value: Any) -> Any:
    if isinstance(value, dict):
        if len(value) == 1 and isinstance(value.get(BYTES_TAG), str):
            return base64.b64decode(value[BYTES_TAG])
        return {k: _restore_bytes(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_restore_bytes(v) for v in value]
    return value


def encode_value(value: Any) -> str:
    return orjson.dumps(value, default=_encode_default).decode("utf-8")


def decode_value(payload: str | bytes) -> Any:
    """Decode a stored payload, restoring tagged bytes."""
    return _restore_bytes(orjson.loads(payload))


class RedisStore:
    """
    Async Redis store with connection pooling and bounded retries.

    Usage:
        store = RedisStore()
        await store.connect()

        await store.set("views/home", "<div>...</div>", expire=300)
        html = await store.get("views/home")

        await store.disconnect()

    A ready client can be injected (tests, shared pools):
        store = RedisStore(client=existing_redis)
    """

    def __init__(self, settings: Settings | None = None, client: redis.Redis | None = None):
        self._settings = settings or get_settings()
        self._pool: ConnectionPool | None = None
        self._client: redis.Redis | None = client
        self._is_connected = client is not None
        self._retries = self._settings.cache.FRAGMENT_BACKEND_RETRIES
        self._batch_size = self._settings.cache.FRAGMENT_DELETE_BATCH_SIZE

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Establish connection to Redis with connection pooling.

        STAGE-B.1: Connection establishment

        Raises:
            BackendUnavailableError: If connection fails
        """
        if self._is_connected and self._client:
            return

        redis_settings = self._settings.redis
        try:
            self._pool = ConnectionPool(
                host=redis_settings.REDIS_HOST,
                port=redis_settings.REDIS_PORT,
                db=redis_settings.REDIS_DB,
                password=redis_settings.REDIS_PASSWORD,
                max_connections=redis_settings.REDIS_MAX_CONNECTIONS,
                socket_connect_timeout=redis_settings.REDIS_SOCKET_CONNECT_TIMEOUT,
                socket_timeout=redis_settings.REDIS_SOCKET_TIMEOUT,
                health_check_interval=redis_settings.REDIS_HEALTH_CHECK_INTERVAL,
                decode_responses=True,
            )
            self._client = redis.Redis(connection_pool=self._pool)
            await self._client.ping()
            self._is_connected = True

            logger.info(
                "Fragment store connected",
                stage=Stage.BACKEND.value,
                host=redis_settings.REDIS_HOST,
                port=redis_settings.REDIS_PORT,
            )

        except (ConnectionError, TimeoutError) as e:
            logger.error("Failed to connect to Redis", stage=Stage.BACKEND.value, error=str(e))
            raise BackendUnavailableError(
                message=f"Failed to connect to Redis: {e}",
                details={"host": redis_settings.REDIS_HOST, "port": redis_settings.REDIS_PORT},
            ) from e

    async def disconnect(self) -> None:
        """Close the client and its pool."""
        if self._client:
            await self._client.aclose()
        if self._pool:
            await self._pool.disconnect()

        self._client = None
        self._pool = None
        self._is_connected = False
        logger.info("Fragment store disconnected", stage=Stage.BACKEND.value)

    async def ping(self) -> bool:
        try:
            if self._client and self._is_connected:
                await self._client.ping()
                return True
        except (ConnectionError, TimeoutError):
            pass
        return False

    def is_connected(self) -> bool:
        return self._is_connected

    # -------------------------------------------------------------------------
    # Command execution
    # -------------------------------------------------------------------------

    def _require_client(self, operation: str, key: str) -> redis.Redis:
        if self._client is None:
            raise BackendUnavailableError(
                f"Redis {operation} failed: store is not connected", details={"key": key}
            )
        return self._client

    async def _execute(self, operation: str, key: str, command: str, *args, **kwargs) -> Any:
        """
        Run one Redis command with bounded retries and error wrapping.

        Args:
            operation: Label for logs and errors (GET, SET, ...)
            key: Key the command addresses (for logs and errors)
            command: redis.asyncio.Redis method name
        """
        client = self._require_client(operation, key)

        @retry(
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(multiplier=RETRY_BASE_DELAY, max=RETRY_MAX_DELAY)
            + wait_random(0, RETRY_BASE_DELAY),
            retry=retry_if_exception_type((ConnectionError, TimeoutError)),
            before_sleep=lambda retry_state: logger.info(
                "Retrying fragment store command",
                stage=Stage.BACKEND.value,
                operation=operation,
                attempt=retry_state.attempt_number,
            ),
            reraise=True,
        )
        async def _run():
            return await getattr(client, command)(*args, **kwargs)

        try:
            return await _run()
        except (ConnectionError, TimeoutError) as e:
            logger.error(f"Redis {operation} failed", stage=Stage.BACKEND.value, key=key, error=str(e))
            raise BackendUnavailableError.from_exception(e, f"Redis {operation} failed: {e}", key=key) from e
        except RedisError as e:
            logger.error(f"Redis {operation} failed", stage=Stage.BACKEND.value, key=key, error=str(e))
            raise BackendError.from_exception(e, f"Redis {operation} failed: {e}", key=key) from e

    # -------------------------------------------------------------------------
    # BackendStore protocol
    # -------------------------------------------------------------------------

    async def get(self, key: str, raw: bool = False) -> Any | None:
        """
        Get a value.

        STAGE-B.GET: Redis GET

        Returns:
            Decoded value, the stored string when raw, or None if absent
        """
        payload = await self._execute("GET", key, "get", key)
        if payload is None or raw:
            return payload
        try:
            return decode_value(payload)
        except orjson.JSONDecodeError as e:
            raise BackendError.from_exception(e, "Stored fragment is not valid JSON", key=key) from e

    async def set(
        self,
        key: str,
        value: Any,
        expire: int | None = None,
        raw: bool = False,
        keep_ttl: bool = False,
    ) -> bool:
        """
        Store a value.

        STAGE-B.SET: Redis SET (EX when an expiry is given, KEEPTTL with keep_ttl)
        """
        if raw:
            payload = value
        else:
            try:
                payload = encode_value(value)
            except TypeError as e:
                raise BackendError.from_exception(e, "Fragment value is not serializable", key=key) from e

        if keep_ttl:
            result = await self._execute("SET", key, "set", key, payload, keepttl=True)
        else:
            result = await self._execute("SET", key, "set", key, payload, ex=expire or None)
        return bool(result)

    async def delete(self, key: str) -> bool:
        """STAGE-B.DEL: Redis DEL"""
        return bool(await self._execute("DEL", key, "delete", key))

    async def multi_get(self, *keys: str) -> dict[str, Any]:
        """
        Get several keys in one round trip.

        STAGE-B.MGET: Redis MGET
        """
        if not keys:
            return {}

        label = ",".join(keys)
        payloads = await self._execute("MGET", label, "mget", list(keys))
        found = {}
        for key, payload in zip(keys, payloads):
            if payload is None:
                continue
            try:
                found[key] = decode_value(payload)
            except orjson.JSONDecodeError as e:
                raise BackendError.from_exception(e, "Stored fragment is not valid JSON", key=key) from e
        return found

    async def delete_matching(self, pattern: KeyPattern) -> int:
        """
        Delete every key matching a pattern.

        STAGE-B.SCAN: SCAN + batched DEL

        Glob strings are handed to SCAN MATCH. Compiled regexes cannot be
        evaluated by Redis, so every key is scanned and filtered locally
        with pattern.search().

        Returns:
            Number of keys deleted
        """
        is_regex = isinstance(pattern, re.Pattern)
        label = pattern.pattern if is_regex else pattern
        client = self._require_client("SCAN", label)

        deleted = 0
        batch: list[str] = []
        try:
            async for key in client.scan_iter(match=None if is_regex else pattern, count=self._batch_size):
                if is_regex and not pattern.search(key):
                    continue
                batch.append(key)
                if len(batch) >= self._batch_size:
                    deleted += await client.delete(*batch)
                    batch.clear()
            if batch:
                deleted += await client.delete(*batch)
        except (ConnectionError, TimeoutError) as e:
            logger.error("Redis SCAN failed", stage=Stage.BACKEND.value, pattern=label, error=str(e))
            raise BackendUnavailableError.from_exception(e, f"Redis SCAN failed: {e}", pattern=label) from e
        except RedisError as e:
            logger.error("Redis SCAN failed", stage=Stage.BACKEND.value, pattern=label, error=str(e))
            raise BackendError.from_exception(e, f"Redis SCAN failed: {e}", pattern=label) from e

        return deleted

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on the Redis connection.

        Returns:
            Dict with status, connection flag and ping latency
        """
        health = {
            "status": "healthy",
            "connected": self._is_connected,
            "host": self._settings.redis.REDIS_HOST,
            "port": self._settings.redis.REDIS_PORT,
            "ping_latency_ms": None,
        }

        if not self._client:
            health["status"] = "unhealthy"
            health["error"] = "Client not initialized"
            return health

        try:
            start = time.perf_counter()
            await self._client.ping()
            health["ping_latency_ms"] = round((time.perf_counter() - start) * 1000, 2)
        except RedisError as e:
            health["status"] = "unhealthy"
            health["error"] = str(e)

        return health


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_store: RedisStore | None = None


def get_store() -> RedisStore:
    """
    Get the process-wide Redis store (singleton).

    Returns:
        RedisStore: Global store instance (not yet connected)
    """
    global _store

    if _store is None:
        _store = RedisStore()

    return _store

