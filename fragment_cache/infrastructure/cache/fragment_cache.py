#!/usr/bin/env python3
"""
Fragment Cache Manager

Read-through / write-through coordination between the request-scoped
local cache (tier 1) and the shared backend store (tier 2).

Architecture:
    FragmentCache (Public API)
        ├── LocalScopedCache (tier 1, one per scope, passed in or bound)
        ├── BackendStore (tier 2, RedisStore by default)
        │   └── CommonKeyCache (group sub-addressing)
        └── FragmentCacheObserver (logs, timing, counters)

Algorithm:
    READ:   local → backend (populate local on hit) → miss
    WRITE:  wrap with side-channel data if set → local + backend
    EXPIRE: backend delete (or delete_matching for regex keys)

Failure Policy:
    - Caching disabled: every operation returns None immediately
    - No scope bound (read/write): no-op, returns None
    - Backend error: read → miss, write → kept locally, expire → no-op;
      reported to the observer, never raised
    - Invalid keys or options: raised to the caller
"""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from fragment_cache.core.config.constants import CacheSource, Stage
from fragment_cache.core.config.settings import Settings, get_settings
from fragment_cache.core.exceptions import (
    BackendError,
    ConfigurationError,
    InvalidKeyError,
    InvalidOptionsError,
)
from fragment_cache.core.interfaces.store import BackendStore
from fragment_cache.core.logging.logger import get_logger, log_stage
from fragment_cache.core.models import (
    FragmentEntry,
    FragmentOptions,
    canonicalize_key,
    is_pattern_key,
)
from fragment_cache.infrastructure.cache.common_key import CommonKeyCache
from fragment_cache.infrastructure.cache.local_cache import LocalScopedCache, current_scope
from fragment_cache.infrastructure.cache.observer import FragmentCacheObserver
from fragment_cache.infrastructure.cache.redis_store import get_store

logger = get_logger(__name__)

OptionsLike = FragmentOptions | dict[str, Any] | None


class FragmentCache:
    """
    Two-tier fragment cache.

    Usage:
        fragments = FragmentCache(store)

        async with fragment_scope():
            html = await fragments.read_fragment("views/products/7")
            if html is None:
                html = await fragments.write_fragment("views/products/7", render())

        await fragments.expire_fragment(re.compile(r"^views/products/"))

    Collaborators (all injectable):
        store: backend store (default: process-wide RedisStore)
        is_enabled: feature flag checked at the top of every operation
            (default: settings.ENABLE_CACHING)
        key_canonicalizer: turns structured keys into strings
            (default: sorted-key JSON)
    """

    def __init__(
        self,
        store: BackendStore | None = None,
        *,
        settings: Settings | None = None,
        is_enabled: Callable[[], bool] | None = None,
        key_canonicalizer: Callable[[Any], str] | None = None,
        observer: FragmentCacheObserver | None = None,
    ):
        if store is not None and not isinstance(store, BackendStore):
            raise ConfigurationError(
                "Fragment store must implement the BackendStore protocol",
                details={"type": type(store).__name__},
            )

        self._settings = settings or get_settings()
        self._store = store
        self._is_enabled = is_enabled
        self._canonicalize = key_canonicalizer or canonicalize_key
        self._observer = observer or FragmentCacheObserver()
        self._common = CommonKeyCache(self._settings.cache.FRAGMENT_COMMON_KEY_PREFIX)
        self._default_expire = self._settings.cache.FRAGMENT_CACHE_DEFAULT_EXPIRE or None

        log_stage(
            logger,
            Stage.INITIALIZATION,
            "Fragment cache initialized",
            level="debug",
            store=type(store).__name__ if store is not None else "default",
        )

    # -------------------------------------------------------------------------
    # Collaborators
    # -------------------------------------------------------------------------

    @property
    def store(self) -> BackendStore:
        if self._store is None:
            self._store = get_store()
        return self._store

    @property
    def caching_enabled(self) -> bool:
        if self._is_enabled is not None:
            return bool(self._is_enabled())
        return bool(self._settings.ENABLE_CACHING)

    @property
    def common_keys(self) -> CommonKeyCache:
        return self._common

    async def initialize(self) -> None:
        """Connect the backend store if it needs connecting."""
        connect = getattr(self.store, "connect", None)
        if connect is not None:
            await connect()

    async def shutdown(self) -> None:
        disconnect = getattr(self.store, "disconnect", None)
        if disconnect is not None:
            await disconnect()

    # -------------------------------------------------------------------------
    # Keys and scopes
    # -------------------------------------------------------------------------

    def fragment_cache_key(self, key: Any) -> str:
        """
        Derive the physical cache key.

        Raises:
            InvalidKeyError: Regex keys (only expire_fragment takes them),
                unsupported key types, or keys that canonicalize to blank
        """
        if is_pattern_key(key):
            raise InvalidKeyError(
                "Pattern keys are only accepted by expire_fragment",
                details={"pattern": key.pattern},
            )
        name = self._canonicalize(key)
        if not isinstance(name, str) or not name.strip():
            raise InvalidKeyError("Fragment key is blank", details={"key": repr(key)})
        return name

    def _resolve_scope(self, scope: LocalScopedCache | None, operation: str) -> LocalScopedCache | None:
        resolved = scope if scope is not None else current_scope()
        if resolved is None:
            logger.debug("No fragment scope bound, skipping", operation=operation)
        return resolved

    def fragment_data(self, scope: LocalScopedCache | None = None) -> Any:
        """Side-channel data of the given (or bound) scope, None without a scope."""
        resolved = scope if scope is not None else current_scope()
        return resolved.data if resolved is not None else None

    def set_fragment_data(self, data: Any, scope: LocalScopedCache | None = None) -> bool:
        """
        Set side-channel data to be stored with the next write in this scope.

        Returns:
            False when no scope is available
        """
        resolved = self._resolve_scope(scope, "set_fragment_data")
        if resolved is None:
            return False
        resolved.data = data
        return True

    # -------------------------------------------------------------------------
    # Core Operations
    # -------------------------------------------------------------------------

    async def read_fragment(
        self, key: Any, options: OptionsLike = None, *, scope: LocalScopedCache | None = None
    ) -> Any | None:
        """
        Read a fragment through both tiers.

        STAGE-2.1: Local lookup
        STAGE-2.2: Backend lookup (if local miss)

        A backend hit is copied into the local tier; a backend miss is not
        recorded. A composite entry exposes its data through the scope's
        side-channel slot and returns only its body; any other read
        clears the slot.

        Args:
            key: Fragment key (string or structured descriptor)
            options: FragmentOptions or mapping (common_key, raw, cache)
            scope: Local cache to use (default: the bound scope)

        Returns:
            The fragment body, or None on miss / disabled / no scope
        """
        if not self.caching_enabled:
            return None

        opts = FragmentOptions.coerce(options)
        local = self._resolve_scope(scope, "read")
        if local is None:
            return None

        cache_key = self.fragment_cache_key(key)

        with self._observer.track("read", cache_key):
            content = local.get(cache_key)
            source = CacheSource.LOCAL
            if content is None:
                content = await self._backend_read(cache_key, opts)
                if content is None:
                    source = CacheSource.MISS
                else:
                    source = CacheSource.BACKEND
                    local.set(cache_key, content)

        self._observer.record_read(source, cache_key)

        entry = FragmentEntry.from_payload(content)
        if entry is not None:
            local.data = entry.data
            return entry.body

        local.data = None
        return content

    async def write_fragment(
        self,
        key: Any,
        content: Any,
        options: OptionsLike = None,
        *,
        scope: LocalScopedCache | None = None,
    ) -> Any | None:
        """
        Write a fragment to both tiers.

        STAGE-2.3: Fragment write

        When the scope carries side-channel data, {"data", "body"} is
        stored instead of the bare content.

        Args:
            key: Fragment key
            content: Rendered body
            options: FragmentOptions or mapping (expire, common_key, raw, cache)
            scope: Local cache to use (default: the bound scope)

        Returns:
            `content` unchanged, or None when disabled / no scope
        """
        if not self.caching_enabled:
            return None

        opts = FragmentOptions.coerce(options)
        local = self._resolve_scope(scope, "write")
        if local is None:
            return None

        cache_key = self.fragment_cache_key(key)
        composite = local.data is not None
        payload = FragmentEntry(body=content, data=local.data).to_payload() if composite else content

        with self._observer.track("write", cache_key):
            local.set(cache_key, payload)
            await self._backend_write(cache_key, payload, opts)

        self._observer.record_write(cache_key, composite)
        return content

    async def expire_fragment(self, key: Any, options: OptionsLike = None) -> int | bool | None:
        """
        Remove a fragment (or every fragment matching a regex) from the backend.

        STAGE-2.4: Fragment expiry

        The local tier is left alone: it dies with its scope.

        Args:
            key: Fragment key, or a compiled regex for bulk expiry
            options: FragmentOptions or mapping (common_key, cache)

        Returns:
            Keys deleted (regex), whether the key existed (single key), or
            None when disabled or the backend failed
        """
        if not self.caching_enabled:
            return None

        opts = FragmentOptions.coerce(options)
        store = self._store_for(opts)

        if is_pattern_key(key):
            if opts.common_key:
                raise InvalidOptionsError(
                    "Pattern expiry cannot be combined with common_key",
                    details={"pattern": key.pattern, "common_key": opts.common_key},
                )
            try:
                deleted = await store.delete_matching(key)
            except BackendError as e:
                self._observer.record_error("expire", key.pattern, e)
                return None
            self._observer.record_expire(key.pattern, pattern=True, deleted=deleted)
            return deleted

        cache_key = self.fragment_cache_key(key)
        try:
            if opts.common_key:
                existed = await self._common.delete_member(store, cache_key, opts.common_key)
            else:
                existed = await store.delete(cache_key)
        except BackendError as e:
            self._observer.record_error("expire", cache_key, e)
            return None

        self._observer.record_expire(cache_key, pattern=False)
        return existed

    # -------------------------------------------------------------------------
    # Backend access
    # -------------------------------------------------------------------------

    def _store_for(self, opts: FragmentOptions) -> BackendStore:
        return opts.cache if opts.cache is not None else self.store

    def _expiry(self, opts: FragmentOptions) -> int | None:
        if opts.expire is not None:
            return opts.expire or None
        return self._default_expire

    async def _backend_read(self, cache_key: str, opts: FragmentOptions) -> Any | None:
        store = self._store_for(opts)
        try:
            if opts.common_key:
                return await self._common.get_value(store, cache_key, opts.common_key)
            return await store.get(cache_key, raw=opts.raw)
        except BackendError as e:
            self._observer.record_error("read", cache_key, e)
            return None

    async def _backend_write(self, cache_key: str, payload: Any, opts: FragmentOptions) -> None:
        store = self._store_for(opts)
        expire = self._expiry(opts)
        try:
            if opts.common_key:
                await self._common.set_value(store, cache_key, opts.common_key, payload, expire)
            else:
                await store.set(cache_key, payload, expire, raw=opts.raw)
        except BackendError as e:
            self._observer.record_error("write", cache_key, e)

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        """
        Get fragment cache statistics.

        Returns:
            Dict with hit rates, write/expiry counts and backend errors
        """
        scope = current_scope()
        return {
            **self._observer.get_stats(),
            "local_size": scope.size if scope is not None else 0,
            "caching_enabled": self.caching_enabled,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }

    async def health_check(self) -> dict[str, Any]:
        """
        Perform health check on the fragment cache.

        Returns:
            Dict with overall status and the backend's own report
        """
        health = {"status": "healthy", "caching_enabled": self.caching_enabled, "backend": None}

        check = getattr(self.store, "health_check", None)
        if check is None:
            health["backend"] = {"status": "unknown"}
            return health

        try:
            backend = await check()
        except BackendError as e:
            health["status"] = "degraded"
            health["backend"] = {"status": "error", "error": e.message}
            return health

        health["backend"] = backend
        if backend.get("status") != "healthy":
            health["status"] = "degraded"
        return health


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_fragment_cache: FragmentCache | None = None


def get_fragment_cache() -> FragmentCache:
    """
    Get the process-wide fragment cache (singleton).

    Returns:
        FragmentCache: Global instance backed by the global RedisStore
    """
    global _fragment_cache

    if _fragment_cache is None:
        _fragment_cache = FragmentCache()

    return _fragment_cache


async def init_fragment_cache() -> FragmentCache:
    """Create the process-wide fragment cache and connect its store."""
    fragments = get_fragment_cache()
    await fragments.initialize()
    return fragments


async def close_fragment_cache() -> None:
    """Shut down the process-wide fragment cache."""
    global _fragment_cache

    if _fragment_cache:
        await _fragment_cache.shutdown()
        _fragment_cache = None
