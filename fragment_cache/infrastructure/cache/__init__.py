"""
Cache Module

Provides two-tier fragment caching (request-scoped local cache + Redis).
"""

from .common_key import CommonKeyCache
from .fragment_cache import (
    FragmentCache,
    close_fragment_cache,
    get_fragment_cache,
    init_fragment_cache,
)
from .local_cache import (
    LocalScopedCache,
    bind_scope,
    current_scope,
    fragment_scope,
    has_active_scope,
    unbind_scope,
)
from .observer import FragmentCacheObserver
from .redis_store import RedisStore, get_store

__all__ = [
    "CommonKeyCache",
    "FragmentCache",
    "FragmentCacheObserver",
    "LocalScopedCache",
    "RedisStore",
    "bind_scope",
    "close_fragment_cache",
    "current_scope",
    "fragment_scope",
    "get_fragment_cache",
    "get_store",
    "has_active_scope",
    "init_fragment_cache",
    "unbind_scope",
]
