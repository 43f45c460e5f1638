"""
fragment-cache

Request-scoped two-tier fragment caching with content interpolation and
common-key multiplexing.

Usage:
    from fragment_cache import FragmentCache, FragmentRenderer, fragment_scope

    fragments = FragmentCache(store)
    renderer = FragmentRenderer(fragments)

    async with fragment_scope():
        html = await renderer.fragment_for("views/home", {}, {"__USER__": name}, render_home)
"""

from fragment_cache.core.exceptions import (
    BackendError,
    BackendUnavailableError,
    FragmentCacheError,
    InvalidKeyError,
    InvalidOptionsError,
    ScopeUnavailableError,
)
from fragment_cache.core.interfaces.store import BackendStore, InMemoryStore
from fragment_cache.core.models import FragmentEntry, FragmentOptions, canonicalize_key
from fragment_cache.infrastructure.cache import (
    FragmentCache,
    LocalScopedCache,
    RedisStore,
    current_scope,
    fragment_scope,
    get_fragment_cache,
    has_active_scope,
)
from fragment_cache.rendering import FragmentRenderer, OutputBuffer, interpolate

__version__ = "1.0.0"

__all__ = [
    "BackendError",
    "BackendStore",
    "BackendUnavailableError",
    "FragmentCache",
    "FragmentCacheError",
    "FragmentEntry",
    "FragmentOptions",
    "FragmentRenderer",
    "InMemoryStore",
    "InvalidKeyError",
    "InvalidOptionsError",
    "LocalScopedCache",
    "OutputBuffer",
    "RedisStore",
    "ScopeUnavailableError",
    "canonicalize_key",
    "current_scope",
    "fragment_scope",
    "get_fragment_cache",
    "has_active_scope",
    "interpolate",
]
