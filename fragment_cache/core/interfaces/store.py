"""
Backend Store Protocol

This module defines the contract the fragment cache depends on for its
shared (second) tier, plus a dict-backed implementation used in tests and
single-process development.

Architectural Decision: Protocol-based abstraction
- The fragment cache never reaches into a third-party client type; the
  integration layer supplies an adapter implementing BackendStore
- Facilitates testing with in-memory or mocked stores
- Type-safe interface with runtime checking
"""

import fnmatch
import re
import time
from typing import Any, Protocol, runtime_checkable

KeyPattern = str | re.Pattern


@runtime_checkable
class BackendStore(Protocol):
    """
    Protocol for the key-value store behind the fragment cache.

    Implementations:
    - RedisStore: Production Redis-backed store
    - InMemoryStore: Testing/development store

    Implementations must be safe for concurrent use by many scopes and
    own their timeout/retry policy. Failures are raised as BackendError
    (or BackendUnavailableError).
    """

    async def get(self, key: str, raw: bool = False) -> Any | None:
        """
        Get a value.

        Args:
            key: Physical cache key
            raw: Skip value deserialization

        Returns:
            The stored value or None if absent
        """
        ...

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

        Args:
            key: Physical cache key
            value: Value to store
            expire: Time-to-live in seconds (None or 0 = no expiry)
            raw: Skip value serialization
            keep_ttl: Keep the key's remaining time-to-live; `expire` is ignored

        Returns:
            True if stored
        """
        ...

    async def delete(self, key: str) -> bool:
        """Delete one key. Returns True if it existed."""
        ...

    async def delete_matching(self, pattern: KeyPattern) -> int:
        """
        Delete every key matching a pattern.

        Args:
            pattern: Compiled regex (matched with search) or glob string

        Returns:
            Number of keys deleted
        """
        ...

    async def multi_get(self, *keys: str) -> dict[str, Any]:
        """
        Get several keys in one round trip.

        Returns:
            Mapping of found keys to values; absent keys are omitted
        """
        ...


def key_matches(pattern: KeyPattern, key: str) -> bool:
    """Match a key against a regex (search) or glob pattern."""
    if isinstance(pattern, re.Pattern):
        return pattern.search(key) is not None
    return fnmatch.fnmatchcase(key, pattern)


class InMemoryStore:
    """
    Simple in-memory store implementing the BackendStore protocol.

    Values are kept as Python objects, so `raw` has no effect. Expiry is
    evaluated lazily on access with a monotonic clock.

    Note: This is NOT distributed. Use only for tests and development.
    """

    def __init__(self):
        self._store: dict[str, Any] = {}
        self._expires_at: dict[str, float] = {}

    def _is_expired(self, key: str) -> bool:
        deadline = self._expires_at.get(key)
        if deadline is not None and time.monotonic() >= deadline:
            self._store.pop(key, None)
            self._expires_at.pop(key, None)
            return True
        return False

    def _lookup(self, key: str) -> Any | None:
        if self._is_expired(key):
            return None
        return self._store.get(key)

    def _remove(self, key: str) -> bool:
        self._expires_at.pop(key, None)
        return self._store.pop(key, None) is not None

    async def get(self, key: str, raw: bool = False) -> Any | None:
        """Get value from in-memory store."""
        return self._lookup(key)

    async def set(
        self,
        key: str,
        value: Any,
        expire: int | None = None,
        raw: bool = False,
        keep_ttl: bool = False,
    ) -> bool:
        """Set value in in-memory store."""
        if keep_ttl:
            # A lapsed deadline is dropped with its value; a live one stays.
            self._is_expired(key)
            self._store[key] = value
            return True

        self._store[key] = value
        if expire:
            self._expires_at[key] = time.monotonic() + expire
        else:
            self._expires_at.pop(key, None)
        return True

    async def delete(self, key: str) -> bool:
        """Delete key from in-memory store."""
        return self._remove(key)

    async def delete_matching(self, pattern: KeyPattern) -> int:
        """Delete all keys matching the pattern."""
        matched = [key for key in list(self._store) if key_matches(pattern, key)]
        for key in matched:
            self._remove(key)
        return len(matched)

    async def multi_get(self, *keys: str) -> dict[str, Any]:
        """Get several keys."""
        found = {}
        for key in keys:
            value = self._lookup(key)
            if value is not None:
                found[key] = value
        return found

    def keys(self) -> list[str]:
        """All live keys (test helper)."""
        return [key for key in list(self._store) if not self._is_expired(key)]

    async def health_check(self) -> dict[str, Any]:
        """Health check."""
        return {"status": "healthy", "keys_count": len(self._store)}
