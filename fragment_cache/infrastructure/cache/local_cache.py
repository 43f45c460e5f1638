"""
Local Scoped Cache

The first cache tier: a plain mapping from fragment key to the last value
this process read or wrote for it, valid for exactly one scope (one
request, one job). It has no size bound and no eviction; it is emptied
when the scope ends.

Scope binding uses a ContextVar, so every asyncio task (and therefore
every request served by an ASGI worker) sees its own scope and no
locking is needed at this tier.

Usage:
    async with fragment_scope() as scope:
        await fragments.read_fragment("views/home")   # uses `scope`
"""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar, Token
from typing import Any

from fragment_cache.core.config.constants import Stage
from fragment_cache.core.exceptions import ScopeUnavailableError
from fragment_cache.core.logging.logger import get_logger, log_stage, scope_id_ctx

logger = get_logger(__name__)


class LocalScopedCache:
    """
    Request-scoped memoization of fragment cache values.

    Found values only: a backend miss is never recorded here, so a
    fragment written later in the same scope by another code path is not
    hidden behind a stale negative entry.

    Attributes:
        scope_id: Correlation ID for logs
        data: Side-channel slot. Set by reading a composite entry, cleared
            by reading a plain one, and wrapped around the body on write.
    """

    def __init__(self, scope_id: str | None = None):
        self.scope_id = scope_id or uuid.uuid4().hex
        self._entries: dict[str, Any] = {}
        self.data: Any = None

    def get(self, key: str) -> Any | None:
        """Get a value, or None if this scope has not seen the key."""
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def contains(self, key: str) -> bool:
        return key in self._entries

    def clear(self) -> None:
        """
        Drop every entry and the side-channel slot.

        Idempotent; safe to call on an empty cache.
        """
        self._entries.clear()
        self.data = None

    @property
    def size(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        """Keys in first-seen order."""
        return list(self._entries)

    def __repr__(self) -> str:
        return f"LocalScopedCache(scope_id='{self.scope_id}', size={self.size})"


# =============================================================================
# SCOPE BINDING
# =============================================================================

_current_scope: ContextVar[LocalScopedCache | None] = ContextVar(
    "fragment_local_cache", default=None
)


def current_scope(required: bool = False) -> LocalScopedCache | None:
    """
    Get the scope bound to the current context.

    Args:
        required: Raise instead of returning None when no scope is bound

    Raises:
        ScopeUnavailableError: If required and no scope is bound
    """
    scope = _current_scope.get()
    if scope is None and required:
        raise ScopeUnavailableError("No fragment scope is bound to the current context")
    return scope


def has_active_scope() -> bool:
    return _current_scope.get() is not None


def bind_scope(scope: LocalScopedCache | None = None) -> Token:
    """
    Bind a scope to the current context.

    Returns the ContextVar token to hand back to unbind_scope(). Prefer
    fragment_scope(), which also clears the cache at the end.
    """
    return _current_scope.set(scope or LocalScopedCache())


def unbind_scope(token: Token) -> None:
    _current_scope.reset(token)


@asynccontextmanager
async def fragment_scope(scope_id: str | None = None) -> AsyncIterator[LocalScopedCache]:
    """
    Open a fragment scope for one unit of work.

    STAGE-1.0: Scope open
    STAGE-1.1: Scope close

    The local cache is cleared and unbound when the block exits, whether
    it exits normally or with an exception.
    """
    scope = LocalScopedCache(scope_id)
    token = _current_scope.set(scope)
    log_token = scope_id_ctx.set(scope.scope_id)
    log_stage(logger, Stage.SCOPE_OPEN, "Fragment scope opened", level="debug")

    try:
        yield scope
    finally:
        entries = scope.size
        scope.clear()
        log_stage(
            logger, Stage.SCOPE_CLOSE, "Fragment scope closed", level="debug", entries=entries
        )
        _current_scope.reset(token)
        scope_id_ctx.reset(log_token)
