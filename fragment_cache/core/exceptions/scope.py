"""
Scope Exceptions
"""

from fragment_cache.core.exceptions.base import FragmentCacheError


class ScopeUnavailableError(FragmentCacheError):
    """
    Raised when a local scoped cache is required but no scope is bound.

    The fragment cache manager never lets this escape: it checks for an
    active scope up front and turns the operation into a no-op.
    """
    pass
