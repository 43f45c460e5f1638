"""
Backend Store Exceptions

Raised by backend store adapters. The fragment cache manager catches
these and degrades to a miss or a local-only write.
"""

from fragment_cache.core.exceptions.base import FragmentCacheError


class BackendError(FragmentCacheError):
    """
    Raised when a backend store operation fails.

    Common causes:
    - Value could not be (de)serialized
    - Server rejected the command
    """
    pass


class BackendUnavailableError(BackendError):
    """
    Raised when the backend store cannot be reached.

    Common causes:
    - Redis server is down
    - Network connectivity issues or timeouts
    - Client used before connect()
    """
    pass
