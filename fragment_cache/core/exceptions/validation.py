"""
Validation Exceptions

Raised at call time for inputs that cannot be safely downgraded to a
no-op.
"""

from fragment_cache.core.exceptions.base import FragmentCacheError


class ValidationError(FragmentCacheError):
    """Base exception for invalid caller input."""
    pass


class InvalidOptionsError(ValidationError):
    """Raised for unknown option names or unsupported option combinations."""
    pass


class InvalidKeyError(ValidationError):
    """Raised for a key the called operation cannot address."""
    pass
