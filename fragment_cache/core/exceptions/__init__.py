"""
Exception Module

Structured exception hierarchy for the fragment cache.

Module Structure:
-----------------
- **base.py**: FragmentCacheError base class + ConfigurationError
- **backend.py**: Backend store failures (swallowed by the manager)
- **scope.py**: Missing fragment scope
- **validation.py**: Invalid keys and options (raised to the caller)

Usage:
------
```python
from fragment_cache.core.exceptions import BackendError, InvalidOptionsError
```
"""

from fragment_cache.core.exceptions.backend import BackendError, BackendUnavailableError
from fragment_cache.core.exceptions.base import ConfigurationError, FragmentCacheError
from fragment_cache.core.exceptions.scope import ScopeUnavailableError
from fragment_cache.core.exceptions.validation import (
    InvalidKeyError,
    InvalidOptionsError,
    ValidationError,
)

__all__ = [
    # Base
    "FragmentCacheError",
    "ConfigurationError",
    # Backend
    "BackendError",
    "BackendUnavailableError",
    # Scope
    "ScopeUnavailableError",
    # Validation
    "ValidationError",
    "InvalidOptionsError",
    "InvalidKeyError",
]
