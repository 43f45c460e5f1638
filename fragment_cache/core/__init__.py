"""
Core Module

Foundational components: configuration, logging, exceptions, the backend
store contract and the fragment cache models.
"""

from .exceptions import (
    BackendError,
    BackendUnavailableError,
    ConfigurationError,
    FragmentCacheError,
    InvalidKeyError,
    InvalidOptionsError,
    ScopeUnavailableError,
)
from .logging import (
    clear_scope_id,
    get_logger,
    get_scope_id,
    log_stage,
    set_scope_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_scope_id",
    "get_scope_id",
    "clear_scope_id",
    "log_stage",
    "FragmentCacheError",
    "ConfigurationError",
    "BackendError",
    "BackendUnavailableError",
    "ScopeUnavailableError",
    "InvalidOptionsError",
    "InvalidKeyError",
]
