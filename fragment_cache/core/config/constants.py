"""
System Constants and Enumerations

Stage identifiers used in structured logs, cache tier labels and payload
field names shared by the store adapters and the fragment cache manager.
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Fragment cache stages for structured logging.

    Format: {SEQUENCE}_{DESCRIPTIVE_NAME}
    Each stage names one step of a fragment cache operation so that logs
    can be followed without reading the code.
    """

    INITIALIZATION = "0.0_INITIALIZATION"
    SCOPE_OPEN = "1.0_SCOPE_OPEN"
    SCOPE_CLOSE = "1.1_SCOPE_CLOSE"
    LOCAL_LOOKUP = "2.1_LOCAL_LOOKUP"
    BACKEND_LOOKUP = "2.2_BACKEND_LOOKUP"
    FRAGMENT_WRITE = "2.3_FRAGMENT_WRITE"
    FRAGMENT_EXPIRE = "2.4_FRAGMENT_EXPIRE"
    RENDER = "3.0_RENDER"

    BACKEND = "B_BACKEND_STORE"
    COMMON_KEY = "C_COMMON_KEY"


# ============================================================================
# Cache tiers
# ============================================================================


class CacheSource(str, Enum):
    """Which tier answered a read."""

    LOCAL = "local"
    BACKEND = "backend"
    MISS = "miss"


# ============================================================================
# Composite payload fields
# ============================================================================

PAYLOAD_BODY_FIELD = "body"
PAYLOAD_DATA_FIELD = "data"

# Log lines truncate keys to this many characters
LOG_KEY_MAX_LENGTH = 80
