"""
Application Module

Integration with web frameworks (FastAPI / Starlette).
"""

from .lifespan import fragment_cache_lifespan
from .middleware import FragmentScopeMiddleware

__all__ = ["FragmentScopeMiddleware", "fragment_cache_lifespan"]
