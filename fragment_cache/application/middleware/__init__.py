"""
Middleware Package

ASGI middleware tying fragment scopes to HTTP requests.
"""

from .fragment_scope import FragmentScopeMiddleware

__all__ = ["FragmentScopeMiddleware"]
