"""
Fragment Scope Middleware

Opens one fragment scope per HTTP request so that every read_fragment /
write_fragment made while handling the request shares one local cache,
and clears that cache when the request is done (also when the handler
raises).

Usage:
    app = FastAPI()
    app.add_middleware(FragmentScopeMiddleware)

The scope ID is taken from the request's X-Request-ID header when
present, generated otherwise, and echoed back in the response headers so
log lines can be matched to a request.
"""

from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from fragment_cache.infrastructure.cache.local_cache import fragment_scope

HEADER_REQUEST_ID = "X-Request-ID"
HEADER_SCOPE_ID = "X-Fragment-Scope-ID"


class FragmentScopeMiddleware(BaseHTTPMiddleware):
    """Binds a fresh LocalScopedCache to each request."""

    def __init__(self, app, header_name: str = HEADER_SCOPE_ID):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        async with fragment_scope(request.headers.get(HEADER_REQUEST_ID)) as scope:
            request.state.fragment_scope = scope
            response = await call_next(request)
            response.headers[self.header_name] = scope.scope_id
            return response
