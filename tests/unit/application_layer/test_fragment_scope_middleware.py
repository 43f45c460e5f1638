"""
Unit Tests for FragmentScopeMiddleware and the application lifespan

Tests that every request gets its own bound fragment scope that is
cleared when the request ends, and that the lifespan connects and
closes the process-wide fragment cache.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fragment_cache.application import FragmentScopeMiddleware, fragment_cache_lifespan
from fragment_cache.infrastructure.cache.fragment_cache import FragmentCache
from fragment_cache.infrastructure.cache.local_cache import current_scope, has_active_scope
from tests.test_fixtures import StoreTestFactory


@pytest.fixture
def seen_scopes():
    return []


@pytest.fixture
def app(seen_scopes, mock_settings):
    fragments = FragmentCache(StoreTestFactory.recording_store(), settings=mock_settings)
    app = FastAPI()
    app.add_middleware(FragmentScopeMiddleware)

    @app.get("/fragment")
    async def fragment():
        scope = current_scope()
        seen_scopes.append(scope)
        await fragments.write_fragment("views/home", "<p>home</p>")
        html = await fragments.read_fragment("views/home")
        return {"bound": has_active_scope(), "scope_id": scope.scope_id, "html": html, "size": scope.size}

    @app.get("/boom")
    async def boom():
        scope = current_scope()
        seen_scopes.append(scope)
        scope.set("views/partial", "<p>")
        raise RuntimeError("render failed")

    return app


@pytest.mark.unit
class TestFragmentScopeMiddleware:
    """Test suite for FragmentScopeMiddleware."""

    def test_request_has_bound_scope(self, app):
        client = TestClient(app)

        response = client.get("/fragment")

        assert response.status_code == 200
        body = response.json()
        assert body["bound"] is True
        assert body["html"] == "<p>home</p>"
        assert body["size"] == 1
        assert response.headers["X-Fragment-Scope-ID"] == body["scope_id"]

    def test_request_id_becomes_scope_id(self, app):
        client = TestClient(app)

        response = client.get("/fragment", headers={"X-Request-ID": "req-123"})

        assert response.json()["scope_id"] == "req-123"
        assert response.headers["X-Fragment-Scope-ID"] == "req-123"

    def test_scope_is_cleared_after_request(self, app, seen_scopes):
        client = TestClient(app)

        client.get("/fragment")
        client.get("/fragment")

        assert len(seen_scopes) == 2
        assert seen_scopes[0] is not seen_scopes[1]
        assert all(scope.size == 0 for scope in seen_scopes)

    def test_scope_is_cleared_when_handler_raises(self, app, seen_scopes):
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/boom")

        assert response.status_code == 500
        assert seen_scopes[0].size == 0


@pytest.mark.unit
class TestFragmentCacheLifespan:
    """Test application startup/shutdown wiring."""

    def test_lifespan_initializes_and_closes(self):
        fragments = MagicMock(caching_enabled=True)
        init = AsyncMock(return_value=fragments)
        close = AsyncMock()

        with (
            patch("fragment_cache.application.lifespan.setup_logging") as mock_setup_logging,
            patch("fragment_cache.application.lifespan.init_fragment_cache", init),
            patch("fragment_cache.application.lifespan.close_fragment_cache", close),
        ):
            app = FastAPI(lifespan=fragment_cache_lifespan)
            with TestClient(app):
                assert app.state.fragments is fragments
                close.assert_not_awaited()

        mock_setup_logging.assert_called_once()
        init.assert_awaited_once()
        close.assert_awaited_once()
