"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tests.test_fixtures import StoreTestFactory  # noqa: E402

# ============================================================================
# Pytest Configuration
# ============================================================================

# pytest-asyncio runs in auto mode (see pyproject.toml)


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def mock_settings():
    """
    Settings for testing, isolated from the environment's .env file.

    Tests may mutate the returned instance (e.g. ENABLE_CACHING).
    """
    from fragment_cache.core.config.settings import Settings

    return Settings(
        _env_file=None,
        ENABLE_CACHING=True,
        FRAGMENT_CACHE_DEFAULT_EXPIRE=0,
        FRAGMENT_COMMON_KEY_PREFIX="fragments:common",
        FRAGMENT_BACKEND_RETRIES=2,
        FRAGMENT_DELETE_BATCH_SIZE=2,
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="console",
    )


# ============================================================================
# Environment-Based Integration Toggles
# ============================================================================


@pytest.fixture(scope="session")
def use_real_redis():
    """Check if real Redis should be used for integration tests."""
    return os.getenv("USE_REAL_REDIS", "0").lower() in ("1", "true", "yes")


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def store():
    """In-memory backend store that records every call."""
    return StoreTestFactory.recording_store()


@pytest.fixture
def failing_store():
    """Backend store whose every operation raises BackendUnavailableError."""
    return StoreTestFactory.failing_store()


# ============================================================================
# Fragment Cache Fixtures
# ============================================================================


@pytest.fixture
def fragments(store, mock_settings):
    """FragmentCache over the recording store."""
    from fragment_cache.infrastructure.cache.fragment_cache import FragmentCache

    return FragmentCache(store, settings=mock_settings)


@pytest.fixture
def scope():
    """
    A fresh local scope, passed explicitly to read/write.

    Binding happens per test with fragment_scope() where the binding
    itself is under test.
    """
    from fragment_cache.infrastructure.cache.local_cache import LocalScopedCache

    return LocalScopedCache("test-scope")


@pytest.fixture
def renderer(fragments):
    """FragmentRenderer over the fragments fixture."""
    from fragment_cache.rendering.fragments import FragmentRenderer

    return FragmentRenderer(fragments)
