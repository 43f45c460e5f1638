"""
Unit Tests for InMemoryStore

Tests the dict-backed BackendStore used in tests and development.
"""

import re
from unittest.mock import patch

import pytest

from fragment_cache.core.interfaces.store import BackendStore, InMemoryStore, key_matches


@pytest.mark.unit
class TestKeyMatches:
    """Test pattern matching shared by the stores."""

    def test_regex_uses_search(self):
        assert key_matches(re.compile("products"), "views/products/7")
        assert not key_matches(re.compile("^products"), "views/products/7")

    def test_glob(self):
        assert key_matches("views/*", "views/products/7")
        assert not key_matches("views/*", "other/products")


@pytest.mark.unit
class TestInMemoryStore:
    """Test suite for InMemoryStore."""

    def test_implements_protocol(self):
        assert isinstance(InMemoryStore(), BackendStore)

    @pytest.mark.asyncio
    async def test_set_get_delete(self):
        store = InMemoryStore()

        assert await store.set("a", {"body": "x", "data": None}) is True
        assert await store.get("a") == {"body": "x", "data": None}
        assert await store.delete("a") is True
        assert await store.delete("a") is False
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_expiry(self):
        """Test that entries vanish once their expiry has passed."""
        store = InMemoryStore()

        with patch("fragment_cache.core.interfaces.store.time.monotonic", return_value=100.0):
            await store.set("a", "x", expire=10)
            await store.set("b", "y")

        with patch("fragment_cache.core.interfaces.store.time.monotonic", return_value=111.0):
            assert await store.get("a") is None
            assert await store.get("b") == "y"

    @pytest.mark.asyncio
    async def test_keep_ttl_preserves_deadline(self):
        """Test that keep_ttl replaces the value but not its expiry."""
        store = InMemoryStore()

        with patch("fragment_cache.core.interfaces.store.time.monotonic", return_value=100.0):
            await store.set("a", "x", expire=10)
            await store.set("a", "y", expire=500, keep_ttl=True)
            await store.set("b", "z", keep_ttl=True)

        with patch("fragment_cache.core.interfaces.store.time.monotonic", return_value=105.0):
            assert await store.get("a") == "y"

        with patch("fragment_cache.core.interfaces.store.time.monotonic", return_value=111.0):
            assert await store.get("a") is None
            assert await store.get("b") == "z"

    @pytest.mark.asyncio
    async def test_multi_get_omits_absent(self):
        store = InMemoryStore()
        await store.set("a", 1)

        assert await store.multi_get("a", "b") == {"a": 1}

    @pytest.mark.asyncio
    async def test_delete_matching(self):
        store = InMemoryStore()
        for key in ("views/a", "views/b", "other/c"):
            await store.set(key, "x")

        assert await store.delete_matching(re.compile(r"^views/")) == 2
        assert store.keys() == ["other/c"]

    @pytest.mark.asyncio
    async def test_health_check(self):
        health = await InMemoryStore().health_check()

        assert health["status"] == "healthy"
