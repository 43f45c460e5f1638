"""
Unit Tests for CommonKeyCache

Tests sub-addressing of fragments inside one shared backend entry.
"""

import pytest

from fragment_cache.infrastructure.cache.common_key import CommonKeyCache
from tests.test_fixtures import StoreTestFactory


@pytest.fixture
def common():
    return CommonKeyCache("fragments:common")


@pytest.mark.unit
class TestCommonKeyCache:
    """Test suite for CommonKeyCache."""

    def test_group_key(self, common):
        assert common.group_key("nav") == "fragments:common:nav"

    @pytest.mark.asyncio
    async def test_absent_group_is_a_miss(self, common):
        store = StoreTestFactory.recording_store()

        assert await common.get_value(store, "nav/a", "nav") is None
        assert store.calls == [("multi_get", "fragments:common:nav")]

    @pytest.mark.asyncio
    async def test_absent_member_is_a_miss(self, common):
        store = StoreTestFactory.recording_store({"fragments:common:nav": {"nav/b": "B"}})

        assert await common.get_value(store, "nav/a", "nav") is None

    @pytest.mark.asyncio
    async def test_set_value_keeps_siblings(self, common):
        """Test that writing one member preserves the others."""
        store = StoreTestFactory.recording_store({"fragments:common:nav": {"nav/b": "B"}})

        await common.set_value(store, "nav/a", "nav", "A", expire=30)

        assert await store.get("fragments:common:nav") == {"nav/a": "A", "nav/b": "B"}
        assert store.calls_named("set") == [
            ("set", "fragments:common:nav", {"nav/b": "B", "nav/a": "A"}, 30, False, False)
        ]

    @pytest.mark.asyncio
    async def test_set_value_replaces_non_mapping_group(self, common):
        store = StoreTestFactory.recording_store({"fragments:common:nav": "garbage"})

        await common.set_value(store, "nav/a", "nav", "A")

        assert await store.get("fragments:common:nav") == {"nav/a": "A"}

    @pytest.mark.asyncio
    async def test_delete_member(self, common):
        store = StoreTestFactory.recording_store({"fragments:common:nav": {"nav/a": "A", "nav/b": "B"}})

        assert await common.delete_member(store, "nav/a", "nav") is True
        assert await store.get("fragments:common:nav") == {"nav/b": "B"}

    @pytest.mark.asyncio
    async def test_delete_member_keeps_group_ttl(self, common):
        """Test that the rewritten group keeps its remaining expiry."""
        store = StoreTestFactory.recording_store({"fragments:common:nav": {"nav/a": "A", "nav/b": "B"}})

        await common.delete_member(store, "nav/a", "nav")

        assert store.calls_named("set") == [("set", "fragments:common:nav", {"nav/b": "B"}, None, False, True)]

    @pytest.mark.asyncio
    async def test_delete_last_member_deletes_group(self, common):
        store = StoreTestFactory.recording_store({"fragments:common:nav": {"nav/a": "A"}})

        assert await common.delete_member(store, "nav/a", "nav") is True
        assert store.keys() == []
        assert store.calls_named("delete") == [("delete", "fragments:common:nav")]

    @pytest.mark.asyncio
    async def test_delete_absent_member(self, common):
        store = StoreTestFactory.recording_store()

        assert await common.delete_member(store, "nav/a", "nav") is False
        assert store.calls_named("set") == []
