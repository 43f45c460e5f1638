"""
Common Key Multiplexing

Lets many small fragments share one physical backend entry. The entry
for group `g` lives under "<FRAGMENT_COMMON_KEY_PREFIX>:<g>" and holds a
mapping {fragment_key: payload, ...}.

    read:  MGET the group entry, pick the fragment's sub-value
    write: fetch (or start) the group mapping, set the sub-entry, write
           the whole mapping back with the caller's expiry

The write is a read-modify-write without a lock: two scopes writing
different members of the same group at the same moment can lose one of
the writes. That costs a later miss, never a wrong value.
"""

from collections.abc import Mapping
from typing import Any

from fragment_cache.core.config.constants import LOG_KEY_MAX_LENGTH, Stage
from fragment_cache.core.interfaces.store import BackendStore
from fragment_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


class CommonKeyCache:
    """Sub-addressing of fragments inside a shared backend entry."""

    def __init__(self, prefix: str):
        self._prefix = prefix

    def group_key(self, common_key: str) -> str:
        """Physical backend key of a group."""
        return f"{self._prefix}:{common_key}"

    async def get_group(self, store: BackendStore, common_key: str) -> dict[str, Any]:
        """
        Fetch every member of a group.

        Returns:
            The group mapping, or an empty dict when the group is absent
        """
        group_key = self.group_key(common_key)
        cached = await store.multi_get(group_key)
        group = cached.get(group_key)
        return dict(group) if isinstance(group, Mapping) else {}

    async def get_value(self, store: BackendStore, key: str, common_key: str) -> Any | None:
        """
        Read one member of a group.

        A missing group and a group without this member are both a miss.
        """
        group = await self.get_group(store, common_key)
        value = group.get(key)
        log_stage(
            logger,
            Stage.COMMON_KEY,
            "Common key lookup",
            level="debug",
            common_key=common_key,
            cache_key=key[:LOG_KEY_MAX_LENGTH],
            group_size=len(group),
            found=value is not None,
        )
        return value

    async def set_value(
        self,
        store: BackendStore,
        key: str,
        common_key: str,
        value: Any,
        expire: int | None = None,
    ) -> bool:
        """
        Write one member of a group, keeping its siblings.

        The expiry applies to the whole group entry.
        """
        group_key = self.group_key(common_key)
        current = await store.get(group_key)
        group = dict(current) if isinstance(current, Mapping) else {}
        group[key] = value
        return await store.set(group_key, group, expire)

    async def delete_member(self, store: BackendStore, key: str, common_key: str) -> bool:
        """
        Remove one member of a group.

        The remaining members are written back keeping the group's
        current expiry; an emptied group is deleted.

        Returns:
            True if the member existed
        """
        group_key = self.group_key(common_key)
        current = await store.get(group_key)
        if not isinstance(current, Mapping) or key not in current:
            return False

        group = {k: v for k, v in current.items() if k != key}
        if group:
            await store.set(group_key, group, keep_ttl=True)
        else:
            await store.delete(group_key)
        return True
