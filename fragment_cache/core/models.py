"""
Fragment cache models: per-call options, composite entries and key
canonicalization.
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from fragment_cache.core.config.constants import PAYLOAD_BODY_FIELD, PAYLOAD_DATA_FIELD
from fragment_cache.core.exceptions import InvalidKeyError, InvalidOptionsError
from fragment_cache.core.interfaces.store import BackendStore

FragmentKey = str | Mapping | list | tuple | re.Pattern


class FragmentOptions(BaseModel):
    """
    Options accepted by read/write/expire and by the renderer.

    expire: seconds (or timedelta) the backend keeps a written entry
    common_key: group whose shared backend entry holds this fragment
    raw: skip the backend's value serialization
    cache: store to use for this call instead of the manager's store
    if: renderer-only gate; a present, falsy value bypasses caching

    Unknown option names are rejected.
    """

    expire: int | None = Field(default=None, ge=0, description="Expiry in seconds")
    common_key: str | None = Field(default=None, min_length=1, description="Common key group")
    raw: bool = Field(default=False, description="Bypass backend value serialization")
    cache: Any = Field(default=None, description="Per-call backend store override")
    condition: Any = Field(default=None, alias="if", description="Caching gate (renderer only)")

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        frozen=True,
        arbitrary_types_allowed=True,
    )

    @field_validator("expire", mode="before")
    @classmethod
    def normalize_expire(cls, v):
        """Accept timedelta durations, rounded up to whole seconds."""
        if isinstance(v, timedelta):
            return math.ceil(v.total_seconds())
        return v

    @field_validator("cache")
    @classmethod
    def validate_cache(cls, v):
        if v is not None and not isinstance(v, BackendStore):
            raise ValueError("cache must implement get/set/delete/delete_matching/multi_get")
        return v

    @model_validator(mode="after")
    def validate_combination(self):
        if self.raw and self.common_key:
            raise ValueError("raw cannot be combined with common_key")
        return self

    @property
    def bypass(self) -> bool:
        """True when an explicit `if` option evaluated false."""
        return "condition" in self.model_fields_set and not self.condition

    @classmethod
    def coerce(cls, options: "FragmentOptions | Mapping[str, Any] | None") -> "FragmentOptions":
        """
        Build options from None, a mapping or an existing instance.

        Raises:
            InvalidOptionsError: Unknown names, bad values or combinations
        """
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if not isinstance(options, Mapping):
            raise InvalidOptionsError(
                "Options must be a mapping or FragmentOptions",
                details={"type": type(options).__name__},
            )
        try:
            return cls.model_validate(dict(options))
        except ValidationError as e:
            raise InvalidOptionsError(
                f"Invalid fragment options: {e.error_count()} error(s)",
                details={"errors": e.errors(include_url=False), "options": sorted(options)},
            ) from e


@dataclass(frozen=True)
class FragmentEntry:
    """
    Composite payload: a renderable body plus side-channel data.

    Stored in both tiers as a plain {"body": ..., "data": ...} mapping so
    any backend that can hold a mapping can hold it.
    """

    body: Any
    data: Any

    def to_payload(self) -> dict[str, Any]:
        return {PAYLOAD_DATA_FIELD: self.data, PAYLOAD_BODY_FIELD: self.body}

    @classmethod
    def from_payload(cls, payload: Any) -> "FragmentEntry | None":
        """Return the entry if `payload` is a composite payload, else None."""
        if (
            isinstance(payload, Mapping)
            and len(payload) == 2
            and PAYLOAD_BODY_FIELD in payload
            and PAYLOAD_DATA_FIELD in payload
        ):
            return cls(body=payload[PAYLOAD_BODY_FIELD], data=payload[PAYLOAD_DATA_FIELD])
        return None


def is_pattern_key(key: Any) -> bool:
    return isinstance(key, re.Pattern)


def canonicalize_key(key: Any) -> str:
    """
    Default canonicalization of a fragment key.

    Strings are used as-is. Structured descriptors (mappings, lists,
    tuples) are serialized with sorted keys so that the same descriptor
    always produces the same string regardless of insertion order.

    Raises:
        InvalidKeyError: Unsupported key type
    """
    if isinstance(key, str):
        return key
    if isinstance(key, Mapping | list | tuple):
        try:
            return orjson.dumps(
                dict(key) if isinstance(key, Mapping) else list(key),
                option=orjson.OPT_SORT_KEYS | orjson.OPT_NON_STR_KEYS,
            ).decode("utf-8")
        except TypeError as e:
            raise InvalidKeyError.from_exception(
                e, "Fragment key descriptor is not serializable"
            ) from e
    raise InvalidKeyError(
        "Fragment key must be a string or a structured descriptor",
        details={"type": type(key).__name__},
    )
