"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import IntEnum, StrEnum


class EntityKind(StrEnum):
    """Discriminator for the six record kinds held by a dataset."""

    LOCATION = "location"
    USER_MARK = "user_mark"
    NOTE = "note"
    TAG = "tag"
    TAG_MAP = "tag_map"
    BLOCK_RANGE = "block_range"


class TagMapType(IntEnum):
    """Target of a tag association, stored in ``TagMap.map_type``."""

    LOCATION = 0
    NOTE = 1
