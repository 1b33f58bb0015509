"""Public domain model surface."""

from __future__ import annotations

from annomerge.domain.model.enums import EntityKind, TagMapType
from annomerge.domain.model.records import (
    BlockRange,
    Location,
    Note,
    Record,
    Tag,
    TagMap,
    UserMark,
)

__all__ = [
    "BlockRange",
    "EntityKind",
    "Location",
    "Note",
    "Record",
    "Tag",
    "TagMap",
    "TagMapType",
    "UserMark",
]
