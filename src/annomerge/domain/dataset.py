"""In-memory entity store for one annotation dataset.

The store keeps the six record collections in insertion order and maintains
natural-key indexes next to them. ``add_*`` keeps the indexes current;
``reinitialize_indexes`` rebuilds them from the collections, e.g. after notes
were edited in place or the lists were filled directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, TypeAlias, TypeVar

from annomerge.domain.model import (
    BlockRange,
    EntityKind,
    Location,
    Note,
    Tag,
    TagMap,
    UserMark,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


TagMapKey: TypeAlias = tuple[int, int]

TKey = TypeVar("TKey")
TRecord = TypeVar("TRecord")


@dataclass(slots=True)
class _Indexes:
    locations: dict[int, Location] = field(default_factory=dict[int, Location])
    user_marks: dict[str, UserMark] = field(default_factory=dict[str, UserMark])
    notes: dict[str, Note] = field(default_factory=dict[str, Note])
    tags: dict[str, Tag] = field(default_factory=dict[str, Tag])
    tag_maps: dict[TagMapKey, TagMap] = field(default_factory=dict[TagMapKey, TagMap])
    block_ranges: dict[int, BlockRange] = field(default_factory=dict[int, BlockRange])


@dataclass(slots=True)
class Dataset:
    """Six typed record collections plus natural-key lookups."""

    locations: list[Location] = field(default_factory=list[Location])
    user_marks: list[UserMark] = field(default_factory=list[UserMark])
    notes: list[Note] = field(default_factory=list[Note])
    tags: list[Tag] = field(default_factory=list[Tag])
    tag_maps: list[TagMap] = field(default_factory=list[TagMap])
    block_ranges: list[BlockRange] = field(default_factory=list[BlockRange])

    _indexes: _Indexes = field(default_factory=_Indexes, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.reinitialize_indexes()

    # Insertion ---------------------------------------------------------------

    def add_location(self, location: Location) -> None:
        self.locations.append(location)
        self._indexes.locations.setdefault(location.location_id, location)

    def add_user_mark(self, user_mark: UserMark) -> None:
        self.user_marks.append(user_mark)
        self._indexes.user_marks.setdefault(user_mark.user_mark_guid, user_mark)

    def add_note(self, note: Note) -> None:
        self.notes.append(note)
        self._indexes.notes.setdefault(note.guid, note)

    def add_tag(self, tag: Tag) -> None:
        self.tags.append(tag)
        self._indexes.tags.setdefault(tag.name, tag)

    def add_tag_map(self, tag_map: TagMap) -> None:
        self.tag_maps.append(tag_map)
        if tag_map.is_note_tag:
            self._indexes.tag_maps.setdefault((tag_map.tag_id, tag_map.type_id), tag_map)

    def add_block_range(self, block_range: BlockRange) -> None:
        self.block_ranges.append(block_range)
        self._indexes.block_ranges.setdefault(block_range.user_mark_id, block_range)

    # Lookups -----------------------------------------------------------------

    def find_location(self, location_id: int) -> Location | None:
        return self._indexes.locations.get(location_id)

    def find_user_mark(self, guid: str) -> UserMark | None:
        return self._indexes.user_marks.get(guid)

    def find_note(self, guid: str) -> Note | None:
        return self._indexes.notes.get(guid)

    def find_tag(self, name: str) -> Tag | None:
        return self._indexes.tags.get(name)

    def find_tag_map(self, tag_id: int, note_id: int) -> TagMap | None:
        """Return the note-tag association between ``tag_id`` and ``note_id``."""
        return self._indexes.tag_maps.get((tag_id, note_id))

    def find_block_range(self, user_mark_id: int) -> BlockRange | None:
        return self._indexes.block_ranges.get(user_mark_id)

    # Maintenance -------------------------------------------------------------

    def reinitialize_indexes(self) -> None:
        """Rebuild every natural-key index; the first record per key wins."""

        indexes = _Indexes()
        _index_first(indexes.locations, self.locations, lambda r: r.location_id)
        _index_first(indexes.user_marks, self.user_marks, lambda r: r.user_mark_guid)
        _index_first(indexes.notes, self.notes, lambda r: r.guid)
        _index_first(indexes.tags, self.tags, lambda r: r.name)
        _index_first(
            indexes.tag_maps,
            (tag_map for tag_map in self.tag_maps if tag_map.is_note_tag),
            lambda r: (r.tag_id, r.type_id),
        )
        _index_first(indexes.block_ranges, self.block_ranges, lambda r: r.user_mark_id)
        self._indexes = indexes

    def counts(self) -> dict[EntityKind, int]:
        return {
            EntityKind.LOCATION: len(self.locations),
            EntityKind.USER_MARK: len(self.user_marks),
            EntityKind.NOTE: len(self.notes),
            EntityKind.TAG: len(self.tags),
            EntityKind.TAG_MAP: len(self.tag_maps),
            EntityKind.BLOCK_RANGE: len(self.block_ranges),
        }

    def is_empty(self) -> bool:
        return not any(self.counts().values())


def _index_first(
    index: dict[TKey, TRecord],
    records: Iterable[TRecord],
    key_of: Callable[[TRecord], TKey],
) -> None:
    for record in records:
        index.setdefault(key_of(record), record)

