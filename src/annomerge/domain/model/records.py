"""Annotation records.

Every record carries a dataset-local integer id. Foreign keys are plain ids
into the same dataset; they only become meaningful in another dataset after
translation by the merge core.

All kinds except ``Note`` are frozen: a changed foreign key means a new
record built through ``clone``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, ClassVar, Self, TypeAlias

from annomerge.domain.model.enums import EntityKind, TagMapType

if TYPE_CHECKING:
    from datetime import datetime


class _Cloneable:
    __slots__ = ()

    ENTITY_KIND: ClassVar[EntityKind]

    def clone(self, **changes: Any) -> Self:
        """Return an independent copy with ``changes`` applied."""
        return replace(self, **changes)  # pyright: ignore[reportArgumentType]

    @property
    def entity_kind(self) -> EntityKind:
        return self.ENTITY_KIND


@dataclass(frozen=True, slots=True, kw_only=True)
class Location(_Cloneable):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.LOCATION

    location_id: int
    book_number: int | None = None
    chapter_number: int | None = None
    document_id: int | None = None
    track: int | None = None
    issue_tag_number: int = 0
    key_symbol: str | None = None
    meps_language: int = 0
    location_type: int = 0
    title: str | None = None

    @property
    def id(self) -> int:
        return self.location_id


@dataclass(frozen=True, slots=True, kw_only=True)
class UserMark(_Cloneable):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.USER_MARK

    user_mark_id: int
    location_id: int
    user_mark_guid: str
    color_index: int = 0
    style_index: int = 0
    version: int = 1

    @property
    def id(self) -> int:
        return self.user_mark_id


@dataclass(slots=True, kw_only=True)
class Note(_Cloneable):
    """User-authored annotation; the only record kind edited after insertion."""

    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.NOTE

    note_id: int
    guid: str
    user_mark_id: int | None = None
    location_id: int | None = None
    title: str | None = None
    content: str | None = None
    last_modified: datetime | None = None
    block_type: int = 0
    block_identifier: int | None = None

    @property
    def id(self) -> int:
        return self.note_id

    def is_newer_than(self, other: Note) -> bool:
        """Return whether this note was modified strictly after ``other``.

        A missing timestamp counts as older than any real one.
        """
        if self.last_modified is None:
            return False
        if other.last_modified is None:
            return True
        return self.last_modified > other.last_modified

    def revise_from(self, other: Note) -> None:
        """Take over the editable content of ``other``; id and links stay."""
        self.title = other.title
        self.content = other.content
        self.last_modified = other.last_modified


@dataclass(frozen=True, slots=True, kw_only=True)
class Tag(_Cloneable):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.TAG

    tag_id: int
    name: str
    tag_type: int = 1

    @property
    def id(self) -> int:
        return self.tag_id


@dataclass(frozen=True, slots=True, kw_only=True)
class TagMap(_Cloneable):
    """Association of a tag with a target.

    ``type_id`` is the id of the target; what it points to depends on
    ``map_type``.
    """

    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.TAG_MAP

    tag_map_id: int
    tag_id: int
    type_id: int
    map_type: int = TagMapType.NOTE
    position: int = 0

    @property
    def id(self) -> int:
        return self.tag_map_id

    @property
    def is_note_tag(self) -> bool:
        return self.map_type == TagMapType.NOTE


@dataclass(frozen=True, slots=True, kw_only=True)
class BlockRange(_Cloneable):
    ENTITY_KIND: ClassVar[EntityKind] = EntityKind.BLOCK_RANGE

    block_range_id: int
    user_mark_id: int
    block_type: int = 1
    identifier: int = 0
    start_token: int | None = None
    end_token: int | None = None

    @property
    def id(self) -> int:
        return self.block_range_id


Record: TypeAlias = Location | UserMark | Note | Tag | TagMap | BlockRange
