"""Reconciliation phases, one per record kind.

Every phase walks the source records of its kind in collection order and
either reuses a matching destination record (by natural key) or clones the
source record into the destination with a fresh id and translated foreign
keys. Phases depend on translations registered by earlier phases, so they
must run in the order the merger lists them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from annomerge.domain.merge.session import MergeOutcome
from annomerge.domain.model import EntityKind

if TYPE_CHECKING:
    from annomerge.domain.dataset import Dataset
    from annomerge.domain.merge.session import MergeSession
    from annomerge.domain.model import Record

log = logging.getLogger(__name__)


class MergePhase(Protocol):
    """Contract implemented by each reconciliation phase."""

    label: str

    def run(self, source: Dataset, *, session: MergeSession) -> None: ...


class UserMarkPhase(MergePhase):
    """Unify user marks by GUID, cloning their locations on first use."""

    label: str = "Merging user marks..."

    def run(self, source: Dataset, *, session: MergeSession) -> None:
        destination = session.destination
        translator = session.translators.user_marks

        for user_mark in source.user_marks:
            existing = destination.find_user_mark(user_mark.user_mark_guid)
            if existing is not None:
                translator.add(user_mark.user_mark_id, existing.user_mark_id)
                session.record(EntityKind.USER_MARK, MergeOutcome.MATCHED)
                continue

            location_id = _ensure_location(
                source, user_mark.location_id, session=session, owner=user_mark
            )
            if location_id is None:
                continue

            inserted = user_mark.clone(
                user_mark_id=session.allocate_id(EntityKind.USER_MARK),
                location_id=location_id,
            )
            destination.add_user_mark(inserted)
            translator.add(user_mark.user_mark_id, inserted.user_mark_id)
            session.record(EntityKind.USER_MARK, MergeOutcome.INSERTED)


class NotePhase(MergePhase):
    """Unify notes by GUID; the most recently modified content wins."""

    label: str = "Merging notes..."

    def run(self, source: Dataset, *, session: MergeSession) -> None:
        destination = session.destination
        translators = session.translators

        for note in source.notes:
            existing = destination.find_note(note.guid)
            if existing is not None:
                if note.is_newer_than(existing):
                    existing.revise_from(note)
                    session.record(EntityKind.NOTE, MergeOutcome.UPDATED)
                else:
                    session.record(EntityKind.NOTE, MergeOutcome.MATCHED)
                translators.notes.add(note.note_id, existing.note_id)
                continue

            user_mark_id: int | None = None
            if note.user_mark_id is not None:
                user_mark_id = translators.user_marks.translate(note.user_mark_id)
                if user_mark_id is None:
                    session.dangling(
                        note,
                        reference=EntityKind.USER_MARK,
                        referenced_id=note.user_mark_id,
                    )
                    continue

            location_id: int | None = None
            if note.location_id is not None:
                location_id = _ensure_location(
                    source, note.location_id, session=session, owner=note
                )
                if location_id is None:
                    continue

            inserted = note.clone(
                note_id=session.allocate_id(EntityKind.NOTE),
                user_mark_id=user_mark_id,
                location_id=location_id,
            )
            destination.add_note(inserted)
            translators.notes.add(note.note_id, inserted.note_id)
            session.record(EntityKind.NOTE, MergeOutcome.INSERTED)


class TagPhase(MergePhase):
    """Unify tags by exact name."""

    label: str = "Merging tags..."

    def run(self, source: Dataset, *, session: MergeSession) -> None:
        destination = session.destination
        translator = session.translators.tags

        for tag in source.tags:
            existing = destination.find_tag(tag.name)
            if existing is not None:
                translator.add(tag.tag_id, existing.tag_id)
                session.record(EntityKind.TAG, MergeOutcome.MATCHED)
                continue

            inserted = tag.clone(tag_id=session.allocate_id(EntityKind.TAG))
            destination.add_tag(inserted)
            translator.add(tag.tag_id, inserted.tag_id)
            session.record(EntityKind.TAG, MergeOutcome.INSERTED)


class TagMapPhase(MergePhase):
    """Copy note-tag associations that the destination does not hold yet.

    Associations with any other target type are dropped.
    """

    label: str = "Merging tag map..."

    def run(self, source: Dataset, *, session: MergeSession) -> None:
        destination = session.destination
        translators = session.translators

        for tag_map in source.tag_maps:
            if not tag_map.is_note_tag:
                log.debug(
                    "Dropping tag map %s with unsupported type %s",
                    tag_map.tag_map_id,
                    tag_map.map_type,
                )
                session.record(EntityKind.TAG_MAP, MergeOutcome.SKIPPED)
                continue

            tag_id = translators.tags.translate(tag_map.tag_id)
            if tag_id is None:
                session.dangling(
                    tag_map,
                    reference=EntityKind.TAG,
                    referenced_id=tag_map.tag_id,
                )
                continue

            note_id = translators.notes.translate(tag_map.type_id)
            if note_id is None:
                session.dangling(
                    tag_map,
                    reference=EntityKind.NOTE,
                    referenced_id=tag_map.type_id,
                )
                continue

            if destination.find_tag_map(tag_id, note_id) is not None:
                session.record(EntityKind.TAG_MAP, MergeOutcome.SKIPPED)
                continue

            inserted = tag_map.clone(
                tag_map_id=session.allocate_id(EntityKind.TAG_MAP),
                tag_id=tag_id,
                type_id=note_id,
            )
            destination.add_tag_map(inserted)
            session.record(EntityKind.TAG_MAP, MergeOutcome.INSERTED)


class BlockRangePhase(MergePhase):
    """Keep the first block range seen for each destination user mark."""

    label: str = "Merging block ranges..."

    def run(self, source: Dataset, *, session: MergeSession) -> None:
        destination = session.destination
        translator = session.translators.user_marks

        for block_range in source.block_ranges:
            user_mark_id = translator.translate(block_range.user_mark_id)
            if user_mark_id is None:
                session.dangling(
                    block_range,
                    reference=EntityKind.USER_MARK,
                    referenced_id=block_range.user_mark_id,
                )
                continue

            if destination.find_block_range(user_mark_id) is not None:
                session.record(EntityKind.BLOCK_RANGE, MergeOutcome.SKIPPED)
                continue

            inserted = block_range.clone(
                block_range_id=session.allocate_id(EntityKind.BLOCK_RANGE),
                user_mark_id=user_mark_id,
            )
            destination.add_block_range(inserted)
            session.record(EntityKind.BLOCK_RANGE, MergeOutcome.INSERTED)


def _ensure_location(
    source: Dataset,
    location_id: int,
    *,
    session: MergeSession,
    owner: Record,
) -> int | None:
    """Return the destination id for a source location, cloning it on first use.

    Returns ``None`` when the location is missing from ``source`` and the
    session policy skips dangling references; ``owner`` is reported as the
    dangling record.
    """
    translator = session.translators.locations
    translated = translator.translate(location_id)
    if translated is not None:
        return translated

    location = source.find_location(location_id)
    if location is None:
        session.dangling(
            owner,
            reference=EntityKind.LOCATION,
            referenced_id=location_id,
        )
        return None

    inserted = location.clone(location_id=session.allocate_id(EntityKind.LOCATION))
    session.destination.add_location(inserted)
    translator.add(location.location_id, inserted.location_id)
    session.record(EntityKind.LOCATION, MergeOutcome.INSERTED)
    return inserted.location_id
