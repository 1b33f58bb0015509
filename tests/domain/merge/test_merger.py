from __future__ import annotations

import logging

import pytest

from annomerge.domain.dataset import Dataset
from annomerge.domain.merge import (
    MERGE_PHASES,
    DatasetMerger,
    MergeOutcome,
    merge_datasets,
)
from annomerge.domain.model import (
    BlockRange,
    EntityKind,
    Location,
    Note,
    Tag,
    TagMap,
    TagMapType,
    UserMark,
)
from tests.helpers.datasets import (
    at,
    copy_dataset,
    dangling_references,
    logical_view,
    make_annotated_dataset,
    make_dataset,
    make_second_dataset,
)

PHASE_LABELS = [
    "Merging user marks...",
    "Merging notes...",
    "Merging tags...",
    "Merging tag map...",
    "Merging block ranges...",
]


def test_single_dataset_is_copied_with_fresh_ids(annotated_dataset: Dataset) -> None:
    merged = merge_datasets([annotated_dataset])

    assert [r.location_id for r in merged.locations] == [1, 2]
    assert [r.user_mark_id for r in merged.user_marks] == [1, 2]
    assert [r.location_id for r in merged.user_marks] == [1, 2]
    assert [r.note_id for r in merged.notes] == [1, 2]
    assert (merged.notes[0].user_mark_id, merged.notes[0].location_id) == (1, 1)
    assert (merged.notes[1].user_mark_id, merged.notes[1].location_id) == (None, None)
    assert [r.tag_id for r in merged.tags] == [1, 2]
    assert [(r.tag_id, r.type_id) for r in merged.tag_maps] == [(1, 1), (2, 2)]
    assert [r.user_mark_id for r in merged.block_ranges] == [1, 2]
    assert dangling_references(merged) == []


def test_source_records_are_not_shared_with_destination(annotated_dataset: Dataset) -> None:
    merged = merge_datasets([annotated_dataset])

    assert merged.notes[0] is not annotated_dataset.notes[0]
    assert annotated_dataset.notes[0].note_id == 1
    assert annotated_dataset.user_marks[0].location_id == 10


def test_non_note_tag_maps_are_dropped(annotated_dataset: Dataset) -> None:
    result = DatasetMerger().run([annotated_dataset])

    assert all(r.map_type == TagMapType.NOTE for r in result.dataset.tag_maps)
    assert result.statistics.get(EntityKind.TAG_MAP, MergeOutcome.SKIPPED) == 1


def test_merge_of_overlapping_sources(annotated_dataset: Dataset, second_dataset: Dataset) -> None:
    merged = merge_datasets([annotated_dataset, second_dataset])

    assert [r.user_mark_guid for r in merged.user_marks] == ["um-a", "um-b", "um-c"]
    assert [r.title for r in merged.locations] == ["Genesis 1", "Article", "Matthew 5"]
    assert [r.guid for r in merged.notes] == ["note-1", "note-2", "note-3"]
    assert [r.name for r in merged.tags] == ["Travel", "Study", "Prayer"]
    assert [(r.tag_id, r.type_id) for r in merged.tag_maps] == [(1, 1), (2, 2), (1, 3), (3, 3)]
    assert [(r.block_range_id, r.user_mark_id) for r in merged.block_ranges] == [
        (1, 1),
        (2, 2),
        (3, 3),
    ]
    assert dangling_references(merged) == []


def test_ids_keep_increasing_across_passes(
    annotated_dataset: Dataset, second_dataset: Dataset
) -> None:
    merged = merge_datasets([annotated_dataset, second_dataset, make_annotated_dataset()])

    for records, key in (
        (merged.locations, "location_id"),
        (merged.user_marks, "user_mark_id"),
        (merged.notes, "note_id"),
        (merged.tags, "tag_id"),
        (merged.tag_maps, "tag_map_id"),
        (merged.block_ranges, "block_range_id"),
    ):
        ids = [getattr(record, key) for record in records]
        assert ids == list(range(1, len(ids) + 1))


def test_natural_keys_are_unique_in_destination(
    annotated_dataset: Dataset, second_dataset: Dataset
) -> None:
    merged = merge_datasets([annotated_dataset, second_dataset, copy_dataset(second_dataset)])

    guids = [r.user_mark_guid for r in merged.user_marks]
    note_guids = [r.guid for r in merged.notes]
    names = [r.name for r in merged.tags]
    marked = [r.user_mark_id for r in merged.block_ranges]
    assert len(guids) == len(set(guids))
    assert len(note_guids) == len(set(note_guids))
    assert len(names) == len(set(names))
    assert len(marked) == len(set(marked))


def test_self_merge_is_idempotent(annotated_dataset: Dataset) -> None:
    alone = merge_datasets([annotated_dataset])
    doubled = merge_datasets([annotated_dataset, copy_dataset(annotated_dataset)])

    assert doubled.counts() == alone.counts()
    assert logical_view(doubled) == logical_view(alone)


def test_self_merge_statistics(annotated_dataset: Dataset) -> None:
    result = DatasetMerger().run([annotated_dataset, copy_dataset(annotated_dataset)])
    statistics = result.statistics

    assert result.sources == 2
    assert statistics.get(EntityKind.USER_MARK, MergeOutcome.INSERTED) == 2
    assert statistics.get(EntityKind.USER_MARK, MergeOutcome.MATCHED) == 2
    assert statistics.get(EntityKind.NOTE, MergeOutcome.MATCHED) == 2
    assert statistics.get(EntityKind.NOTE, MergeOutcome.UPDATED) == 0
    assert statistics.get(EntityKind.TAG, MergeOutcome.MATCHED) == 2
    assert statistics.get(EntityKind.TAG_MAP, MergeOutcome.SKIPPED) == 4
    assert statistics.get(EntityKind.BLOCK_RANGE, MergeOutcome.SKIPPED) == 2
    assert statistics.get(EntityKind.LOCATION, MergeOutcome.INSERTED) == 2
    assert statistics.total(MergeOutcome.DANGLING) == 0


def test_newer_note_content_wins_and_keeps_first_id() -> None:
    older = make_dataset(
        notes=[
            Note(note_id=1, guid="padding", title="other", last_modified=at(1)),
            Note(note_id=2, guid="N1", title="old", content="before", last_modified=at(1)),
        ]
    )
    newer = make_dataset(
        notes=[Note(note_id=5, guid="N1", title="new", content="after", last_modified=at(2))]
    )

    result = DatasetMerger().run([older, newer])
    notes = [note for note in result.dataset.notes if note.guid == "N1"]

    assert len(notes) == 1
    assert notes[0].note_id == 2
    assert (notes[0].title, notes[0].content, notes[0].last_modified) == ("new", "after", at(2))
    assert result.statistics.get(EntityKind.NOTE, MergeOutcome.UPDATED) == 1


def test_older_note_copy_does_not_overwrite() -> None:
    newer = make_dataset(notes=[Note(note_id=1, guid="N1", title="new", last_modified=at(2))])
    older = make_dataset(notes=[Note(note_id=1, guid="N1", title="old", last_modified=at(1))])

    merged = merge_datasets([newer, older])

    assert len(merged.notes) == 1
    assert merged.notes[0].title == "new"
    assert merged.notes[0].last_modified == at(2)


def test_note_update_leaves_links_untouched() -> None:
    first = make_dataset(
        locations=[Location(location_id=1, book_number=1)],
        user_marks=[UserMark(user_mark_id=1, location_id=1, user_mark_guid="G1")],
        notes=[Note(note_id=1, guid="N1", user_mark_id=1, location_id=1, last_modified=at(1))],
    )
    second = make_dataset(
        notes=[Note(note_id=3, guid="N1", title="edited", last_modified=at(4))],
    )

    merged = merge_datasets([first, second])

    assert merged.notes[0].title == "edited"
    assert (merged.notes[0].user_mark_id, merged.notes[0].location_id) == (1, 1)


def test_tags_are_unified_by_name() -> None:
    first = make_dataset(
        notes=[Note(note_id=1, guid="a")],
        tags=[Tag(tag_id=5, name="Travel")],
        tag_maps=[TagMap(tag_map_id=1, tag_id=5, type_id=1)],
    )
    second = make_dataset(
        notes=[Note(note_id=1, guid="b")],
        tags=[Tag(tag_id=9, name="Travel")],
        tag_maps=[TagMap(tag_map_id=1, tag_id=9, type_id=1)],
    )

    merged = merge_datasets([first, second])

    assert [(r.tag_id, r.name) for r in merged.tags] == [(1, "Travel")]
    assert [(r.tag_id, r.type_id) for r in merged.tag_maps] == [(1, 1), (1, 2)]


def test_tag_names_match_exactly() -> None:
    first = make_dataset(tags=[Tag(tag_id=1, name="Travel")])
    second = make_dataset(tags=[Tag(tag_id=1, name="travel")])

    merged = merge_datasets([first, second])

    assert [r.name for r in merged.tags] == ["Travel", "travel"]


def test_duplicate_block_ranges_keep_the_first() -> None:
    source = make_dataset(
        locations=[Location(location_id=1)],
        user_marks=[UserMark(user_mark_id=1, location_id=1, user_mark_guid="G1")],
        block_ranges=[
            BlockRange(block_range_id=1, user_mark_id=1, identifier=4, start_token=0),
            BlockRange(block_range_id=2, user_mark_id=1, identifier=5, start_token=3),
        ],
    )

    merged = merge_datasets([source])

    assert len(merged.block_ranges) == 1
    assert (merged.block_ranges[0].identifier, merged.block_ranges[0].start_token) == (4, 0)


def test_user_mark_keeps_first_sources_location() -> None:
    first = make_dataset(
        locations=[Location(location_id=10, book_number=1, title="first")],
        user_marks=[UserMark(user_mark_id=1, location_id=10, user_mark_guid="G1")],
    )
    second = make_dataset(
        locations=[Location(location_id=7, book_number=2, title="second")],
        user_marks=[UserMark(user_mark_id=1, location_id=7, user_mark_guid="G1")],
    )

    merged = merge_datasets([first, second])

    assert len(merged.user_marks) == 1
    assert [r.title for r in merged.locations] == ["first"]
    location = merged.find_location(merged.user_marks[0].location_id)
    assert location is not None
    assert location.title == "first"


def test_shared_location_is_cloned_once_per_pass() -> None:
    source = make_dataset(
        locations=[Location(location_id=4, book_number=1)],
        user_marks=[
            UserMark(user_mark_id=1, location_id=4, user_mark_guid="G1"),
            UserMark(user_mark_id=2, location_id=4, user_mark_guid="G2"),
        ],
        notes=[Note(note_id=1, guid="N1", location_id=4)],
    )

    merged = merge_datasets([source])

    assert len(merged.locations) == 1
    assert {r.location_id for r in merged.user_marks} == {1}
    assert merged.notes[0].location_id == 1


def test_note_location_is_cloned_when_its_user_mark_already_exists() -> None:
    first = make_dataset(
        locations=[Location(location_id=1, book_number=1)],
        user_marks=[UserMark(user_mark_id=1, location_id=1, user_mark_guid="G1")],
    )
    second = make_dataset(
        locations=[Location(location_id=3, book_number=1)],
        user_marks=[UserMark(user_mark_id=2, location_id=3, user_mark_guid="G1")],
        notes=[Note(note_id=1, guid="N1", user_mark_id=2, location_id=3)],
    )

    merged = merge_datasets([first, second])

    assert [r.location_id for r in merged.locations] == [1, 2]
    assert (merged.notes[0].user_mark_id, merged.notes[0].location_id) == (1, 2)
    assert dangling_references(merged) == []


def test_progress_labels_are_reported_per_source(
    annotated_dataset: Dataset, second_dataset: Dataset
) -> None:
    labels: list[str] = []

    DatasetMerger(progress=labels.append).merge([annotated_dataset, Dataset(), second_dataset])

    assert labels == PHASE_LABELS * 3
    assert [phase.label for phase in MERGE_PHASES] == PHASE_LABELS


def test_no_sources_yield_empty_dataset_without_progress() -> None:
    labels: list[str] = []

    merged = DatasetMerger(progress=labels.append).merge([])

    assert merged.is_empty()
    assert labels == []


def test_failing_progress_callback_does_not_abort_merge(
    annotated_dataset: Dataset, caplog: pytest.LogCaptureFixture
) -> None:
    def explode(_message: str) -> None:
        raise RuntimeError("sink unavailable")

    with caplog.at_level(logging.ERROR, logger="annomerge.domain.merge.merger"):
        merged = DatasetMerger(progress=explode).merge([annotated_dataset])

    assert len(merged.notes) == 2
    failures = [r for r in caplog.records if "Progress callback failed" in r.getMessage()]
    assert len(failures) == len(PHASE_LABELS)


def test_progress_labels_are_logged(
    annotated_dataset: Dataset, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="annomerge.domain.merge.merger"):
        merge_datasets([annotated_dataset])

    messages = [r.getMessage() for r in caplog.records]
    assert [m for m in messages if m in PHASE_LABELS] == PHASE_LABELS


def test_merger_runs_are_independent(annotated_dataset: Dataset) -> None:
    merger = DatasetMerger()

    first = merger.merge([annotated_dataset])
    second = merger.merge([make_second_dataset()])

    assert first is not second
    assert [r.user_mark_id for r in second.user_marks] == [1, 2]
    assert [r.user_mark_guid for r in second.user_marks] == ["um-a", "um-c"]
