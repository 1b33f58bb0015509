"""Load and store datasets in SQLite files through SQLAlchemy Core."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, func, insert, select

from annomerge.adapters.sqlalchemy.tables import (
    block_range_table,
    location_table,
    metadata,
    note_table,
    tag_map_table,
    tag_table,
    user_mark_table,
)
from annomerge.domain.dataset import Dataset
from annomerge.domain.model import BlockRange, Location, Note, Tag, TagMap, UserMark

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from sqlalchemy import Connection, Table
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class DatasetNotEmptyError(RuntimeError):
    """Raised when saving into a database that already holds records."""


def sqlite_engine(path: Path) -> Engine:
    """Return an engine for the SQLite file at ``path``."""

    return create_engine(f"sqlite+pysqlite:///{path}", future=True)


def create_schema(engine: Engine) -> None:
    """Create the dataset tables if they do not exist yet."""

    metadata.create_all(engine, checkfirst=True)


class SqlAlchemyDatasetRepository:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def load(self) -> Dataset:
        """Read all records, ordered by primary key."""

        with self.engine.connect() as connection:
            dataset = Dataset(
                locations=[_location_from_row(row) for row in _rows(connection, location_table)],
                user_marks=[
                    _user_mark_from_row(row) for row in _rows(connection, user_mark_table)
                ],
                notes=[_note_from_row(row) for row in _rows(connection, note_table)],
                tags=[_tag_from_row(row) for row in _rows(connection, tag_table)],
                tag_maps=[_tag_map_from_row(row) for row in _rows(connection, tag_map_table)],
                block_ranges=[
                    _block_range_from_row(row) for row in _rows(connection, block_range_table)
                ],
            )
        log.debug("Loaded dataset from %s: %s", self.engine.url, dataset.counts())
        return dataset

    def save(self, dataset: Dataset) -> None:
        """Write ``dataset`` into the (empty) schema in a single transaction."""

        create_schema(self.engine)
        with self.engine.begin() as connection:
            for table in metadata.sorted_tables:
                count = connection.execute(select(func.count()).select_from(table)).scalar_one()
                if count:
                    raise DatasetNotEmptyError(
                        f"Table {table.name} already holds {count} record(s)"
                    )

            _insert(connection, location_table, [_location_row(r) for r in dataset.locations])
            _insert(connection, user_mark_table, [_user_mark_row(r) for r in dataset.user_marks])
            _insert(connection, note_table, [_note_row(r) for r in dataset.notes])
            _insert(connection, tag_table, [_tag_row(r) for r in dataset.tags])
            _insert(connection, tag_map_table, [_tag_map_row(r) for r in dataset.tag_maps])
            _insert(
                connection,
                block_range_table,
                [_block_range_row(r) for r in dataset.block_ranges],
            )
        log.debug("Saved dataset to %s: %s", self.engine.url, dataset.counts())


def _rows(connection: Connection, table: Table) -> list[Mapping[str, Any]]:
    primary_key = next(iter(table.primary_key.columns))
    result = connection.execute(select(table).order_by(primary_key))
    return list(result.mappings())


def _insert(connection: Connection, table: Table, rows: list[dict[str, Any]]) -> None:
    if rows:
        connection.execute(insert(table), rows)


# Row mapping -------------------------------------------------------------------


def _location_from_row(row: Mapping[str, Any]) -> Location:
    return Location(
        location_id=row["LocationId"],
        book_number=row["BookNumber"],
        chapter_number=row["ChapterNumber"],
        document_id=row["DocumentId"],
        track=row["Track"],
        issue_tag_number=row["IssueTagNumber"],
        key_symbol=row["KeySymbol"],
        meps_language=row["MepsLanguage"],
        location_type=row["Type"],
        title=row["Title"],
    )


def _location_row(location: Location) -> dict[str, Any]:
    return {
        "LocationId": location.location_id,
        "BookNumber": location.book_number,
        "ChapterNumber": location.chapter_number,
        "DocumentId": location.document_id,
        "Track": location.track,
        "IssueTagNumber": location.issue_tag_number,
        "KeySymbol": location.key_symbol,
        "MepsLanguage": location.meps_language,
        "Type": location.location_type,
        "Title": location.title,
    }


def _user_mark_from_row(row: Mapping[str, Any]) -> UserMark:
    return UserMark(
        user_mark_id=row["UserMarkId"],
        color_index=row["ColorIndex"],
        location_id=row["LocationId"],
        style_index=row["StyleIndex"],
        user_mark_guid=row["UserMarkGuid"],
        version=row["Version"],
    )


def _user_mark_row(user_mark: UserMark) -> dict[str, Any]:
    return {
        "UserMarkId": user_mark.user_mark_id,
        "ColorIndex": user_mark.color_index,
        "LocationId": user_mark.location_id,
        "StyleIndex": user_mark.style_index,
        "UserMarkGuid": user_mark.user_mark_guid,
        "Version": user_mark.version,
    }


def _note_from_row(row: Mapping[str, Any]) -> Note:
    return Note(
        note_id=row["NoteId"],
        guid=row["Guid"],
        user_mark_id=row["UserMarkId"],
        location_id=row["LocationId"],
        title=row["Title"],
        content=row["Content"],
        last_modified=row["LastModified"],
        block_type=row["BlockType"],
        block_identifier=row["BlockIdentifier"],
    )


def _note_row(note: Note) -> dict[str, Any]:
    return {
        "NoteId": note.note_id,
        "Guid": note.guid,
        "UserMarkId": note.user_mark_id,
        "LocationId": note.location_id,
        "Title": note.title,
        "Content": note.content,
        "LastModified": note.last_modified,
        "BlockType": note.block_type,
        "BlockIdentifier": note.block_identifier,
    }


def _tag_from_row(row: Mapping[str, Any]) -> Tag:
    return Tag(tag_id=row["TagId"], tag_type=row["Type"], name=row["Name"])


def _tag_row(tag: Tag) -> dict[str, Any]:
    return {"TagId": tag.tag_id, "Type": tag.tag_type, "Name": tag.name}


def _tag_map_from_row(row: Mapping[str, Any]) -> TagMap:
    return TagMap(
        tag_map_id=row["TagMapId"],
        map_type=row["Type"],
        type_id=row["TypeId"],
        tag_id=row["TagId"],
        position=row["Position"],
    )


def _tag_map_row(tag_map: TagMap) -> dict[str, Any]:
    return {
        "TagMapId": tag_map.tag_map_id,
        "Type": int(tag_map.map_type),
        "TypeId": tag_map.type_id,
        "TagId": tag_map.tag_id,
        "Position": tag_map.position,
    }


def _block_range_from_row(row: Mapping[str, Any]) -> BlockRange:
    return BlockRange(
        block_range_id=row["BlockRangeId"],
        block_type=row["BlockType"],
        identifier=row["Identifier"],
        start_token=row["StartToken"],
        end_token=row["EndToken"],
        user_mark_id=row["UserMarkId"],
    )


def _block_range_row(block_range: BlockRange) -> dict[str, Any]:
    return {
        "BlockRangeId": block_range.block_range_id,
        "BlockType": block_range.block_type,
        "Identifier": block_range.identifier,
        "StartToken": block_range.start_token,
        "EndToken": block_range.end_token,
        "UserMarkId": block_range.user_mark_id,
    }
