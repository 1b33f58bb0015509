"""SQLAlchemy Core table definitions for the SQLite dataset layout."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Column,
    Dialect,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    TypeDecorator,
)


class ISOTimestamp(TypeDecorator[datetime]):
    """Aware datetimes stored as ISO-8601 text, normalised to UTC."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat()

    def process_result_value(self, value: str | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None or not value.strip():
            return None
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)


metadata = MetaData()

location_table = Table(
    "Location",
    metadata,
    Column("LocationId", Integer, primary_key=True, autoincrement=False),
    Column("BookNumber", Integer, nullable=True),
    Column("ChapterNumber", Integer, nullable=True),
    Column("DocumentId", Integer, nullable=True),
    Column("Track", Integer, nullable=True),
    Column("IssueTagNumber", Integer, nullable=False, default=0),
    Column("KeySymbol", String, nullable=True),
    Column("MepsLanguage", Integer, nullable=False, default=0),
    Column("Type", Integer, nullable=False, default=0),
    Column("Title", String, nullable=True),
)

user_mark_table = Table(
    "UserMark",
    metadata,
    Column("UserMarkId", Integer, primary_key=True, autoincrement=False),
    Column("ColorIndex", Integer, nullable=False, default=0),
    Column("LocationId", Integer, ForeignKey("Location.LocationId"), nullable=False),
    Column("StyleIndex", Integer, nullable=False, default=0),
    Column("UserMarkGuid", String, nullable=False, unique=True),
    Column("Version", Integer, nullable=False, default=1),
)

note_table = Table(
    "Note",
    metadata,
    Column("NoteId", Integer, primary_key=True, autoincrement=False),
    Column("Guid", String, nullable=False, unique=True),
    Column("UserMarkId", Integer, ForeignKey("UserMark.UserMarkId"), nullable=True),
    Column("LocationId", Integer, ForeignKey("Location.LocationId"), nullable=True),
    Column("Title", String, nullable=True),
    Column("Content", String, nullable=True),
    Column("LastModified", ISOTimestamp, nullable=True),
    Column("BlockType", Integer, nullable=False, default=0),
    Column("BlockIdentifier", Integer, nullable=True),
)

tag_table = Table(
    "Tag",
    metadata,
    Column("TagId", Integer, primary_key=True, autoincrement=False),
    Column("Type", Integer, nullable=False, default=1),
    Column("Name", String, nullable=False),
)

tag_map_table = Table(
    "TagMap",
    metadata,
    Column("TagMapId", Integer, primary_key=True, autoincrement=False),
    Column("Type", Integer, nullable=False),
    Column("TypeId", Integer, nullable=False),
    Column("TagId", Integer, ForeignKey("Tag.TagId"), nullable=False),
    Column("Position", Integer, nullable=False, default=0),
)

block_range_table = Table(
    "BlockRange",
    metadata,
    Column("BlockRangeId", Integer, primary_key=True, autoincrement=False),
    Column("BlockType", Integer, nullable=False, default=1),
    Column("Identifier", Integer, nullable=False),
    Column("StartToken", Integer, nullable=True),
    Column("EndToken", Integer, nullable=True),
    Column("UserMarkId", Integer, ForeignKey("UserMark.UserMarkId"), nullable=False),
)
