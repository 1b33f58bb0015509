"""SQLAlchemy adapter package for annomerge."""

from __future__ import annotations

from .repository import (
    DatasetNotEmptyError,
    SqlAlchemyDatasetRepository,
    create_schema,
    sqlite_engine,
)
from .tables import ISOTimestamp, metadata

__all__ = [
    "DatasetNotEmptyError",
    "ISOTimestamp",
    "SqlAlchemyDatasetRepository",
    "create_schema",
    "metadata",
    "sqlite_engine",
]
