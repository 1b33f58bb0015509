"""Errors raised by the merge core."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from annomerge.domain.model import EntityKind


class MergeError(RuntimeError):
    """Base class for unrecovered merge failures."""


class DanglingReferenceError(MergeError):
    """Raised when a source record points at a record its own dataset lacks."""

    def __init__(
        self,
        *,
        entity: EntityKind,
        record_id: int,
        reference: EntityKind,
        referenced_id: int,
    ) -> None:
        self.entity = entity
        self.record_id = record_id
        self.reference = reference
        self.referenced_id = referenced_id
        super().__init__(
            "Source record references a missing record: "
            f"{entity.value}={record_id}, "
            f"{reference.value}={referenced_id}"
        )


class TranslatorMisuseError(MergeError):
    """Raised when a source id is registered twice within one pass."""

    def __init__(self, *, entity: EntityKind, source_id: int, existing: int, attempted: int) -> None:
        self.entity = entity
        self.source_id = source_id
        self.existing = existing
        self.attempted = attempted
        super().__init__(
            f"Duplicate {entity.value} translation for source id {source_id}: "
            f"already mapped to {existing}, attempted {attempted}"
        )
