"""Shared state for one merge run (destination, id allocation, translation)."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, TypeAlias

from annomerge.domain.dataset import Dataset
from annomerge.domain.merge.errors import DanglingReferenceError
from annomerge.domain.merge.translator import IdTranslator
from annomerge.domain.model import EntityKind

if TYPE_CHECKING:
    from annomerge.domain.model import Record

log = logging.getLogger(__name__)

ProgressCallback: TypeAlias = Callable[[str], None]


class DanglingReferencePolicy(StrEnum):
    """What to do with a source record whose foreign key cannot be resolved."""

    RAISE = "raise"
    SKIP = "skip"


class MergeOutcome(StrEnum):
    INSERTED = "inserted"
    MATCHED = "matched"
    UPDATED = "updated"
    SKIPPED = "skipped"
    DANGLING = "dangling"


@dataclass(slots=True)
class IdAllocator:
    """Monotonic destination id sequence for one entity kind."""

    entity: EntityKind
    last_id: int = 0

    def allocate(self) -> int:
        self.last_id += 1
        return self.last_id


@dataclass(slots=True)
class Translators:
    """The four per-pass translators consulted when rewriting foreign keys."""

    locations: IdTranslator = field(default_factory=lambda: IdTranslator(EntityKind.LOCATION))
    user_marks: IdTranslator = field(default_factory=lambda: IdTranslator(EntityKind.USER_MARK))
    notes: IdTranslator = field(default_factory=lambda: IdTranslator(EntityKind.NOTE))
    tags: IdTranslator = field(default_factory=lambda: IdTranslator(EntityKind.TAG))

    def clear(self) -> None:
        self.locations.clear()
        self.user_marks.clear()
        self.notes.clear()
        self.tags.clear()


@dataclass(slots=True)
class MergeStatistics:
    """Per-kind tally of what happened to each source record."""

    counts: dict[EntityKind, Counter[MergeOutcome]] = field(
        default_factory=lambda: {kind: Counter[MergeOutcome]() for kind in EntityKind}
    )

    def record(self, entity: EntityKind, outcome: MergeOutcome) -> None:
        self.counts[entity][outcome] += 1

    def get(self, entity: EntityKind, outcome: MergeOutcome) -> int:
        return self.counts[entity][outcome]

    def total(self, outcome: MergeOutcome) -> int:
        return sum(counter[outcome] for counter in self.counts.values())

    def summary(self) -> str:
        parts: list[str] = []
        for kind, counter in self.counts.items():
            if not counter:
                continue
            detail = ", ".join(f"{outcome.value}={counter[outcome]}" for outcome in MergeOutcome)
            parts.append(f"{kind.value}({detail})")
        return "; ".join(parts) or "no records"


@dataclass(slots=True)
class MergeSession:
    """Context threaded through every reconciliation step of one merge run.

    Allocators live as long as the session; translators are cleared by
    ``begin_pass`` because source ids are only valid within one source.
    """

    destination: Dataset = field(default_factory=Dataset)
    policy: DanglingReferencePolicy = DanglingReferencePolicy.RAISE
    translators: Translators = field(default_factory=Translators)
    allocators: dict[EntityKind, IdAllocator] = field(
        default_factory=lambda: {kind: IdAllocator(kind) for kind in EntityKind}
    )
    statistics: MergeStatistics = field(default_factory=MergeStatistics)
    passes: int = 0

    def begin_pass(self) -> None:
        self.translators.clear()
        self.passes += 1

    def allocate_id(self, entity: EntityKind) -> int:
        return self.allocators[entity].allocate()

    def record(self, entity: EntityKind, outcome: MergeOutcome) -> None:
        self.statistics.record(entity, outcome)

    def dangling(self, record: Record, *, reference: EntityKind, referenced_id: int) -> None:
        """Report an unresolved foreign key of ``record`` according to ``policy``.

        Returns only under the skip policy; the caller then drops the record.
        """
        error = DanglingReferenceError(
            entity=record.entity_kind,
            record_id=record.id,
            reference=reference,
            referenced_id=referenced_id,
        )
        if self.policy is DanglingReferencePolicy.RAISE:
            raise error
        log.warning("Skipping record in pass %s: %s", self.passes, error)
        self.statistics.record(record.entity_kind, MergeOutcome.DANGLING)
