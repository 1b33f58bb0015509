"""Merge orchestrator: fold source datasets into one destination dataset."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from annomerge.domain.merge.phases import (
    BlockRangePhase,
    NotePhase,
    TagMapPhase,
    TagPhase,
    UserMarkPhase,
)
from annomerge.domain.merge.session import DanglingReferencePolicy, MergeSession

if TYPE_CHECKING:
    from collections.abc import Iterable

    from annomerge.domain.dataset import Dataset
    from annomerge.domain.merge.phases import MergePhase
    from annomerge.domain.merge.session import MergeStatistics, ProgressCallback

log = logging.getLogger(__name__)

# Later phases read translations registered by earlier ones.
MERGE_PHASES: Final[tuple[MergePhase, ...]] = (
    UserMarkPhase(),
    NotePhase(),
    TagPhase(),
    TagMapPhase(),
    BlockRangePhase(),
)


@dataclass(slots=True)
class MergeResult:
    dataset: Dataset
    statistics: MergeStatistics
    sources: int


class DatasetMerger:
    """Merge an ordered sequence of datasets into a new dataset.

    Each call to ``run`` builds its own ``MergeSession``, so one merger can be
    reused for independent runs. A single run is not reentrant.
    """

    def __init__(
        self,
        *,
        progress: ProgressCallback | None = None,
        policy: DanglingReferencePolicy = DanglingReferencePolicy.RAISE,
    ) -> None:
        self.progress = progress
        self.policy = policy

    def merge(self, sources: Iterable[Dataset]) -> Dataset:
        """Return the merged destination dataset."""

        return self.run(sources).dataset

    def run(self, sources: Iterable[Dataset]) -> MergeResult:
        """Merge ``sources`` in order and return the destination with statistics."""

        session = MergeSession(policy=self.policy)
        for source in sources:
            self._merge_source(source, session)

        log.info(
            "Merged %s dataset(s): %s",
            session.passes,
            session.statistics.summary(),
        )
        return MergeResult(
            dataset=session.destination,
            statistics=session.statistics,
            sources=session.passes,
        )

    def _merge_source(self, source: Dataset, session: MergeSession) -> None:
        session.begin_pass()
        log.debug("Starting pass %s over %s", session.passes, source.counts())

        for phase in MERGE_PHASES:
            self._report_progress(phase.label)
            phase.run(source, session=session)

        session.destination.reinitialize_indexes()

    def _report_progress(self, message: str) -> None:
        log.info(message)
        if self.progress is None:
            return
        try:
            self.progress(message)
        except Exception:
            log.exception("Progress callback failed for %r", message)


def merge_datasets(
    sources: Iterable[Dataset],
    *,
    progress: ProgressCallback | None = None,
    policy: DanglingReferencePolicy = DanglingReferencePolicy.RAISE,
) -> Dataset:
    """Merge ``sources`` with a throwaway ``DatasetMerger``."""

    return DatasetMerger(progress=progress, policy=policy).merge(sources)
