"""Merge core for annotation datasets.

A merge folds source datasets, one pass each, into a destination. Source ids
are translated per pass; destination ids are allocated once per run. Flow of
one pass:
1) user marks (and the locations they point at)
2) notes (and their locations)
3) tags
4) note-tag associations
5) block ranges
6) index rebuild
"""

from __future__ import annotations

from .errors import DanglingReferenceError, MergeError, TranslatorMisuseError
from .merger import MERGE_PHASES, DatasetMerger, MergeResult, merge_datasets
from .phases import (
    BlockRangePhase,
    MergePhase,
    NotePhase,
    TagMapPhase,
    TagPhase,
    UserMarkPhase,
)
from .session import (
    DanglingReferencePolicy,
    IdAllocator,
    MergeOutcome,
    MergeSession,
    MergeStatistics,
    ProgressCallback,
    Translators,
)
from .translator import IdTranslator

__all__ = [
    "MERGE_PHASES",
    "BlockRangePhase",
    "DanglingReferenceError",
    "DanglingReferencePolicy",
    "DatasetMerger",
    "IdAllocator",
    "IdTranslator",
    "MergeError",
    "MergeOutcome",
    "MergePhase",
    "MergeResult",
    "MergeSession",
    "MergeStatistics",
    "NotePhase",
    "ProgressCallback",
    "TagMapPhase",
    "TagPhase",
    "Translators",
    "UserMarkPhase",
    "merge_datasets",
]
