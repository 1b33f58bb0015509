"""Application orchestration entry points."""

from __future__ import annotations

import os
import tempfile
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from annomerge.adapters.sqlalchemy import SqlAlchemyDatasetRepository, sqlite_engine
from annomerge.domain.merge import DanglingReferencePolicy, DatasetMerger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from annomerge.domain.dataset import Dataset
    from annomerge.domain.merge import MergeResult, ProgressCallback


log = getLogger(__name__)


class OutputExistsError(FileExistsError):
    """Raised when the merge output already exists and overwriting is off."""


class OutputIsInputError(ValueError):
    """Raised when the merge output path names one of the input files."""


def load_dataset_file(path: Path) -> Dataset:
    """Read the dataset stored in the SQLite file at ``path``."""

    if not path.is_file():
        raise FileNotFoundError(f"Dataset file not found: {path}")
    engine = sqlite_engine(path)
    try:
        return SqlAlchemyDatasetRepository(engine).load()
    finally:
        engine.dispose()


def save_dataset_file(dataset: Dataset, path: Path) -> None:
    """Write ``dataset`` into a new SQLite file at ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    engine = sqlite_engine(path)
    try:
        SqlAlchemyDatasetRepository(engine).save(dataset)
    finally:
        engine.dispose()


def merge_dataset_files(
    inputs: Sequence[Path],
    output: Path,
    *,
    policy: DanglingReferencePolicy = DanglingReferencePolicy.RAISE,
    overwrite: bool = False,
    progress: ProgressCallback | None = None,
) -> MergeResult:
    """Merge the dataset files ``inputs`` (in order) into ``output``.

    ``output`` is only touched once the merge succeeded: the result is written
    to a temporary file next to it and moved into place.
    """

    missing = [str(path) for path in inputs if not path.is_file()]
    if missing:
        raise FileNotFoundError(f"Dataset file(s) not found: {', '.join(missing)}")
    resolved_output = output.resolve()
    if any(path.resolve() == resolved_output for path in inputs):
        raise OutputIsInputError(f"Output must not be one of the inputs: {output}")
    if output.exists() and not overwrite:
        raise OutputExistsError(f"Output already exists: {output}")

    log.info("Starting merge of %s file(s) into %s", len(inputs), output)
    sources = [load_dataset_file(path) for path in inputs]
    result = DatasetMerger(progress=progress, policy=policy).run(sources)
    _replace_with_dataset(result.dataset, output)

    log.info(
        "Finished merge: sources=%s, records=%s",
        result.sources,
        {kind.value: count for kind, count in result.dataset.counts().items()},
    )
    return result


def _replace_with_dataset(dataset: Dataset, output: Path) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    handle, temporary_name = tempfile.mkstemp(
        prefix=f".{output.name}.", suffix=".tmp", dir=output.parent
    )
    os.close(handle)
    temporary = Path(temporary_name)
    try:
        save_dataset_file(dataset, temporary)
        os.replace(temporary, output)
    except BaseException:
        temporary.unlink(missing_ok=True)
        raise
