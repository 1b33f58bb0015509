"""Per-pass translation of source-local ids into destination ids."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from annomerge.domain.merge.errors import TranslatorMisuseError

if TYPE_CHECKING:
    from annomerge.domain.model import EntityKind


@dataclass(slots=True)
class IdTranslator:
    """Map source ids of one entity kind to destination ids.

    Source ids only mean something inside their own dataset, so the merge
    clears every translator before each source pass.
    """

    entity: EntityKind
    _mapping: dict[int, int] = field(default_factory=dict[int, int], repr=False)

    def add(self, source_id: int, dest_id: int) -> None:
        existing = self._mapping.get(source_id)
        if existing is not None:
            raise TranslatorMisuseError(
                entity=self.entity,
                source_id=source_id,
                existing=existing,
                attempted=dest_id,
            )
        self._mapping[source_id] = dest_id

    def translate(self, source_id: int) -> int | None:
        """Return the destination id, or ``None`` while ``source_id`` is unmapped."""
        return self._mapping.get(source_id)

    def clear(self) -> None:
        self._mapping.clear()

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)
