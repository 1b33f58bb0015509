"""Domain layer: annotation records, the dataset store and the merge core."""

from __future__ import annotations

from .dataset import Dataset

__all__ = ["Dataset"]
