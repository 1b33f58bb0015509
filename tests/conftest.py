from __future__ import annotations

import pytest

from annomerge.domain.dataset import Dataset
from tests.helpers.datasets import make_annotated_dataset, make_second_dataset


@pytest.fixture
def annotated_dataset() -> Dataset:
    return make_annotated_dataset()


@pytest.fixture
def second_dataset() -> Dataset:
    return make_second_dataset()
