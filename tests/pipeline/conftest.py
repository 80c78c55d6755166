from __future__ import annotations

from pathlib import Path

import pytest

from titleseed.infra.paths import SEED_DIR
from titleseed.pipeline import StageCatalog, load_seed_data
from titleseed.pipeline.catalog import SEED_FILES


@pytest.fixture
def seed_dir(tmp_path) -> Path:
    """A writable copy of the bundled seed files."""
    target = tmp_path / "seed"
    target.mkdir()
    for name in SEED_FILES.values():
        text = SEED_DIR.joinpath(name).read_text(encoding="utf-8")
        (target / name).write_text(text, encoding="utf-8")
    return target


@pytest.fixture
def catalog() -> StageCatalog:
    return StageCatalog(load_seed_data())
