# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest

from rvmerge.config.loader import load_merge_config
from rvmerge.logging.init import reset_logging
from rvmerge.models.config_models import MergeConfig
from tests.helpers import ExportFactory


@pytest.fixture(autouse=True)
def _fresh_logging() -> Iterator[None]:
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Iterator[Path]:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def exports(temp_workdir: Path) -> ExportFactory:
    return ExportFactory(temp_workdir / "data")


@pytest.fixture(scope="session")
def merge_config() -> MergeConfig:
    return load_merge_config()


@pytest.fixture()
def output_path(temp_workdir: Path) -> Path:
    return temp_workdir / "out" / "merged.xlsx"
