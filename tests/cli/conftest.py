"""Fixtures for CLI tests."""

import logging
from pathlib import Path

import pytest
from click.testing import CliRunner


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The CLI reconfigures the root logger against the runner's streams."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def write_manifest(tmp_path: Path):
    """Write a manifest file and return its path."""

    def write(text: str, name: str = "plan.yaml") -> Path:
        path = tmp_path / name
        path.write_text(text)
        return path

    return write
