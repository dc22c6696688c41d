"""Shared fixtures."""

import textwrap
from collections.abc import Generator
from pathlib import Path
from typing import Protocol

import pytest
from aioresponses import aioresponses as aioresponses_cls


class WriteModuleFn(Protocol):
    """Protocol for the test module writer."""

    def __call__(self, relative: str, source: str) -> Path:
        """Write ``source`` to ``relative`` under the sources root."""


@pytest.fixture
def aioresponses() -> Generator[aioresponses_cls]:
    """Mock outgoing aiohttp requests."""
    with aioresponses_cls() as mocked:
        yield mocked


@pytest.fixture
def sources_root(tmp_path: Path) -> Path:
    """Empty folder to hold test modules."""
    root = tmp_path / "sources"
    root.mkdir()
    return root


@pytest.fixture
def write_module(sources_root: Path) -> WriteModuleFn:
    """Return a function writing test module files under ``sources_root``."""

    def _write(relative: str, source: str) -> Path:
        path = sources_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source))
        return path

    return _write
