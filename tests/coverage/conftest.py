"""Shared fixtures for coverage tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from fakes import FakeDriver

from scopecov.coverage.stack import SessionStack


@pytest.fixture
def make_source(tmp_path: Path) -> Callable[..., Path]:
    """Write a source file with ``lines`` numbered lines; returns its real path."""

    def _make(name: str = "mod.py", lines: int = 20) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("".join(f"x{num} = {num}\n" for num in range(1, lines + 1)))
        return path.resolve()

    return _make


@pytest.fixture
def driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def stack() -> SessionStack:
    return SessionStack()
