"""Shared fixtures for inlinefs tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

import inlinefs


@pytest.fixture(autouse=True)
def clean_config():
    yield
    inlinefs.reset_config()


@pytest.fixture
def root(tmp_path: Path) -> str:
    """Path of a fixture root that does not exist yet."""
    return str(tmp_path / "root")


@pytest.fixture
def read_tree():
    """Factory fixture: snapshot a directory as {relative_path: content}.

    Directories map to None, files to their text.
    """

    def _read(top: str) -> dict[str, str | None]:
        tree: dict[str, str | None] = {}
        for dirpath, dirnames, filenames in os.walk(top):
            rel = os.path.relpath(dirpath, top)
            for name in dirnames:
                tree[Path(rel, name).as_posix()] = None
            for name in filenames:
                tree[Path(rel, name).as_posix()] = Path(dirpath, name).read_text()
        return tree

    return _read
