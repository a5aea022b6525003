"""Shared parts of the sync and async fixture sessions."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Union

from inlinefs._config import get_config
from inlinefs._fs import remove_children, remove_path
from inlinefs._paths import flatten
from inlinefs._tree import Directory
from inlinefs._types import CleanupMode, ForkConflictError
from inlinefs._validate import validate_max_workers

RootDirSource = Union[str, "os.PathLike[str]", Callable[[], Union[str, "os.PathLike[str]"]]]


def cleanup_root(root_dir: str, mode: CleanupMode) -> None:
    """Apply a pre-write cleanup *mode* to *root_dir*."""
    if mode is CleanupMode.ROOT:
        remove_path(root_dir)
    elif mode is CleanupMode.FIXTURES:
        remove_children(root_dir)


class BaseCreator:
    """Root directory source plus per-creator defaults.

    :param root_dir: Fixed path, or a zero-argument callable returning a new
        path. The callable runs once per session created or forked without
        an explicit ``root_dir`` override.
    :param cleanup: Default cleanup mode (falls back to global config).
    :param write: Write fixtures on creation. ``False`` only computes paths.
    :param max_workers: Thread pool size for the sync materializer.
    """

    def __init__(
        self,
        root_dir: RootDirSource,
        *,
        cleanup: CleanupMode | str | None = None,
        write: bool = True,
        max_workers: int | None = None,
    ) -> None:
        if max_workers is not None:
            validate_max_workers(max_workers)
        self._root_dir = root_dir
        self.cleanup = CleanupMode(cleanup) if cleanup is not None else None
        self.write = write
        self.max_workers = max_workers

    def resolve_root_dir(self, override: str | os.PathLike[str] | None = None) -> str:
        """Return the absolute root for a new session."""
        if override is not None:
            path = override
        elif callable(self._root_dir):
            path = self._root_dir()
        else:
            path = self._root_dir
        return os.path.abspath(os.fspath(path))

    def cleanup_mode(self, cleanup: CleanupMode | str | None) -> CleanupMode:
        """Three-tier priority: call param > creator > global config."""
        if cleanup is not None:
            return CleanupMode(cleanup)
        if self.cleanup is not None:
            return self.cleanup
        return get_config().cleanup

    def __repr__(self) -> str:
        return f"{type(self).__name__}(root_dir={self._root_dir!r})"


@dataclass(frozen=True, slots=True)
class BaseFixture:
    """Fixture directory bound to a root.

    :param root_dir: Absolute path of the fixture root.
    :param paths: Relative POSIX path -> absolute path of every declared item.
    :param creator: Creator used for ``add_fixtures`` / ``fork``.
    :param trees: Directory definitions written to this root, in order.
    """

    root_dir: str
    paths: dict[str, str]
    creator: Any = field(repr=False, compare=False)
    trees: tuple[Directory, ...] = field(default=(), repr=False)

    def join(self, *segments: str) -> str:
        """Equivalent to ``os.path.join(root_dir, *segments)``. Not checked for existence."""
        return os.path.join(self.root_dir, *segments)

    def mask_root_dir(self, text: str, placeholder: str | None = None) -> str:
        """Replace every occurrence of ``root_dir`` in *text*."""
        if placeholder is None:
            placeholder = get_config().mask_placeholder
        return text.replace(self.root_dir, placeholder)

    def _paths_at(self, root_dir: str) -> dict[str, str]:
        paths: dict[str, str] = {}
        for tree in self.trees:
            paths.update(flatten(tree, root_dir))
        return paths

    def _fork_root(self, root_dir: str | os.PathLike[str] | None) -> str:
        new_root = self.creator.resolve_root_dir(root_dir)
        if new_root == self.root_dir:
            raise ForkConflictError(new_root)
        return new_root
