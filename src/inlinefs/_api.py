"""inlinefs public API implementation."""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from collections.abc import Awaitable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace

from inlinefs._config import get_config
from inlinefs._fs import duplicate_tree, remove_children, remove_path, write_file
from inlinefs._paths import flatten
from inlinefs._session import BaseCreator, BaseFixture, RootDirSource, cleanup_root
from inlinefs._tree import Content, Directory, DirNode, Producer, plan
from inlinefs._types import CleanupMode, FixtureCreationError
from inlinefs._validate import validate_max_workers

logger = logging.getLogger(__name__)


def materialize(
    tree: Directory,
    base_dir: str | os.PathLike[str],
    *,
    max_workers: int | None = None,
) -> None:
    """Write *tree* under *base_dir*.

    The tree is validated and merged before anything is written. Entries of
    one directory level are written in parallel; a directory always exists
    before its children are written.

    :param tree: Directory definition.
    :param base_dir: Directory to write into (created if missing).
    :param max_workers: Thread pool size per level (0=auto, 1=sequential).
    :raises ValidationError: Malformed item name or file/directory conflict.
    :raises FixtureCreationError: A write, mkdir or producer failed.
    """
    mw = max_workers if max_workers is not None else get_config().max_workers
    validate_max_workers(mw)

    node = plan(tree)
    _write_level(node, os.fspath(base_dir), mw, ensure=True)


def _makedirs(path: str) -> None:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise FixtureCreationError(path) from e


async def _wait(awaitable: Awaitable[object]) -> None:
    await awaitable


def _run_awaitable(awaitable: Awaitable[object]) -> None:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        asyncio.run(_wait(awaitable))
        return
    # The calling thread already runs a loop; give the awaitable its own.
    with ThreadPoolExecutor(max_workers=1) as pool:
        pool.submit(asyncio.run, _wait(awaitable)).result()


def _run_producer(producer: Producer, path: str) -> None:
    try:
        result = producer.fn(path)
        if inspect.isawaitable(result):
            _run_awaitable(result)
    except Exception as e:
        raise FixtureCreationError(path, by_producer=True) from e


def _write_item(item, path: str, max_workers: int) -> None:
    if isinstance(item, DirNode):
        if item.producer is not None:
            _run_producer(item.producer, path)
        _write_level(item, path, max_workers, ensure=item.needs_create)
    elif isinstance(item, Content):
        _makedirs(os.path.dirname(path))
        try:
            write_file(path, item.data)
        except OSError as e:
            raise FixtureCreationError(path) from e
    elif isinstance(item, Producer):
        _run_producer(item, path)
    # Skip: nothing to write


def _write_level(node: DirNode, base_dir: str, max_workers: int, *, ensure: bool) -> None:
    if ensure:
        _makedirs(base_dir)

    entries = [(os.path.join(base_dir, name), item) for name, item in node.entries.items()]

    if max_workers == 1 or len(entries) <= 1:
        for path, item in entries:
            _write_item(item, path, max_workers)
    else:
        pool_size = max_workers if max_workers > 0 else min(len(entries), 8)
        with ThreadPoolExecutor(max_workers=pool_size) as pool:
            futures = [pool.submit(_write_item, item, path, max_workers) for path, item in entries]
        # All siblings have finished; report the first failure in declaration order.
        for f in futures:
            f.result()

    logger.debug("materialized %d entries in %s", len(entries), base_dir)


class Creator(BaseCreator):
    """Create :class:`Fixture` sessions.

    Usage::

        create_fixture = inlinefs.define_creator(lambda: os.path.join(base, uuid4().hex))
        fx = create_fixture({"a.txt": "a", "b": {"c.txt": "b-c"}})
        fx.paths["b/c.txt"]  # -> <root>/b/c.txt
    """

    def __call__(
        self,
        tree: Directory,
        *,
        root_dir: str | os.PathLike[str] | None = None,
        cleanup: CleanupMode | str | None = None,
        write: bool | None = None,
    ) -> Fixture:
        """Create a fixture session for *tree*.

        :param tree: Directory definition.
        :param root_dir: Use this root instead of the creator's source.
        :param cleanup: Pre-write cleanup mode for this call.
        :param write: Override the creator's ``write`` flag.
        :returns: Fixture bound to the resolved root.
        """
        root = self.resolve_root_dir(root_dir)
        fixture = Fixture(root_dir=root, paths=flatten(tree, root), creator=self, trees=(tree,))

        w = write if write is not None else self.write
        if w:
            mode = self.cleanup_mode(cleanup)
            logger.debug("creating fixture in %s (cleanup=%s)", root, mode.value)
            cleanup_root(root, mode)
            materialize(tree, root, max_workers=self.max_workers)
        return fixture


@dataclass(frozen=True, slots=True)
class Fixture(BaseFixture):
    """Fixture directory created by a :class:`Creator`."""

    def rm_root_dir(self) -> None:
        """Delete the fixture root directory."""
        logger.debug("removing %s", self.root_dir)
        remove_path(self.root_dir)

    def rm_fixtures(self) -> None:
        """Delete everything under the fixture root, keeping the root."""
        remove_children(self.root_dir)

    def add_fixtures(self, tree: Directory) -> Fixture:
        """Write *tree* into the root, even if the creator does not write.

        :returns: A fixture whose ``paths`` also contain the added items.
        """
        added = flatten(tree, self.root_dir)
        materialize(tree, self.root_dir, max_workers=self.creator.max_workers)
        return replace(self, paths={**self.paths, **added}, trees=self.trees + (tree,))

    def fork(self, tree: Directory, *, root_dir: str | os.PathLike[str] | None = None) -> Fixture:
        """Copy this fixture to a new root and add *tree* there.

        The copy tries a copy-on-write clone per file and falls back to a
        regular copy. The current root is left untouched.

        :param tree: Additional fixtures for the new root.
        :param root_dir: Use this root instead of the creator's source.
        :raises ForkConflictError: The new root equals ``root_dir``.
        """
        new_root = self._fork_root(root_dir)
        self.creator({}, root_dir=new_root, write=True)
        duplicate_tree(self.root_dir, new_root, clone=get_config().clone)
        logger.debug("forked %s -> %s", self.root_dir, new_root)

        base = replace(self, root_dir=new_root, paths=self._paths_at(new_root))
        return base.add_fixtures(tree)

    def reset(self) -> None:
        """Remove the root and write the declared fixtures again."""
        self.rm_root_dir()
        for tree in self.trees:
            materialize(tree, self.root_dir, max_workers=self.creator.max_workers)


def define_creator(
    root_dir: RootDirSource,
    *,
    cleanup: CleanupMode | str | None = None,
    write: bool = True,
    max_workers: int | None = None,
) -> Creator:
    """Bind a root directory source and return a :class:`Creator`.

    :param root_dir: Fixed path or zero-argument callable returning one.
    :param cleanup: Default pre-write cleanup mode.
    :param write: Write fixtures on creation.
    :param max_workers: Thread pool size for materialization.
    """
    return Creator(root_dir, cleanup=cleanup, write=write, max_workers=max_workers)


def create(
    tree: Directory,
    root_dir: RootDirSource,
    *,
    cleanup: CleanupMode | str | None = None,
    write: bool = True,
) -> Fixture:
    """Create a fixture session for *tree* in one call."""
    return Creator(root_dir, cleanup=cleanup, write=write)(tree)
