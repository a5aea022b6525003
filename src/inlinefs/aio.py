"""inlinefs.aio: native async API.

Blocking filesystem calls run in worker threads via
:func:`asyncio.to_thread`; sibling entries of a directory are written
concurrently with :func:`asyncio.gather`. The event loop never blocks on
disk I/O. Producers may be coroutine functions.

Usage::

    import inlinefs.aio

    await inlinefs.aio.materialize({"a.txt": "a", "b/c.txt": "b-c"}, "/tmp/fx")

    create_fixture = inlinefs.aio.define_creator(lambda: make_root())
    fx = await create_fixture({"a.txt": "a"})
    forked = await fx.fork({"b.txt": "b"})
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from dataclasses import dataclass, replace

from inlinefs._config import get_config
from inlinefs._fs import duplicate_tree, remove_children, remove_path, write_file
from inlinefs._paths import flatten
from inlinefs._session import BaseCreator, BaseFixture, RootDirSource, cleanup_root
from inlinefs._tree import Content, Directory, DirNode, Producer, plan
from inlinefs._types import CleanupMode, FixtureCreationError

logger = logging.getLogger(__name__)


async def _makedirs(path: str) -> None:
    try:
        await asyncio.to_thread(os.makedirs, path, exist_ok=True)
    except OSError as e:
        raise FixtureCreationError(path) from e


async def _run_producer(producer: Producer, path: str) -> None:
    try:
        if inspect.iscoroutinefunction(producer.fn):
            result = producer.fn(path)
        else:
            result = await asyncio.to_thread(producer.fn, path)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        raise FixtureCreationError(path, by_producer=True) from e


async def _write_item(item, path: str) -> None:
    if isinstance(item, DirNode):
        if item.producer is not None:
            await _run_producer(item.producer, path)
        await _write_level(item, path, ensure=item.needs_create)
    elif isinstance(item, Content):
        await _makedirs(os.path.dirname(path))
        try:
            await asyncio.to_thread(write_file, path, item.data)
        except OSError as e:
            raise FixtureCreationError(path) from e
    elif isinstance(item, Producer):
        await _run_producer(item, path)


async def _write_level(node: DirNode, base_dir: str, *, ensure: bool) -> None:
    if ensure:
        await _makedirs(base_dir)

    coros = [_write_item(item, os.path.join(base_dir, name)) for name, item in node.entries.items()]
    results = await asyncio.gather(*coros, return_exceptions=True)
    for r in results:
        if isinstance(r, BaseException):
            raise r

    logger.debug("materialized %d entries in %s", len(coros), base_dir)


# =========================================================================
# Public async API
# =========================================================================


async def materialize(tree: Directory, base_dir: str | os.PathLike[str]) -> None:
    """Write *tree* under *base_dir* (async).

    :param tree: Directory definition.
    :param base_dir: Directory to write into (created if missing).
    :raises ValidationError: Malformed item name or file/directory conflict.
    :raises FixtureCreationError: A write, mkdir or producer failed.
    """
    node = plan(tree)
    await _write_level(node, os.fspath(base_dir), ensure=True)


class AsyncCreator(BaseCreator):
    """Create :class:`AsyncFixture` sessions."""

    async def __call__(
        self,
        tree: Directory,
        *,
        root_dir: str | os.PathLike[str] | None = None,
        cleanup: CleanupMode | str | None = None,
        write: bool | None = None,
    ) -> AsyncFixture:
        """Create a fixture session for *tree* (async).

        :param root_dir: Use this root instead of the creator's source.
        :param cleanup: Pre-write cleanup mode for this call.
        :param write: Override the creator's ``write`` flag.
        """
        root = self.resolve_root_dir(root_dir)
        fixture = AsyncFixture(root_dir=root, paths=flatten(tree, root), creator=self, trees=(tree,))

        w = write if write is not None else self.write
        if w:
            mode = self.cleanup_mode(cleanup)
            logger.debug("creating fixture in %s (cleanup=%s)", root, mode.value)
            await asyncio.to_thread(cleanup_root, root, mode)
            await materialize(tree, root)
        return fixture


@dataclass(frozen=True, slots=True)
class AsyncFixture(BaseFixture):
    """Fixture directory created by an :class:`AsyncCreator`."""

    async def rm_root_dir(self) -> None:
        logger.debug("removing %s", self.root_dir)
        await asyncio.to_thread(remove_path, self.root_dir)

    async def rm_fixtures(self) -> None:
        await asyncio.to_thread(remove_children, self.root_dir)

    async def add_fixtures(self, tree: Directory) -> AsyncFixture:
        added = flatten(tree, self.root_dir)
        await materialize(tree, self.root_dir)
        return replace(self, paths={**self.paths, **added}, trees=self.trees + (tree,))

    async def fork(self, tree: Directory, *, root_dir: str | os.PathLike[str] | None = None) -> AsyncFixture:
        """Copy this fixture to a new root and add *tree* there (async).

        :raises ForkConflictError: The new root equals ``root_dir``.
        """
        new_root = self._fork_root(root_dir)
        await self.creator({}, root_dir=new_root, write=True)
        await asyncio.to_thread(duplicate_tree, self.root_dir, new_root, clone=get_config().clone)
        logger.debug("forked %s -> %s", self.root_dir, new_root)

        base = replace(self, root_dir=new_root, paths=self._paths_at(new_root))
        return await base.add_fixtures(tree)

    async def reset(self) -> None:
        await self.rm_root_dir()
        for tree in self.trees:
            await materialize(tree, self.root_dir)


def define_creator(
    root_dir: RootDirSource,
    *,
    cleanup: CleanupMode | str | None = None,
    write: bool = True,
) -> AsyncCreator:
    """Bind a root directory source and return an :class:`AsyncCreator`."""
    return AsyncCreator(root_dir, cleanup=cleanup, write=write)


async def create(
    tree: Directory,
    root_dir: RootDirSource,
    *,
    cleanup: CleanupMode | str | None = None,
    write: bool = True,
) -> AsyncFixture:
    """Create an async fixture session for *tree* in one call."""
    return await AsyncCreator(root_dir, cleanup=cleanup, write=write)(tree)


__all__ = [
    "materialize",
    "AsyncCreator",
    "AsyncFixture",
    "define_creator",
    "create",
]
