"""Flatten a directory tree into a path table."""

from __future__ import annotations

import os
import posixpath

from inlinefs._tree import Directory, coerce_item, is_directory, plan


def self_and_upper_paths(path: str) -> list[str]:
    """Convert ``'a/b/c'`` to ``['a/b/c', 'a/b', 'a']``."""
    paths = [path]
    parent = posixpath.dirname(path)
    while parent:
        paths.append(parent)
        parent = posixpath.dirname(parent)
    return paths


def flatten(tree: Directory, root_dir: str, prefix: str = "") -> dict[str, str]:
    """Map every path declared by *tree* to its location under *root_dir*.

    Keys are POSIX paths relative to *root_dir*. Every ancestor implied by a
    compound key gets its own entry, so ``{'b/a': {'x.txt': ...}}`` yields
    ``b``, ``b/a`` and ``b/a/x.txt``. Nothing on disk is touched. A tree
    that :func:`~inlinefs.materialize` would reject is rejected here too.

    :param tree: Directory definition.
    :param root_dir: Directory the paths are resolved against.
    :param prefix: Relative path of *tree* inside *root_dir*.
    :returns: Mapping of relative path -> filesystem path.
    :raises ValidationError: Malformed item name or file/directory conflict.
    """
    plan(tree)
    return _collect(tree, root_dir, prefix)


def _collect(tree: Directory, root_dir: str, prefix: str) -> dict[str, str]:
    paths: dict[str, str] = {}
    for name, item in tree.items():
        for p in reversed(self_and_upper_paths(name)):
            paths[posixpath.join(prefix, p)] = os.path.join(root_dir, prefix, p)

        item = coerce_item(item)
        if is_directory(item):
            paths.update(_collect(item, root_dir, posixpath.join(prefix, name)))
    return paths
