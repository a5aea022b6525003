"""Directory tree model and merge planning.

A tree is a mapping from item name to item. Callers write plain Python
literals; :func:`coerce_item` turns each into one of the explicit variants:

- ``str`` / ``bytes`` -> :class:`Content`
- ``None`` -> :data:`SKIP`
- any ``Mapping`` -> a nested directory
- any other callable -> :class:`Producer`

:func:`plan` validates and merges a whole tree before any I/O so that
duplicate paths are resolved once, in declaration order.
"""

from __future__ import annotations

import posixpath
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from inlinefs._types import ValidationError
from inlinefs._validate import SEP, validate_name


@dataclass(frozen=True, slots=True)
class Content:
    """File written verbatim. ``str`` data is encoded as UTF-8."""

    data: str | bytes


@dataclass(frozen=True, slots=True)
class Producer:
    """File written by a callback receiving the absolute path.

    The callback may return an awaitable. Its parent directory is not
    created for it.
    """

    fn: Callable[[str], Awaitable[None] | None]


class _SkipType:
    _instance: _SkipType | None = None

    def __new__(cls) -> _SkipType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SKIP"


SKIP = _SkipType()
"""Reserve a name without writing anything."""

Skip = _SkipType

Directory = Mapping[str, Any]
DirectoryItem = Union[Content, Producer, _SkipType, Directory, str, bytes, None, Callable[[str], Any]]


def coerce_item(item: Any) -> Content | Producer | _SkipType | Directory:
    """Map a plain literal onto its tree variant."""
    if isinstance(item, (Content, Producer, _SkipType)):
        return item
    if item is None:
        return SKIP
    if isinstance(item, (str, bytes)):
        return Content(item)
    if isinstance(item, Mapping):
        return item
    if callable(item):
        return Producer(item)
    raise TypeError(f"unsupported directory item: {item!r}")


def is_directory(item: Any) -> bool:
    return isinstance(item, Mapping)


@dataclass(slots=True)
class DirNode:
    """One directory level of a merged tree.

    :param declared: True if the directory was declared as a mapping (or
        is an ancestor of one) and must be created even when empty.
    :param entries: Children by single path segment.
    :param producer: Producer declared at this path before any key below it.
        It runs before the children are written.
    """

    declared: bool = False
    entries: dict[str, Content | Producer | _SkipType | DirNode] = field(default_factory=dict)
    producer: Producer | None = None

    @property
    def needs_create(self) -> bool:
        """True if the directory has to exist on disk before its children run."""
        if self.declared:
            return True
        for entry in self.entries.values():
            if isinstance(entry, Content):
                return True
            if isinstance(entry, DirNode) and entry.producer is None and entry.needs_create:
                return True
        return False


def plan(tree: Directory) -> DirNode:
    """Validate and merge *tree* into a :class:`DirNode` hierarchy.

    Same directory paths are merged, same file paths keep the last
    definition. A path used both as a file and as a directory raises
    :class:`ValidationError`, except for a producer followed by keys below
    it: the producer runs first and the children are written after it.
    """
    root = DirNode(declared=True)
    _merge(root, tree, "")
    return root


def _merge(node: DirNode, tree: Directory, prefix: str) -> None:
    for name, raw in tree.items():
        validate_name(name)
        item = coerce_item(raw)

        *parents, leaf = name.split(SEP)
        target = node
        walked = prefix
        for segment in parents:
            walked = posixpath.join(walked, segment)
            target = _child_dir(target, segment, walked)
        path = posixpath.join(walked, leaf)

        if is_directory(item):
            child = _child_dir(target, leaf, path)
            child.declared = True
            _merge(child, item, path)
        elif isinstance(item, _SkipType):
            target.entries.setdefault(leaf, SKIP)
        else:
            if isinstance(target.entries.get(leaf), DirNode):
                raise ValidationError(f"Item conflicts with a directory of the same path: {path}", path)
            target.entries[leaf] = item


def _child_dir(node: DirNode, segment: str, path: str) -> DirNode:
    existing = node.entries.get(segment)
    if isinstance(existing, DirNode):
        return existing
    if isinstance(existing, Producer):
        child = DirNode(producer=existing)
        node.entries[segment] = child
        return child
    if existing is not None and not isinstance(existing, _SkipType):
        raise ValidationError(f"Item conflicts with a file of the same path: {path}", path)
    child = DirNode()
    node.entries[segment] = child
    return child
