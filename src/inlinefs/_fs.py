"""Filesystem primitives used by fixture sessions."""

from __future__ import annotations

import logging
import os
import shutil
import sys

logger = logging.getLogger(__name__)

# linux/fs.h: _IOW(0x94, 9, int)
FICLONE = 0x40049409


def write_file(path: str, data: str | bytes) -> None:
    """Write *data* to *path*, replacing any existing content."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    with open(path, "wb") as f:
        f.write(data)


def remove_path(path: str) -> None:
    """Remove a file or directory tree. Missing paths are ignored."""
    try:
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        else:
            os.remove(path)
    except FileNotFoundError:
        return


def remove_children(path: str) -> None:
    """Remove everything inside *path*, keeping *path* itself.

    A missing *path* is treated as an empty directory.
    """
    try:
        names = os.listdir(path)
    except FileNotFoundError:
        return
    for name in names:
        remove_path(os.path.join(path, name))


def clone_file(src: str, dst: str, *, follow_symlinks: bool = True) -> str:
    """Copy one file, sharing extents with *src* where the filesystem can.

    Falls back to :func:`shutil.copy2` when a copy-on-write clone is not
    supported for the pair of paths.
    """
    if sys.platform.startswith("linux"):
        import fcntl

        try:
            with open(src, "rb") as fsrc, open(dst, "wb") as fdst:
                fcntl.ioctl(fdst.fileno(), FICLONE, fsrc.fileno())
        except OSError as e:
            logger.debug("clone of %s unsupported (%s), copying", src, e)
        else:
            shutil.copystat(src, dst, follow_symlinks=follow_symlinks)
            return dst
    return shutil.copy2(src, dst, follow_symlinks=follow_symlinks)


def duplicate_tree(src: str, dst: str, *, clone: bool = True) -> None:
    """Copy the contents of directory *src* into *dst* (which may exist).

    A missing *src* is treated as an empty directory.
    """
    if not os.path.isdir(src):
        logger.debug("nothing to duplicate, %s does not exist", src)
        return
    copy_function = clone_file if clone else shutil.copy2
    logger.debug("duplicating %s -> %s (clone=%s)", src, dst, clone)
    shutil.copytree(src, dst, symlinks=True, copy_function=copy_function, dirs_exist_ok=True)
