"""inlinefs: declarative filesystem fixtures.

:func:`materialize`: write a nested directory definition to disk.
:func:`flatten`: compute the path table of a definition without I/O.
:func:`define_creator`: bind a root directory source for fixture sessions.
:func:`create`: create a fixture session in one call.
:func:`configure`: set global defaults.

The same session API is available as coroutines in :mod:`inlinefs.aio`.
"""

from __future__ import annotations

__version__ = "0.1.0"

from inlinefs._types import (
    CleanupMode,
    InlineFsError,
    ValidationError,
    FixtureCreationError,
    ForkConflictError,
    ConfigError,
)
from inlinefs._config import configure, get_config, reset_config
from inlinefs._tree import SKIP, Content, Directory, DirectoryItem, Producer, Skip
from inlinefs._paths import flatten, self_and_upper_paths
from inlinefs._validate import validate_name
from inlinefs._session import RootDirSource
from inlinefs._api import Creator, Fixture, create, define_creator, materialize


__all__ = [
    "__version__",
    "materialize",
    "flatten",
    "self_and_upper_paths",
    "validate_name",
    "define_creator",
    "create",
    "Creator",
    "Fixture",
    "RootDirSource",
    "configure",
    "get_config",
    "reset_config",
    "Content",
    "Producer",
    "Skip",
    "SKIP",
    "Directory",
    "DirectoryItem",
    "CleanupMode",
    "InlineFsError",
    "ValidationError",
    "FixtureCreationError",
    "ForkConflictError",
    "ConfigError",
]
