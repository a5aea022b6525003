"""inlinefs enumerations and errors."""

from __future__ import annotations

import os
from enum import Enum


class CleanupMode(str, Enum):
    """What to remove from the root directory before writing fixtures."""

    ROOT = "root"
    FIXTURES = "fixtures"
    NONE = "none"


# ---- Errors ----

class InlineFsError(Exception):
    """Base exception for all inlinefs errors."""


class ValidationError(InlineFsError, ValueError):
    """Malformed item name or conflicting item definitions.

    :param message: Human readable description.
    :param name: The offending item name or path.
    """

    def __init__(self, message: str, name: str) -> None:
        super().__init__(message)
        self.name = name


class FixtureCreationError(InlineFsError):
    """Writing a fixture to disk failed.

    The underlying exception is chained as ``__cause__``.

    :param path: Absolute path of the fixture that failed.
    :param by_producer: True if a producer callback raised.
    """

    def __init__(self, path: str, *, by_producer: bool = False) -> None:
        message = f"Failed to create fixture ('{path}')."
        if by_producer:
            parent = os.path.dirname(path)
            message += (
                f" Did you forget to create the parent directory ('{parent}')?"
                " Producers do not create the parent directory automatically,"
                " you have to create it manually."
            )
        super().__init__(message)
        self.path = path
        self.by_producer = by_producer


class ForkConflictError(InlineFsError):
    """Fork target is the same directory as the fixture root."""

    def __init__(self, root_dir: str) -> None:
        super().__init__(
            f"New root directory must be different from the current one: {root_dir}"
        )
        self.root_dir = root_dir


class ConfigError(InlineFsError):
    """Invalid configuration."""
