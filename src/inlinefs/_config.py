"""inlinefs global configuration."""

from __future__ import annotations

from dataclasses import dataclass

from inlinefs._types import CleanupMode, ConfigError


@dataclass
class InlineFsConfig:
    """Global configuration with safe defaults.

    All values can be overridden per-call or per-creator.
    """

    # Materializer
    max_workers: int = 0  # 0 = auto (min(entries, 8))

    # Sessions
    cleanup: CleanupMode = CleanupMode.NONE
    mask_placeholder: str = "<root_dir>"

    # Fork
    clone: bool = True  # try copy-on-write clones before a plain copy


# Global singleton
_config = InlineFsConfig()


def configure(**kwargs) -> None:
    """Update global configuration.

    :param max_workers: Thread pool workers per directory level (0 = auto).
    :param cleanup: Default :class:`CleanupMode` applied before writing.
    :param mask_placeholder: Replacement text used by ``mask_root_dir``.
    :param clone: Attempt copy-on-write clones when forking.
    """
    global _config
    for key, value in kwargs.items():
        if not hasattr(_config, key):
            raise ConfigError(f"unknown config option: {key!r}")
        if key == "cleanup":
            try:
                value = CleanupMode(value)
            except ValueError:
                raise ConfigError(f"invalid cleanup mode: {value!r}") from None
        setattr(_config, key, value)


def get_config() -> InlineFsConfig:
    """Get current global configuration."""
    return _config


def reset_config() -> None:
    """Reset configuration to defaults."""
    global _config
    _config = InlineFsConfig()
