"""Parameter validation for inlinefs API."""

from __future__ import annotations

from inlinefs._types import ValidationError

SEP = "/"


def validate_name(name: str) -> None:
    """Check a directory item name (one or more POSIX path segments)."""
    if name.startswith(SEP):
        raise ValidationError(f"Item name must not start with separator: {name}", name)
    if name.endswith(SEP):
        raise ValidationError(f"Item name must not end with separator: {name}", name)
    if SEP * 2 in name:
        raise ValidationError(f"Item name must not contain consecutive separators: {name}", name)


def validate_max_workers(max_workers: int) -> None:
    if max_workers < 0:
        raise ValueError("max_workers must be non-negative")
    if max_workers > 256:
        raise ValueError("max_workers must be <= 256")
