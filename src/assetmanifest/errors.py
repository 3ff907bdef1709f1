"""Exception types raised while building a manifest."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class ManifestError(Exception):
    """Base class for all manifest build failures."""


class InvalidBaseDirError(ManifestError, ValueError):
    """The base directory is missing or is not a directory."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir: Path = Path(base_dir)
        super().__init__(f"Base directory not found or not a directory: {base_dir}")


class AssetReadError(ManifestError, OSError):
    """
    A matched file could not be read between matching and hashing (deleted,
    permissions changed). Aborts the whole resolution; callers may retry the build.
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path: Path = path
        super().__init__(f"Could not read {path}: {reason}")


class DuplicateKeyError(ManifestError):
    """Resolved assets share a remote key. This is a resolver defect, not bad input."""

    def __init__(self, keys: Iterable[str]) -> None:
        self.keys: list[str] = sorted(keys)
        super().__init__(f"Duplicate asset keys in manifest: {', '.join(self.keys)}")


class ConfigError(ManifestError, ValueError):
    """Malformed configuration file."""


class InvalidPatternError(ManifestError, ValueError):
    """A rule pattern that can't be matched relative to the base directory."""
