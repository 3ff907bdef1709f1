"""Types for rules and resolved assets."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from assetmanifest.asset_resolver.defaults import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_TEXT_ENCODING,
)


def _as_tuple(value: str | Sequence[str] | None) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class FileRule:
    """
    One priority tier of files sharing a cache policy.

    `patterns` and `ignore` are glob patterns relative to the base directory
    (`**` recurses, `{a,b}` alternates, dotfiles match). When rules overlap,
    the rule declared first wins.
    """

    patterns: tuple[str, ...] = ()
    ignore: tuple[str, ...] = ()
    cache_control: str | None = None

    @classmethod
    def create(
        cls,
        patterns: str | Sequence[str],
        ignore: str | Sequence[str] | None = None,
        cache_control: str | None = None,
    ) -> FileRule:
        """Build a rule, accepting a single string or a sequence for `patterns` and `ignore`."""
        return cls(
            patterns=_as_tuple(patterns),
            ignore=_as_tuple(ignore),
            cache_control=cache_control,
        )


@dataclass(frozen=True)
class ResolvedAsset:
    """A file to upload: where it lives locally, its remote key, and its metadata."""

    source: Path
    key: str
    hash: str
    content_type: str
    cache_control: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire format expected by the bucket sync component."""
        data: dict[str, Any] = {
            "source": str(self.source),
            "key": self.key,
            "hash": self.hash,
            "contentType": self.content_type,
        }
        if self.cache_control is not None:
            data["cacheControl"] = self.cache_control
        return data


@dataclass
class ResolverConfig:
    """
    Options for `AssetResolver`.

    `text_encoding="none"` drops the charset from text content types.
    `extend_exclude` holds tool-wide exclusions in gitignore syntax (e.g. `drafts/`),
    applied to every rule on top of the state directory exclusion.
    """

    text_encoding: str = DEFAULT_TEXT_ENCODING
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    extend_exclude: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be at least 1, got {self.max_concurrency}")
