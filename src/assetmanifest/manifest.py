"""
Manifest building: the complete set of assets to sync to a bucket, plus
whether remote objects missing from it should be purged.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from loguru import logger

from assetmanifest.asset_resolver import AssetResolver, FileRule, ResolvedAsset, ResolverConfig
from assetmanifest.errors import DuplicateKeyError


@dataclass(frozen=True)
class Manifest:
    """
    Assets to upload, one per remote key. If `purge` is set, the sync component
    deletes remote keys that are not in the manifest.
    """

    assets: tuple[ResolvedAsset, ...]
    purge: bool = False

    @property
    def keys(self) -> list[str]:
        return [asset.key for asset in self.assets]

    def get(self, key: str) -> ResolvedAsset | None:
        for asset in self.assets:
            if asset.key == key:
                return asset
        return None

    def __len__(self) -> int:
        return len(self.assets)

    def to_dict(self) -> dict[str, Any]:
        """Serialize as `{"purge": ..., "files": [...]}` for the sync component."""
        return {
            "purge": self.purge,
            "files": [asset.to_dict() for asset in self.assets],
        }


def check_unique_keys(assets: Sequence[ResolvedAsset]) -> None:
    """Raise `DuplicateKeyError` if any two assets share a key."""
    counts = Counter(asset.key for asset in assets)
    duplicates = [key for key, count in counts.items() if count > 1]
    if duplicates:
        raise DuplicateKeyError(duplicates)


class ManifestBuilder:
    """Runs the resolver over all rules and assembles a validated `Manifest`."""

    def __init__(self, config: ResolverConfig | None = None) -> None:
        self._resolver: AssetResolver = AssetResolver(config)

    async def build(
        self, base_dir: str | Path, rules: Sequence[FileRule], purge: bool = False
    ) -> Manifest:
        """
        Build the manifest for `base_dir`.

        Raises:
            InvalidBaseDirError: `base_dir` doesn't exist or isn't a directory.
            InvalidPatternError: A rule pattern is absolute.
            AssetReadError: A matched file couldn't be read.
            DuplicateKeyError: Resolution produced the same key twice (a bug, not bad input).
        """
        assets = await self._resolver.resolve(base_dir, rules)
        check_unique_keys(assets)

        logger.info(f"Built manifest for {base_dir}: {len(assets)} files, purge={purge}")
        return Manifest(assets=tuple(assets), purge=purge)


def build_manifest(
    base_dir: str | Path,
    rules: Sequence[FileRule],
    purge: bool = False,
    config: ResolverConfig | None = None,
) -> Manifest:
    """Synchronous wrapper around `ManifestBuilder.build()`."""
    return asyncio.run(ManifestBuilder(config).build(base_dir, rules, purge))
