"""
AssetResolver: expands prioritized file rules into concrete, hashed assets.

Rules are applied in declared order. A file matched by an earlier rule is
claimed by it, so later rules with overlapping patterns skip it and each
remote key appears once.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable, Sequence
from pathlib import Path, PurePosixPath

import pathspec
from loguru import logger
from wcmatch import glob

from assetmanifest.asset_resolver.defaults import STATE_DIR_EXCLUDES
from assetmanifest.asset_resolver.ignore import compile_ignore
from assetmanifest.asset_resolver.types import FileRule, ResolvedAsset, ResolverConfig
from assetmanifest.content_types import get_content_type
from assetmanifest.errors import AssetReadError, InvalidBaseDirError, InvalidPatternError
from assetmanifest.hashing import hash_file

# Shell-style globbing: `**` crosses directories, `*` matches dotfiles, `{a,b}` expands.
_MATCH_FLAGS = glob.GLOBSTAR | glob.DOTGLOB | glob.BRACE
_GLOB_FLAGS = _MATCH_FLAGS | glob.NODIR


class AssetResolver:
    """
    Resolves `FileRule`s against a base directory into `ResolvedAsset`s.

    Matching follows dotfiles, yields regular files only (symlinks to files are
    read through), and always skips the deploy tool's state directory. Files
    within a rule are read and hashed concurrently; rules run one after another.
    """

    def __init__(self, config: ResolverConfig | None = None) -> None:
        self._config: ResolverConfig = config or ResolverConfig()
        self._exclude_spec: pathspec.PathSpec | None = compile_ignore(
            self._config.extend_exclude
        )

    async def resolve(
        self, base_dir: str | Path, rules: Sequence[FileRule]
    ) -> list[ResolvedAsset]:
        """
        Resolve all rules into one list of assets, one per key.

        Output is grouped by rule in declared order, sorted by key within each
        rule. Raises `InvalidBaseDirError` if `base_dir` isn't a directory, and
        `AssetReadError` if any matched file can't be read; no partial result
        is returned.
        """
        base = Path(base_dir)
        if not base.is_dir():
            raise InvalidBaseDirError(base_dir)
        base = base.resolve()
        semaphore = asyncio.Semaphore(self._config.max_concurrency)
        claimed: set[str] = set()
        assets: list[ResolvedAsset] = []

        for index, rule in enumerate(rules):
            candidates = self.match_rule(base, rule)
            unclaimed = [key for key in candidates if key not in claimed]
            skipped = len(candidates) - len(unclaimed)
            logger.debug(
                f"Rule {index} ({rule.cache_control or 'no cache-control'}): "
                f"{len(candidates)} matched, {skipped} already claimed"
            )
            assets.extend(await self._resolve_keys(base, unclaimed, rule, semaphore))
            # Only files that survived this rule's ignore patterns are claimed.
            claimed.update(candidates)

        return assets

    def match_rule(self, base: Path, rule: FileRule) -> list[str]:
        """Sorted, deduplicated keys of files matching the rule's patterns minus exclusions."""
        ignore = [*STATE_DIR_EXCLUDES, *(p for p in rule.ignore if p.strip())]
        found: set[str] = set()
        for pattern in rule.patterns:
            if not pattern.strip():
                continue
            for key in self._expand_glob(base, pattern):
                if self._is_excluded(key, ignore):
                    continue
                found.add(key)
        return sorted(found)

    def _expand_glob(self, base: Path, pattern: str) -> Iterable[str]:
        """Expand one glob pattern to keys of regular files under `base`."""
        if os.path.isabs(pattern):
            raise InvalidPatternError(
                f"Pattern must be relative to the base directory {base}: {pattern}"
            )
        for match in glob.glob(pattern, flags=_GLOB_FLAGS, root_dir=str(base)):
            key = Path(match).as_posix()
            if ".." in PurePosixPath(key).parts:
                logger.warning(f"Skipping {key}: outside base directory {base}")
                continue
            # Broken symlinks and special files aren't uploadable
            if not (base / key).is_file():
                continue
            yield key

    def _is_excluded(self, key: str, ignore: list[str]) -> bool:
        if glob.globmatch(key, ignore, flags=_MATCH_FLAGS):
            return True
        if self._exclude_spec is not None and self._exclude_spec.match_file(key):
            return True
        return False

    async def _resolve_keys(
        self,
        base: Path,
        keys: Sequence[str],
        rule: FileRule,
        semaphore: asyncio.Semaphore,
    ) -> list[ResolvedAsset]:
        """Read and hash all files for one rule, failing fast on the first error."""
        tasks = [
            asyncio.ensure_future(self._resolve_key(base, key, rule, semaphore)) for key in keys
        ]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _resolve_key(
        self, base: Path, key: str, rule: FileRule, semaphore: asyncio.Semaphore
    ) -> ResolvedAsset:
        source = base / key
        async with semaphore:
            try:
                digest = await hash_file(source)
            except OSError as e:
                logger.error(f"Failed to read {source}: {e}")
                raise AssetReadError(source, e.strerror or str(e)) from e
        return ResolvedAsset(
            source=source,
            key=key,
            hash=digest,
            content_type=get_content_type(key, self._config.text_encoding),
            cache_control=rule.cache_control,
        )
