"""
Asset discovery: prioritized glob rules resolved into hashed, typed assets.

Usage::

    from assetmanifest.asset_resolver import AssetResolver, FileRule

    rules = [
        FileRule.create("**/*.html", cache_control="max-age=0"),
        FileRule.create("**/*", ignore="*.map", cache_control="max-age=31536000"),
    ]
    assets = await AssetResolver().resolve("dist", rules)
"""

from assetmanifest.asset_resolver.defaults import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_PATTERNS,
    STATE_DIR_EXCLUDES,
)
from assetmanifest.asset_resolver.resolver import AssetResolver
from assetmanifest.asset_resolver.types import FileRule, ResolvedAsset, ResolverConfig

__all__ = [
    "DEFAULT_MAX_CONCURRENCY",
    "DEFAULT_PATTERNS",
    "STATE_DIR_EXCLUDES",
    "AssetResolver",
    "FileRule",
    "ResolvedAsset",
    "ResolverConfig",
]
