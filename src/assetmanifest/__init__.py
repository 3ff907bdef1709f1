"""
assetmanifest: deterministic upload manifests for syncing a directory to an object store.
"""

from assetmanifest.asset_resolver import AssetResolver, FileRule, ResolvedAsset, ResolverConfig
from assetmanifest.content_types import classify, get_content_type
from assetmanifest.errors import (
    AssetReadError,
    ConfigError,
    DuplicateKeyError,
    InvalidBaseDirError,
    InvalidPatternError,
    ManifestError,
)
from assetmanifest.hashing import hash_bytes, hash_file
from assetmanifest.manifest import Manifest, ManifestBuilder, build_manifest

__all__ = [
    "AssetReadError",
    "AssetResolver",
    "ConfigError",
    "DuplicateKeyError",
    "FileRule",
    "InvalidBaseDirError",
    "InvalidPatternError",
    "Manifest",
    "ManifestBuilder",
    "ManifestError",
    "ResolvedAsset",
    "ResolverConfig",
    "build_manifest",
    "classify",
    "get_content_type",
    "hash_bytes",
    "hash_file",
]
