"""
Default patterns and limits for asset resolution.

Rule patterns and the state directory exclusion use glob syntax relative to the base
directory.
"""

from __future__ import annotations

from assetmanifest.content_types import DEFAULT_TEXT_ENCODING

# Everything under the base directory.
DEFAULT_PATTERNS: list[str] = ["**/*"]

# The deploy tool's own state directory is never uploaded, whatever the rules say.
# Glob syntax, anchored at the base directory like rule patterns.
STATE_DIR_EXCLUDES: list[str] = [".sst/**"]

# Upper bound on files read and hashed at once within a single rule.
DEFAULT_MAX_CONCURRENCY = 64

__all__ = [
    "DEFAULT_MAX_CONCURRENCY",
    "DEFAULT_PATTERNS",
    "DEFAULT_TEXT_ENCODING",
    "STATE_DIR_EXCLUDES",
]
