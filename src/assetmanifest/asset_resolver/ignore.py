"""Compile exclusion patterns (gitignore syntax) using pathspec."""

from __future__ import annotations

from collections.abc import Iterable

import pathspec


def clean_pattern_lines(lines: Iterable[str]) -> list[str]:
    """Drop blank lines and `#` comments, as in an ignore file."""
    return [line for line in lines if line.strip() and not line.strip().startswith("#")]


def compile_ignore(patterns: Iterable[str]) -> pathspec.PathSpec | None:
    """
    Compile patterns into a `PathSpec` matched against POSIX keys relative to the
    base directory, or `None` if there is nothing to match.
    """
    lines = clean_pattern_lines(patterns)
    if not lines:
        return None
    return pathspec.PathSpec.from_lines("gitignore", lines)
