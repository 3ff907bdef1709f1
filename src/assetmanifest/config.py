"""
TOML-based config file loading for assetmanifest.

Searches for `.assetmanifest.toml`, `assetmanifest.toml`, or
`pyproject.toml [tool.assetmanifest]` walking up from the current directory.
Config values are merged with CLI flags using three-way precedence: explicit
CLI flags > config file > built-in defaults.

Example::

    path = "dist"
    purge = true

    [[files]]
    files = "**/*.html"
    cache-control = "max-age=0,no-cache"

    [[files]]
    files = "**/*"
    ignore = ["**/*.map"]
    cache-control = "max-age=31536000,public,immutable"
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, TypeVar, cast

from assetmanifest.asset_resolver import FileRule
from assetmanifest.errors import ConfigError

if sys.version_info >= (3, 11):
    import tomllib  # pyright: ignore[reportUnreachable]
else:
    import tomli as tomllib  # type: ignore[no-redef]  # pyright: ignore[reportUnreachable]


@dataclass
class AssetManifestConfig:
    """
    Parsed config from a TOML file. Fields are `None` when not set in the config,
    allowing the merge logic to distinguish "not configured" from "explicitly set
    to default value".
    """

    path: str | None = None
    purge: bool | None = None
    text_encoding: str | None = None
    max_concurrency: int | None = None
    extend_exclude: list[str] | None = None
    files: list[FileRule] | None = None


# Config file search order (first match wins within each directory level)
_CONFIG_FILENAMES = [".assetmanifest.toml", "assetmanifest.toml", "pyproject.toml"]

# Mapping from TOML kebab-case keys to Python snake_case field names
_KEBAB_TO_SNAKE: dict[str, str] = {
    "text-encoding": "text_encoding",
    "max-concurrency": "max_concurrency",
    "extend-exclude": "extend_exclude",
    "cache-control": "cache_control",
}

_VALID_FIELDS = {f.name for f in fields(AssetManifestConfig)}

_FIELD_TYPES: dict[str, type] = {
    "path": str,
    "purge": bool,
    "text_encoding": str,
    "max_concurrency": int,
}


def find_config_file(start_dir: Path) -> Path | None:
    """
    Walk up from `start_dir` looking for a config file. Returns the first
    found, or `None`. Search order per directory: `.assetmanifest.toml` >
    `assetmanifest.toml` > `pyproject.toml` (only if it has `[tool.assetmanifest]`).
    """
    current = start_dir.resolve()
    while True:
        for filename in _CONFIG_FILENAMES:
            candidate = current / filename
            if candidate.is_file():
                if filename == "pyproject.toml":
                    if _pyproject_has_section(candidate):
                        return candidate
                else:
                    return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _pyproject_has_section(path: Path) -> bool:
    """Check if a pyproject.toml has a [tool.assetmanifest] section."""
    try:
        data = tomllib.loads(path.read_text())
        return "assetmanifest" in data.get("tool", {})
    except (tomllib.TOMLDecodeError, OSError):
        return False


def load_config(config_path: Path) -> AssetManifestConfig:
    """
    Load an `AssetManifestConfig` from a TOML file. A relative `path` is
    resolved against the config file's directory.
    """
    try:
        data = tomllib.loads(config_path.read_text())
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    if config_path.name == "pyproject.toml":
        data = data.get("tool", {}).get("assetmanifest", {})

    config = _parse_config_data(data)
    if config.path is not None:
        config.path = str((config_path.parent / config.path).resolve())
    return config


def _parse_config_data(data: dict[str, Any]) -> AssetManifestConfig:
    """Parse a flat or sectioned TOML dict into AssetManifestConfig."""
    # Flatten sections like [manifest] into top level; [[files]] stays a list
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            for sub_key, sub_value in cast(dict[str, Any], value).items():
                flat[sub_key] = sub_value
        else:
            flat[key] = value

    mapped: dict[str, Any] = {}
    for key, value in flat.items():
        snake_key = _KEBAB_TO_SNAKE.get(key, key.replace("-", "_"))
        if snake_key not in _VALID_FIELDS:
            continue
        if snake_key == "files":
            mapped[snake_key] = _parse_rules(value)
        elif snake_key == "extend_exclude":
            mapped[snake_key] = _string_list(value, key)
        else:
            expected = _FIELD_TYPES[snake_key]
            # bool is an int subclass, so `max-concurrency = true` needs its own check
            wrong_bool = isinstance(value, bool) and expected is not bool
            if not isinstance(value, expected) or wrong_bool:
                raise ConfigError(f"`{key}` must be {expected.__name__}, got {value!r}")
            mapped[snake_key] = value

    return AssetManifestConfig(**mapped)


def _string_list(value: Any, key: str) -> list[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list) and all(isinstance(v, str) for v in cast(list[Any], value)):
        return cast(list[str], value)
    raise ConfigError(f"`{key}` must be a string or list of strings, got {value!r}")


def _parse_rules(value: Any) -> list[FileRule]:
    """Convert `[[files]]` tables into rules, keeping declared order."""
    if not isinstance(value, list):
        raise ConfigError("`files` must be an array of tables ([[files]])")
    rules: list[FileRule] = []
    for entry in cast(list[Any], value):
        if not isinstance(entry, dict):
            raise ConfigError(f"Each [[files]] entry must be a table, got {entry!r}")
        table = {_KEBAB_TO_SNAKE.get(k, k): v for k, v in cast(dict[str, Any], entry).items()}
        if "files" not in table:
            raise ConfigError("Each [[files]] entry needs a `files` pattern")
        cache_control = table.get("cache_control")
        if cache_control is not None and not isinstance(cache_control, str):
            raise ConfigError(f"`cache-control` must be a string, got {cache_control!r}")
        rules.append(
            FileRule.create(
                patterns=_string_list(table["files"], "files"),
                ignore=_string_list(table["ignore"], "ignore") if "ignore" in table else None,
                cache_control=cache_control,
            )
        )
    return rules


_T = TypeVar("_T")


def merge_cli_with_config(
    cli_opts: _T,
    config: AssetManifestConfig | None,
    explicit_flags: set[str],
) -> _T:
    """
    Merge CLI options with config file settings.

    Precedence: explicit CLI flags > config file > built-in defaults.
    """
    if config is None:
        return cli_opts

    for cfg_field in fields(AssetManifestConfig):
        cfg_value = getattr(config, cfg_field.name)
        if cfg_value is None:
            continue  # Not set in config

        if cfg_field.name in explicit_flags:
            continue

        if hasattr(cli_opts, cfg_field.name):
            setattr(cli_opts, cfg_field.name, cfg_value)

    return cli_opts
