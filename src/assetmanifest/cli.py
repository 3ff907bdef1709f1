#!/usr/bin/env python3
"""
assetmanifest: Build a deterministic upload manifest for a static site or asset directory

Common usage:
  assetmanifest dist
  assetmanifest dist --files '**/*.html' --cache-control 'max-age=0'
  assetmanifest dist --purge -o manifest.json
  assetmanifest --list-files dist

Rules (pattern sets with their own cache-control) are normally configured in
`assetmanifest.toml`, `.assetmanifest.toml`, or `[tool.assetmanifest]` in
pyproject.toml. The first matching rule wins for each file.
"""

from __future__ import annotations

import argparse
import importlib.metadata
import json
import sys
from dataclasses import dataclass
from pathlib import Path

from loguru import logger
from strif import atomic_output_file

from assetmanifest.asset_resolver import (
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_PATTERNS,
    FileRule,
    ResolverConfig,
)
from assetmanifest.config import find_config_file, load_config, merge_cli_with_config
from assetmanifest.content_types import DEFAULT_TEXT_ENCODING
from assetmanifest.errors import ManifestError
from assetmanifest.manifest import Manifest, build_manifest


@dataclass
class Options:
    """Command-line options for the assetmanifest tool."""

    path: str
    files: list[FileRule] | None
    purge: bool
    text_encoding: str
    max_concurrency: int
    extend_exclude: list[str]
    output: str
    list_files: bool
    verbose: bool
    version: bool

    @property
    def rules(self) -> list[FileRule]:
        """Configured rules, or a single catch-all rule."""
        if self.files:
            return self.files
        return [FileRule.create(DEFAULT_PATTERNS)]


def _parse_args(args: list[str] | None = None) -> tuple[Options, set[str]]:
    """
    Parse command-line arguments.

    Returns a tuple of (options, explicit_flags) where `explicit_flags` tracks
    which settings the user explicitly passed (for config merge precedence).
    """
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    parser = argparse.ArgumentParser(
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Base directory to build the manifest for (default: config `path` or '.')",
    )
    parser.add_argument(
        "--files",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Glob pattern for a single rule, replacing configured rules. Can be repeated",
    )
    parser.add_argument(
        "--ignore",
        action="append",
        default=[],
        metavar="PATTERN",
        help="Glob pattern to ignore within the --files rule. Can be repeated",
    )
    parser.add_argument(
        "--cache-control",
        type=str,
        default=None,
        dest="cache_control",
        metavar="VALUE",
        help="Cache-Control header for the --files rule",
    )
    parser.add_argument(
        "--purge",
        action="store_true",
        default=None,
        help="Mark the manifest so remote objects not listed in it are deleted",
    )
    parser.add_argument(
        "--text-encoding",
        type=str,
        default=None,
        dest="text_encoding",
        metavar="ENCODING",
        help="Charset appended to text content types, or 'none' "
        f"(default: {DEFAULT_TEXT_ENCODING})",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        dest="max_concurrency",
        metavar="N",
        help=f"Maximum files read at once (default: {DEFAULT_MAX_CONCURRENCY})",
    )
    parser.add_argument(
        "--extend-exclude",
        action="append",
        default=None,
        dest="extend_exclude",
        metavar="PATTERN",
        help="Additional pattern excluded from every rule (gitignore syntax). Can be repeated",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default="-",
        help="Output file for the JSON manifest (use '-' for stdout)",
    )
    parser.add_argument(
        "--list-files",
        action="store_true",
        dest="list_files",
        help="Print resolved keys, one per line, instead of the JSON manifest",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit",
    )
    opts = parser.parse_args(args)
    if opts.files is None and (opts.ignore or opts.cache_control is not None):
        parser.error("--ignore and --cache-control apply to the --files rule; pass --files too")

    # Flags default to None so presence can be told apart from a default value.
    explicit_flags: set[str] = {
        name
        for name in ("path", "purge", "text_encoding", "max_concurrency", "extend_exclude")
        if getattr(opts, name) is not None
    }

    files: list[FileRule] | None = None
    if opts.files is not None:
        explicit_flags.add("files")
        rule = FileRule.create(opts.files, ignore=opts.ignore, cache_control=opts.cache_control)
        files = [rule]

    max_concurrency = opts.max_concurrency
    if max_concurrency is None:
        max_concurrency = DEFAULT_MAX_CONCURRENCY

    return (
        Options(
            path=opts.path if opts.path is not None else ".",
            files=files,
            purge=bool(opts.purge),
            text_encoding=opts.text_encoding or DEFAULT_TEXT_ENCODING,
            max_concurrency=max_concurrency,
            extend_exclude=opts.extend_exclude or [],
            output=opts.output,
            list_files=opts.list_files,
            verbose=opts.verbose,
            version=opts.version,
        ),
        explicit_flags,
    )


def _setup_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _write_manifest(manifest: Manifest, output: str) -> None:
    text = json.dumps(manifest.to_dict(), indent=2) + "\n"
    if output == "-":
        sys.stdout.write(text)
        return
    with atomic_output_file(output, make_parents=True) as tmp_path:
        Path(tmp_path).write_text(text, encoding="utf-8")


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the assetmanifest CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    options, explicit_flags = _parse_args(args)
    _setup_logging(options.verbose)

    if options.version:
        try:
            version = importlib.metadata.version("assetmanifest")
            print(f"v{version}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return 0

    try:
        config_path = find_config_file(Path.cwd())
        if config_path:
            logger.debug(f"Using config file {config_path}")
            merge_cli_with_config(options, load_config(config_path), explicit_flags)

        resolver_config = ResolverConfig(
            text_encoding=options.text_encoding,
            max_concurrency=options.max_concurrency,
            extend_exclude=options.extend_exclude,
        )
        manifest = build_manifest(options.path, options.rules, options.purge, resolver_config)
    except (ManifestError, ValueError) as e:
        # Bad input, config, or an unreadable file.
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if options.list_files:
        for key in manifest.keys:
            print(key)
        return 0

    try:
        _write_manifest(manifest, options.output)
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
