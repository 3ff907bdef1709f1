"""Tests for the asset_resolver module."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from assetmanifest.asset_resolver import (
    STATE_DIR_EXCLUDES,
    AssetResolver,
    FileRule,
    ResolvedAsset,
    ResolverConfig,
)
from assetmanifest.errors import AssetReadError, InvalidBaseDirError, InvalidPatternError
from assetmanifest.hashing import hash_bytes


def _by_key(assets: list[ResolvedAsset]) -> dict[str, ResolvedAsset]:
    return {asset.key: asset for asset in assets}


def _make_site(root: Path) -> None:
    (root / "index.html").write_text("<h1>Home</h1>")
    (root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    assets = root / "assets"
    assets.mkdir()
    (assets / "app.js").write_text("console.log(1)")
    (assets / "app.js.map").write_text("{}")
    (assets / "style.css").write_text("body{}")
    docs = root / "docs"
    docs.mkdir()
    (docs / "about.html").write_text("<h1>About</h1>")


def test_rule_create_accepts_strings():
    rule = FileRule.create("**/*", ignore="*.map", cache_control="max-age=60")
    assert rule.patterns == ("**/*",)
    assert rule.ignore == ("*.map",)
    assert rule.cache_control == "max-age=60"


def test_rule_create_accepts_sequences():
    rule = FileRule.create(["*.html", "*.htm"], ignore=["a", "b"])
    assert rule.patterns == ("*.html", "*.htm")
    assert rule.ignore == ("a", "b")
    assert rule.cache_control is None


def test_state_dir_exclusion_is_anchored_glob():
    assert STATE_DIR_EXCLUDES == [".sst/**"]


def test_config_rejects_zero_concurrency():
    with pytest.raises(ValueError):
        ResolverConfig(max_concurrency=0)


@pytest.mark.asyncio
async def test_first_declared_rule_wins(tmp_path: Path):
    (tmp_path / "index.html").write_text("<html></html>")
    (tmp_path / "logo.png").write_bytes(b"png")
    rules = [
        FileRule.create("**/*.html", cache_control="max-age=0"),
        FileRule.create("**/*", cache_control="max-age=31536000"),
    ]

    assets = await AssetResolver().resolve(tmp_path, rules)

    assert len(assets) == 2
    found = _by_key(assets)
    assert found["index.html"].cache_control == "max-age=0"
    assert found["logo.png"].cache_control == "max-age=31536000"
    assert found["logo.png"].content_type == "image/png"


@pytest.mark.asyncio
async def test_overlapping_rules_yield_single_asset(tmp_path: Path):
    (tmp_path / "style.css").write_text("body{}")
    rules = [
        FileRule.create("*.css", cache_control="first"),
        FileRule.create("style.*", cache_control="second"),
    ]

    assets = await AssetResolver().resolve(tmp_path, rules)

    assert [a.key for a in assets] == ["style.css"]
    assert assets[0].cache_control == "first"


@pytest.mark.asyncio
async def test_robots_hash_and_content_type(tmp_path: Path):
    (tmp_path / "robots.txt").write_bytes(b"User-agent: *")

    assets = await AssetResolver().resolve(tmp_path, [FileRule.create("**/*")])

    assert len(assets) == 1
    robots = assets[0]
    assert robots.hash == "d9066d29c1dfed62e1bbde2c102079a5ccc0c1e9f669644fd89fd652cdc156bb"
    assert robots.content_type == "text/plain;charset=UTF-8"
    assert robots.source == (tmp_path / "robots.txt").resolve()


@pytest.mark.asyncio
async def test_nested_keys_are_relative_posix(tmp_path: Path):
    _make_site(tmp_path)

    assets = await AssetResolver().resolve(tmp_path, [FileRule.create("**/*")])

    assert sorted(a.key for a in assets) == [
        "assets/app.js",
        "assets/app.js.map",
        "assets/style.css",
        "docs/about.html",
        "index.html",
        "logo.png",
    ]
    for asset in assets:
        assert asset.source.is_absolute()
        assert asset.source.read_bytes()
        assert asset.hash == hash_bytes(asset.source.read_bytes())


@pytest.mark.asyncio
async def test_output_grouped_by_rule_and_sorted(tmp_path: Path):
    _make_site(tmp_path)
    rules = [
        FileRule.create("**/*.html", cache_control="html"),
        FileRule.create("**/*", cache_control="rest"),
    ]

    assets = await AssetResolver().resolve(tmp_path, rules)

    assert [a.key for a in assets] == [
        "docs/about.html",
        "index.html",
        "assets/app.js",
        "assets/app.js.map",
        "assets/style.css",
        "logo.png",
    ]


@pytest.mark.asyncio
async def test_multiple_patterns_in_one_rule_dedupe(tmp_path: Path):
    (tmp_path / "index.html").write_text("x")

    assets = await AssetResolver().resolve(tmp_path, [FileRule.create(["*.html", "index.*"])])

    assert [a.key for a in assets] == ["index.html"]


@pytest.mark.asyncio
async def test_ignore_patterns(tmp_path: Path):
    _make_site(tmp_path)

    rule = FileRule.create("**/*", ignore="**/*.map")
    assets = await AssetResolver().resolve(tmp_path, [rule])

    assert "assets/app.js.map" not in _by_key(assets)
    assert "assets/app.js" in _by_key(assets)


@pytest.mark.asyncio
async def test_ignored_file_left_for_later_rule(tmp_path: Path):
    _make_site(tmp_path)
    rules = [
        FileRule.create("assets/**/*", ignore="**/*.map", cache_control="immutable"),
        FileRule.create("**/*", cache_control="fallback"),
    ]

    found = _by_key(await AssetResolver().resolve(tmp_path, rules))

    assert found["assets/app.js"].cache_control == "immutable"
    assert found["assets/app.js.map"].cache_control == "fallback"


@pytest.mark.asyncio
async def test_dotfiles_included(tmp_path: Path):
    (tmp_path / ".nojekyll").write_text("")
    well_known = tmp_path / ".well-known"
    well_known.mkdir()
    (well_known / "site-association-json").write_text("{}")

    found = _by_key(await AssetResolver().resolve(tmp_path, [FileRule.create("**/*")]))

    assert ".nojekyll" in found
    association = found[".well-known/site-association-json"]
    assert association.content_type == "application/json;charset=UTF-8"


@pytest.mark.asyncio
async def test_state_dir_always_excluded(tmp_path: Path):
    (tmp_path / "index.html").write_text("x")
    state = tmp_path / ".sst" / "platform"
    state.mkdir(parents=True)
    (state / "state.json").write_text("{}")

    assets = await AssetResolver().resolve(tmp_path, [FileRule.create(["**/*", ".sst/**"])])

    assert [a.key for a in assets] == ["index.html"]


@pytest.mark.asyncio
async def test_extend_exclude_applies_to_every_rule(tmp_path: Path):
    _make_site(tmp_path)
    resolver = AssetResolver(ResolverConfig(extend_exclude=["docs/"]))

    assets = await resolver.resolve(
        tmp_path, [FileRule.create("**/*.html"), FileRule.create("**/*")]
    )

    assert all(not a.key.startswith("docs/") for a in assets)


@pytest.mark.asyncio
async def test_directories_not_included(tmp_path: Path):
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "file.txt").write_text("x")

    assets = await AssetResolver().resolve(tmp_path, [FileRule.create(["*", "sub"])])

    assert assets == []


@pytest.mark.asyncio
async def test_empty_patterns_and_no_matches(tmp_path: Path):
    (tmp_path / "index.html").write_text("x")
    rules = [FileRule(), FileRule.create(["", "*.nothing"])]

    assert await AssetResolver().resolve(tmp_path, rules) == []


@pytest.mark.asyncio
async def test_text_encoding_none(tmp_path: Path):
    (tmp_path / "index.html").write_text("x")
    resolver = AssetResolver(ResolverConfig(text_encoding="none"))

    assets = await resolver.resolve(tmp_path, [FileRule.create("*")])

    assert assets[0].content_type == "text/html"


@pytest.mark.asyncio
@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
async def test_symlinked_file_read_through(tmp_path: Path):
    target = tmp_path / "real.txt"
    target.write_bytes(b"linked")
    (tmp_path / "alias.txt").symlink_to(target)
    (tmp_path / "broken.txt").symlink_to(tmp_path / "missing.txt")

    found = _by_key(await AssetResolver().resolve(tmp_path, [FileRule.create("*")]))

    assert sorted(found) == ["alias.txt", "real.txt"]
    assert found["alias.txt"].hash == hash_bytes(b"linked")


@pytest.mark.asyncio
async def test_unreadable_file_aborts_resolution(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _make_site(tmp_path)

    from assetmanifest.asset_resolver import resolver as resolver_module

    real_hash_file = resolver_module.hash_file

    async def flaky_hash_file(path: Path) -> str:
        if path.name == "style.css":
            raise PermissionError(13, "Permission denied", str(path))
        return await real_hash_file(path)

    monkeypatch.setattr(resolver_module, "hash_file", flaky_hash_file)

    with pytest.raises(AssetReadError) as excinfo:
        await AssetResolver().resolve(tmp_path, [FileRule.create("**/*")])

    assert excinfo.value.path.name == "style.css"
    assert isinstance(excinfo.value.__cause__, PermissionError)
    assert isinstance(excinfo.value, OSError)


def test_match_rule_returns_sorted_keys(tmp_path: Path):
    _make_site(tmp_path)
    resolver = AssetResolver()

    keys = resolver.match_rule(tmp_path, FileRule.create(["**/*.css", "**/*.js"]))

    assert keys == ["assets/app.js", "assets/style.css"]


@pytest.mark.asyncio
async def test_concurrency_of_one(tmp_path: Path):
    _make_site(tmp_path)
    resolver = AssetResolver(ResolverConfig(max_concurrency=1))

    assets = await resolver.resolve(tmp_path, [FileRule.create("**/*")])

    assert len(assets) == 6


@pytest.mark.asyncio
async def test_bare_globstar_matches_all_files(tmp_path: Path):
    (tmp_path / "index.html").write_text("x")
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "b.js").write_text("x")
    (tmp_path / ".env.example").write_text("x")

    assets = await AssetResolver().resolve(tmp_path, [FileRule.create("**")])

    assert [a.key for a in assets] == [".env.example", "a/b.js", "index.html"]


@pytest.mark.asyncio
async def test_brace_patterns(tmp_path: Path):
    (tmp_path / "a.js").write_text("x")
    (tmp_path / "b.css").write_text("x")
    (tmp_path / "c.html").write_text("x")

    assets = await AssetResolver().resolve(tmp_path, [FileRule.create("*.{js,css}")])

    assert [a.key for a in assets] == ["a.js", "b.css"]


@pytest.mark.asyncio
async def test_absolute_pattern_rejected(tmp_path: Path):
    (tmp_path / "notes.txt").write_text("x")

    with pytest.raises(InvalidPatternError) as excinfo:
        await AssetResolver().resolve(tmp_path, [FileRule.create(str(tmp_path / "*.txt"))])

    assert isinstance(excinfo.value, ValueError)


@pytest.mark.asyncio
async def test_ignore_is_anchored_at_base(tmp_path: Path):
    (tmp_path / "top.map").write_text("{}")
    (tmp_path / "js").mkdir()
    (tmp_path / "js" / "app.js.map").write_text("{}")

    assets = await AssetResolver().resolve(tmp_path, [FileRule.create("**", ignore="*.map")])

    assert [a.key for a in assets] == ["js/app.js.map"]


@pytest.mark.asyncio
async def test_ignore_supports_braces(tmp_path: Path):
    _make_site(tmp_path)

    rule = FileRule.create("**", ignore=["**/*.{map,css}", "docs/**"])
    assets = await AssetResolver().resolve(tmp_path, [rule])

    assert [a.key for a in assets] == ["assets/app.js", "index.html", "logo.png"]


@pytest.mark.asyncio
async def test_nested_state_dir_name_not_excluded(tmp_path: Path):
    (tmp_path / ".sst").mkdir()
    (tmp_path / ".sst" / "log.txt").write_text("x")
    nested = tmp_path / "docs" / ".sst"
    nested.mkdir(parents=True)
    (nested / "x.txt").write_text("x")

    assets = await AssetResolver().resolve(tmp_path, [FileRule.create("**")])

    assert [a.key for a in assets] == ["docs/.sst/x.txt"]


@pytest.mark.asyncio
async def test_missing_base_dir(tmp_path: Path):
    with pytest.raises(InvalidBaseDirError):
        await AssetResolver().resolve(tmp_path / "missing", [FileRule.create("**")])


@pytest.mark.asyncio
async def test_base_dir_is_file(tmp_path: Path):
    path = tmp_path / "file.txt"
    path.write_text("x")
    with pytest.raises(InvalidBaseDirError):
        await AssetResolver().resolve(path, [FileRule.create("**")])
