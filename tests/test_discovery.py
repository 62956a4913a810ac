from __future__ import annotations

import os
from pathlib import Path

import pytest

from conftest import BUILD_ID
from swbuild.errors import DiscoveryError
from swbuild.services.discovery import DiscoveryRule, default_rules, discover, name_filter, suffix_filter
from swbuild.settings import resolve_config
from swbuild.utils.hashing import file_hash


def _touch(path, content="x"):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_recursive_rule_filters_and_routes_in_walk_order(tmp_path):
    for name in ("pages/b.txt", "pages/b.js", "pages/a.js"):
        _touch(tmp_path / name)
    rule = DiscoveryRule(src=tmp_path, route=lambda f: f"/r{f}", filter=suffix_filter(".js"), recurse=True)
    assert discover([rule]) == ["/r/pages/a.js", "/r/pages/b.js"]


def test_flat_rule_lists_only_immediate_files(tmp_path):
    _touch(tmp_path / "top.js")
    _touch(tmp_path / "nested" / "deep.js")
    rule = DiscoveryRule(src=tmp_path, route=lambda f: f"/c/{f}", filter=suffix_filter(".js"))
    assert discover([rule]) == ["/c/top.js"]


def test_rule_order_is_kept_and_extra_entries_come_last(tmp_path):
    _touch(tmp_path / "one" / "z.js")
    _touch(tmp_path / "two" / "a.js")
    rules = [
        DiscoveryRule(src=tmp_path / "one", route=lambda f: f"/one/{f}", filter=suffix_filter(".js")),
        DiscoveryRule(src=tmp_path / "two", route=lambda f: f"/two/{f}", filter=suffix_filter(".js")),
    ]
    assert discover(rules, ["/extra"]) == ["/one/z.js", "/two/a.js", "/extra"]


def test_missing_source_directory_contributes_nothing(tmp_path):
    _touch(tmp_path / "ok" / "a.js")
    rules = [
        DiscoveryRule(src=tmp_path / "missing", route=lambda f: f, filter=suffix_filter(".js"), recurse=True),
        DiscoveryRule(src=tmp_path / "ok", route=lambda f: f"/ok/{f}", filter=suffix_filter(".js")),
    ]
    assert discover(rules) == ["/ok/a.js"]


def test_unreadable_directory_raises(tmp_path, monkeypatch):
    _touch(tmp_path / "a.js")

    def boom(self):
        raise PermissionError("denied")

    monkeypatch.setattr(type(tmp_path), "iterdir", boom)
    rule = DiscoveryRule(src=tmp_path, route=lambda f: f, filter=suffix_filter(".js"))
    with pytest.raises(DiscoveryError, match="denied"):
        discover([rule])


def test_unreadable_subdirectory_in_recursive_rule_raises(tmp_path, monkeypatch):
    _touch(tmp_path / "a.js")
    _touch(tmp_path / "locked" / "b.js")
    real_scandir = os.scandir

    def guarded(path="."):
        if Path(path).name == "locked":
            raise PermissionError("denied")
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", guarded)
    rule = DiscoveryRule(src=tmp_path, route=lambda f: f, filter=suffix_filter(".js"), recurse=True)
    with pytest.raises(DiscoveryError, match="denied"):
        discover([rule])


def test_name_filter_matches_exact_name():
    match = name_filter("app.js")
    assert match("app.js")
    assert not match("app.js.map")


def test_default_rules_for_next_build(next_build):
    options = resolve_config({"build_id": BUILD_ID}).pipeline
    app_hash = file_hash(next_build / "app.js")
    assert discover(default_rules(options)) == [
        f"/_next/{BUILD_ID}/page/about.js",
        f"/_next/{BUILD_ID}/page/blog/post.js",
        f"/_next/{BUILD_ID}/page/index.js",
        "/_next/static/commons/main-abc.js",
        "/_next/webpack/chunks/chunk-1.js",
        f"/_next/{app_hash}/app.js",
    ]


def test_default_rules_prefix_cdn_root(next_build):
    options = resolve_config({"build_id": BUILD_ID, "cdn_root": "https://cdn.example.com"}).pipeline
    entries = discover(default_rules(options))
    assert entries
    assert all(e.startswith("https://cdn.example.com/_next/") for e in entries)


def test_app_entry_changes_with_app_content(next_build):
    options = resolve_config({"build_id": BUILD_ID}).pipeline
    before = discover(default_rules(options))[-1]
    (next_build / "app.js").write_text("console.log('v2')", encoding="utf-8")
    after = discover(default_rules(options))[-1]
    assert before != after
    assert after.endswith("/app.js")


def test_discovery_is_stable(next_build):
    options = resolve_config({"build_id": BUILD_ID}).pipeline
    assert discover(default_rules(options)) == discover(default_rules(options))
