from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from ..errors import DiscoveryError
from ..settings import PipelineOptions
from ..utils.hashing import file_hash

logger = logging.getLogger("swbuild.discovery")

Route = Callable[[str], str]
Predicate = Callable[[str], bool]


@dataclass(frozen=True)
class DiscoveryRule:
    """Maps files under ``src`` to served URLs.

    Recursive rules hand the filter and route a path relative to ``src`` with a
    leading slash (``/sub/a.js``); flat rules hand them the bare file name.
    """

    src: Path
    route: Route
    filter: Predicate
    recurse: bool = False


def suffix_filter(*suffixes: str) -> Predicate:
    def _match(path: str) -> bool:
        return path.endswith(tuple(suffixes))

    return _match


def name_filter(name: str) -> Predicate:
    def _match(path: str) -> bool:
        return path == name

    return _match


def _reraise(exc: OSError) -> None:
    raise exc


def _walk(src: Path) -> List[str]:
    # Unreadable subdirectories raise instead of being skipped.
    rels = []
    for dirpath, _, filenames in os.walk(src, onerror=_reraise):
        base = Path(dirpath)
        for name in filenames:
            rels.append("/" + (base / name).relative_to(src).as_posix())
    return sorted(rels)


def _listdir(src: Path) -> List[str]:
    return sorted(p.name for p in src.iterdir() if p.is_file())


def _discover_rule(rule: DiscoveryRule) -> List[str]:
    src = Path(rule.src)
    if not src.is_dir():
        logger.debug("skipping missing source directory %s", src, extra={"path": str(src)})
        return []
    try:
        names = _walk(src) if rule.recurse else _listdir(src)
    except OSError as exc:
        raise DiscoveryError(f"cannot read {src}: {exc}") from exc
    return [rule.route(name) for name in names if rule.filter(name)]


def discover(rules: Sequence[DiscoveryRule], extra_entries: Optional[Iterable[str]] = None) -> List[str]:
    """Return served URLs for every rule, in rule order, then ``extra_entries``."""
    entries: List[str] = []
    for rule in rules:
        entries.extend(_discover_rule(rule))
    entries.extend(extra_entries or [])
    return entries


def default_rules(options: PipelineOptions) -> List[DiscoveryRule]:
    """The fixed rule set for a Next.js build directory."""
    dist = Path(options.dist_dir)
    cdn = options.cdn_root
    build_id = options.build_id

    def app_route(_: str) -> str:
        return f"{cdn}/_next/{file_hash(dist / 'app.js')}/app.js"

    return [
        DiscoveryRule(
            src=dist / "bundles" / "pages",
            route=lambda f: f"{cdn}/_next/{build_id}/page{f}",
            filter=suffix_filter(".js"),
            recurse=True,
        ),
        # next 6: commons chunks and the build manifest
        DiscoveryRule(
            src=dist / "static" / "commons",
            route=lambda f: f"{cdn}/_next/static/commons/{f}",
            filter=suffix_filter(".js"),
        ),
        DiscoveryRule(
            src=dist / "chunks",
            route=lambda f: f"{cdn}/_next/webpack/chunks/{f}",
            filter=suffix_filter(".js"),
        ),
        DiscoveryRule(src=dist, route=app_route, filter=name_filter("app.js")),
    ]
