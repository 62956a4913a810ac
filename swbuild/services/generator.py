from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List

from ..errors import GeneratorError
from ..utils.hashing import file_hash

logger = logging.getLogger("swbuild.generator")

STRATEGIES = {"cacheFirst", "cacheOnly", "networkFirst", "networkOnly", "staleWhileRevalidate"}


@dataclass
class GeneratedWorker:
    sw_string: str
    count: int = 0
    size: int = 0
    warnings: List[str] = field(default_factory=list)


WorkerGenerator = Callable[[Dict[str, Any]], GeneratedWorker]


def _js(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


_UNESCAPED_SLASH = re.compile(r"(?<!\\)((?:\\\\)*)/")


def _regex_literal(pattern: str) -> str:
    # Slashes already escaped in the source pattern are kept as they are.
    return "/" + _UNESCAPED_SLASH.sub(r"\1\\/", pattern) + "/"


def expand_braces(pattern: str) -> List[str]:
    """Expand ``{a,b}`` alternatives: ``*.{js,css}`` -> ``*.js``, ``*.css``."""
    start = pattern.find("{")
    if start < 0:
        return [pattern]
    depth = 0
    alts: List[str] = []
    last = start + 1
    for i in range(start, len(pattern)):
        ch = pattern[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                alts.append(pattern[last:i])
                head, tail = pattern[:start], pattern[i + 1 :]
                out: List[str] = []
                for alt in alts:
                    out.extend(expand_braces(head + alt + tail))
                return out
        elif ch == "," and depth == 1:
            alts.append(pattern[last:i])
            last = i + 1
    # unbalanced: glob it literally
    return [pattern]


def glob_entries(config: Dict[str, Any]) -> tuple[List[Dict[str, str]], int, List[str]]:
    """Collect ``{url, revision}`` entries for the configured glob patterns."""
    root = Path(config.get("globDirectory") or "./")
    limit = int(config.get("maximumFileSizeToCacheInBytes") or 0)
    seen: Dict[str, Path] = {}
    warnings: List[str] = []
    for pattern in config.get("globPatterns") or []:
        matched = False
        for expanded in expand_braces(pattern):
            for p in root.glob(expanded):
                if p.is_file():
                    matched = True
                    seen.setdefault(p.relative_to(root).as_posix(), p)
        if not matched:
            warnings.append(f"The pattern '{pattern}' did not match any files.")
    entries = []
    size = 0
    for url in sorted(seen):
        path = seen[url]
        nbytes = path.stat().st_size
        if limit and nbytes > limit:
            warnings.append(f"{url} is {nbytes} bytes, and won't be precached.")
            continue
        size += nbytes
        entries.append({"url": url, "revision": file_hash(path)})
    return entries, size, warnings


def _strategy(rule: Dict[str, Any]) -> str:
    handler = rule.get("handler")
    if handler not in STRATEGIES:
        raise GeneratorError(f"unsupported runtime caching handler: {handler!r}")
    options = rule.get("options") or {}
    args = _js(options) if options else ""
    return f"workbox.strategies.{handler}({args})"


def generate_sw_string(config: Dict[str, Any]) -> GeneratedWorker:
    """Render a Workbox v3 service worker from a camelCase generation config."""
    entries, size, warnings = glob_entries(config)
    lines: List[str] = []

    scripts = config.get("importScripts") or []
    if scripts:
        lines.append("importScripts(")
        lines.append(",\n".join(f"  {_js(s)}" for s in scripts))
        lines.append(");")
        lines.append("")

    if config.get("cacheId"):
        lines.append(f"workbox.core.setCacheNameDetails({{prefix: {_js(config['cacheId'])}}});")
        lines.append("")
    if config.get("skipWaiting"):
        lines.append("workbox.skipWaiting();")
    if config.get("clientsClaim"):
        lines.append("workbox.clientsClaim();")
    lines.append("")

    lines.append(f"self.__precacheManifest = {_js(entries)}.concat(self.__precacheManifest || []);")
    lines.append("workbox.precaching.suppressWarnings();")
    lines.append("workbox.precaching.precacheAndRoute(self.__precacheManifest, {});")
    lines.append("")

    if config.get("navigateFallback"):
        lines.append(f"workbox.routing.registerNavigationRoute({_js(config['navigateFallback'])});")
        lines.append("")

    for rule in config.get("runtimeCaching") or []:
        pattern = rule.get("urlPattern")
        if not pattern:
            raise GeneratorError("runtime caching rule without urlPattern")
        method = (rule.get("method") or "GET").upper()
        lines.append(
            f"workbox.routing.registerRoute({_regex_literal(pattern)}, {_strategy(rule)}, '{method}');"
        )

    for w in warnings:
        logger.warning(w)
    return GeneratedWorker(sw_string="\n".join(lines) + "\n", count=len(entries), size=size, warnings=warnings)
