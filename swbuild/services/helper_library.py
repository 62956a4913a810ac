from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from ..errors import HelperLibraryError
from ..settings import PipelineOptions
from ..utils.fs import copy_file, ensure_dir

logger = logging.getLogger("swbuild.helper_library")

WORKBOX_SW_PACKAGE = "node_modules/workbox-sw/package.json"
_COPIED_SUFFIXES = {".js", ".map"}


def find_up(name: str, start: Path) -> Optional[Path]:
    """Return the first ``<dir>/<name>`` that exists, walking up from ``start``."""
    start = start.resolve()
    for directory in (start, *start.parents):
        candidate = directory / name
        if candidate.exists():
            return candidate
    return None


def copy_workbox_libraries(node_modules: Path, dest_root: Path, version: str) -> str:
    """Copy every ``workbox-*/build`` file into ``dest_root/workbox-v<version>``.

    Returns the name of the created directory, relative to ``dest_root``.
    """
    dirname = f"workbox-v{version}"
    target = Path(dest_root) / dirname
    copied = 0
    for pkg in sorted(node_modules.glob("workbox-*")):
        build = pkg / "build"
        if not build.is_dir():
            continue
        for f in sorted(build.iterdir()):
            if f.is_file() and f.suffix in _COPIED_SUFFIXES:
                copy_file(f, target)
                copied += 1
    logger.info("copied %d workbox files", copied, extra={"path": str(target)})
    return dirname


def module_url(options: PipelineOptions, module: str = "workbox-sw") -> str:
    return f"{options.workbox_cdn_url.rstrip('/')}/{options.workbox_version}/{module}.js"


def resolve_helper_library(options: PipelineOptions) -> str:
    """Return the URL of the Workbox runtime the worker must import first."""
    if options.import_workbox_from != "local":
        ensure_dir(options.sw_dest_root)
        return module_url(options)

    start = Path(options.workbox_search_root or os.getcwd())
    package_json = find_up(WORKBOX_SW_PACKAGE, start)
    if package_json is None:
        raise HelperLibraryError(f"cannot locate {WORKBOX_SW_PACKAGE} from {start}")
    try:
        pkg = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise HelperLibraryError(f"unreadable {package_json}: {exc}") from exc

    entry = os.path.basename(pkg.get("main") or "workbox-sw.js")
    version = pkg.get("version") or options.workbox_version
    node_modules = package_json.parent.parent
    dirname = copy_workbox_libraries(node_modules, Path(options.sw_dest_root), version)
    return f"{options.sw_url_root}/{dirname}/{entry}"
