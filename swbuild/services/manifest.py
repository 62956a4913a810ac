from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..settings import PipelineOptions
from ..utils.fs import write_text
from ..utils.hashing import content_hash
from .discovery import DiscoveryRule, default_rules, discover

logger = logging.getLogger("swbuild.manifest")

DEBUG_DIRECTIVE = "workbox.setConfig({ debug: true });\n"
MANIFEST_GLOBAL = "self.__precacheManifest"
MANIFEST_PREFIX = "next-precache-manifest-"
POINTER_FILENAME = "manifest-id.json"


def _to_json(value) -> str:
    # Same bytes as JSON.stringify, so filenames match across toolchains.
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def render_manifest(entries: Sequence[str], debug: bool = False) -> str:
    debug_entry = DEBUG_DIRECTIVE if debug else ""
    return f"{debug_entry}{MANIFEST_GLOBAL} = {_to_json(list(entries))}"


def manifest_filename(content: str) -> str:
    return f"{MANIFEST_PREFIX}{content_hash(content)}.js"


def compose_precache_manifest(
    options: PipelineOptions,
    rules: Optional[Sequence[DiscoveryRule]] = None,
) -> str:
    """Write the precache manifest plus its pointer record; return the import URL.

    The pointer is written after the manifest, so a failed write never leaves
    it referencing a file that does not exist.
    """
    if rules is None:
        rules = default_rules(options)
    entries = discover(rules, options.extra_entries)
    content = render_manifest(entries, options.debug)
    output = manifest_filename(content)
    manifest_path = os.path.normpath(os.path.join(options.sw_dest_root, output))

    write_text(manifest_path, content)
    write_text(
        os.path.join(options.sw_dest_root, POINTER_FILENAME),
        _to_json({"precacheManifest": manifest_path}),
    )
    logger.info(
        "wrote precache manifest %s", output, extra={"path": manifest_path, "entries": len(entries)}
    )
    return f"{options.sw_url_root}/{output}"


def read_manifest_pointer(sw_dest_root: str) -> Optional[Dict[str, str]]:
    """Return the pointer record written by the last successful build, if any."""
    pointer = Path(sw_dest_root) / POINTER_FILENAME
    if not pointer.exists():
        return None
    data = json.loads(pointer.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or "precacheManifest" not in data:
        return None
    return {str(k): str(v) for k, v in data.items()}


def load_manifest_entries(manifest_path: str) -> List[str]:
    """Parse the URL list back out of a manifest script."""
    content = Path(manifest_path).read_text(encoding="utf-8")
    _, _, payload = content.partition(f"{MANIFEST_GLOBAL} = ")
    return list(json.loads(payload))
