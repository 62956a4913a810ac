from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from swbuild import PrecachePipeline, SwBuildError
from swbuild.logging_utils import maybe_enable_json_logging
from swbuild.services.manifest import load_manifest_entries, read_manifest_pointer
from swbuild.utils.fs import remove_tree


def _load_config(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise SwBuildError(f"{path} must contain a JSON object")
    return data


def _read_build_id(dist_dir: str) -> Optional[str]:
    # `next build` writes the id next to its output.
    p = Path(dist_dir) / "BUILD_ID"
    if p.is_file():
        return p.read_text(encoding="utf-8").strip() or None
    return None


def cmd_build(args: argparse.Namespace) -> int:
    if args.had_errors:
        # The previous build's artifacts stay in place.
        print("Skipped: host build reported errors")
        return 0
    config = _load_config(args.config)
    if args.dist_dir:
        config["dist_dir"] = args.dist_dir
    if args.dest_root:
        config["sw_dest_root"] = args.dest_root
    if args.debug:
        config["debug"] = True
    if args.no_precache_manifest:
        config["precache_manifest"] = False
    if args.workbox_from:
        config["import_workbox_from"] = args.workbox_from
    build_id = args.build_id or config.get("build_id") or config.get("buildId")
    if not build_id:
        build_id = _read_build_id(config.get("dist_dir") or config.get("distDir") or ".next")
    if build_id:
        config.pop("buildId", None)
        config["build_id"] = build_id

    try:
        pipeline = PrecachePipeline(config)
        dest = pipeline.on_build_complete(has_errors=False)
    except SwBuildError as e:
        print("Error:", e, file=sys.stderr)
        return 1
    print(f"Service worker written to {dest}")
    return 0


def cmd_show_manifest(args: argparse.Namespace) -> int:
    pointer = read_manifest_pointer(args.dest_root)
    if not pointer:
        print(f"No precache manifest recorded under {args.dest_root}", file=sys.stderr)
        return 1
    path = pointer["precacheManifest"]
    print(path)
    if args.entries:
        for url in load_manifest_entries(path):
            print(f"  {url}")
    return 0


def cmd_clean(args: argparse.Namespace) -> int:
    remove_tree(args.dest_root)
    print(f"Removed {args.dest_root}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    if not maybe_enable_json_logging():
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    parser = argparse.ArgumentParser(prog="build_sw", description="Generate the Workbox service worker for a Next.js build")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_build = sub.add_parser("build", help="Generate precache manifest and service worker")
    p_build.add_argument("--config", help="JSON file with pipeline and generation options")
    p_build.add_argument("--build-id", help="Next.js build id (default: <dist-dir>/BUILD_ID)")
    p_build.add_argument("--dist-dir")
    p_build.add_argument("--dest-root")
    p_build.add_argument("--workbox-from", help="'local' or an external module source")
    p_build.add_argument("--debug", action="store_true")
    p_build.add_argument("--no-precache-manifest", action="store_true")
    p_build.add_argument("--had-errors", action="store_true", help="Host build failed; do nothing")
    p_build.set_defaults(func=cmd_build)

    p_show = sub.add_parser("show-manifest", help="Print the manifest recorded in manifest-id.json")
    p_show.add_argument("--dest-root", default="./static/workbox")
    p_show.add_argument("--entries", action="store_true", help="Also list precached URLs")
    p_show.set_defaults(func=cmd_show_manifest)

    p_clean = sub.add_parser("clean", help="Remove the generated artifact directory")
    p_clean.add_argument("--dest-root", default="./static/workbox")
    p_clean.set_defaults(func=cmd_clean)

    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
