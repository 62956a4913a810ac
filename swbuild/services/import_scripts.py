from __future__ import annotations

import logging
import os
from typing import List, Optional, Sequence

from ..settings import PipelineOptions
from ..utils.fs import write_text
from ..utils.hashing import content_hash
from .discovery import DiscoveryRule
from .manifest import DEBUG_DIRECTIVE, compose_precache_manifest

logger = logging.getLogger("swbuild.import_scripts")

IMPORT_SCRIPTS_PREFIX = "next-import-scripts-"


def custom_import_script(options: PipelineOptions) -> Optional[str]:
    """Write the debug-only import script used when manifest mode is off.

    Returns its URL, or None when there is nothing to import.
    """
    if not options.debug:
        return None
    content = DEBUG_DIRECTIVE
    output = f"{IMPORT_SCRIPTS_PREFIX}{content_hash(content)}.js"
    write_text(os.path.join(options.sw_dest_root, output), content)
    logger.info("wrote custom import script %s", output)
    return f"{options.sw_url_root}/{output}"


def build_import_scripts(
    helper_url: str,
    configured: Sequence[str],
    options: PipelineOptions,
    rules: Optional[Sequence[DiscoveryRule]] = None,
) -> List[str]:
    """Order: helper library, configured scripts, then manifest or debug script."""
    scripts = [helper_url]
    scripts.extend(configured)
    if options.manifest_enabled:
        scripts.append(compose_precache_manifest(options, rules))
    else:
        custom = custom_import_script(options)
        if custom:
            scripts.append(custom)
    return scripts
