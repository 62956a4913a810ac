from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..errors import SwBuildError
from ..logging_utils import build_context
from ..settings import GenerationOptions, PipelineOptions, ResolvedConfig, resolve_config
from ..utils.fs import remove_tree, write_text
from .discovery import DiscoveryRule, default_rules
from .generator import WorkerGenerator, generate_sw_string
from .helper_library import resolve_helper_library
from .import_scripts import build_import_scripts

logger = logging.getLogger("swbuild.pipeline")

RulesFactory = Callable[[PipelineOptions], Sequence[DiscoveryRule]]
HelperResolver = Callable[[PipelineOptions], str]


class PipelineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class PrecachePipeline:
    """Builds the service worker once per finished host build.

    Construction resolves the configuration (failing fast without a build id)
    and, when ``remove_dir`` is set, deletes the previous artifact directory.
    """

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        *,
        generator: WorkerGenerator = generate_sw_string,
        rules_factory: RulesFactory = default_rules,
        helper_resolver: HelperResolver = resolve_helper_library,
    ) -> None:
        self.config: ResolvedConfig = resolve_config(config)
        self.state = PipelineState.IDLE
        self._generator = generator
        self._rules_factory = rules_factory
        self._helper_resolver = helper_resolver

        if self.options.remove_dir:
            remove_tree(self.options.sw_dest_root)

    @property
    def options(self) -> PipelineOptions:
        return self.config.pipeline

    @property
    def generation(self) -> GenerationOptions:
        return self.config.generation

    def generation_config(self, import_scripts: List[str]) -> Dict[str, Any]:
        data = self.generation.model_dump(by_alias=True, exclude={"sw_dest"})
        data["importScripts"] = list(import_scripts)
        return data

    def import_scripts(self) -> List[str]:
        opts = self.options
        helper_url = self._helper_resolver(opts)
        return build_import_scripts(helper_url, self.generation.import_scripts, opts, self._rules_factory(opts))

    def on_build_complete(self, has_errors: bool) -> Optional[Path]:
        """Run one worker generation; returns the worker path, or None when skipped."""
        if has_errors:
            logger.info("host build reported errors; service worker not generated")
            return None
        if self.state is PipelineState.RUNNING:
            raise SwBuildError("a service worker build is already running")

        self.state = PipelineState.RUNNING
        try:
            with build_context(self.options.build_id):
                try:
                    scripts = self.import_scripts()
                    result = self._generator(self.generation_config(scripts))
                    dest = write_text(self.config.sw_dest_path, result.sw_string)
                except Exception:
                    logger.exception("Error generating service worker")
                    raise
                logger.info(
                    "wrote service worker %s", dest.name, extra={"path": str(dest), "phase": "done"}
                )
                return dest
        finally:
            self.state = PipelineState.IDLE
