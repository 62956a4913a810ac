from .errors import (
    ArtifactWriteError,
    ConfigurationError,
    DiscoveryError,
    GeneratorError,
    HelperLibraryError,
    SwBuildError,
)
from .services.pipeline import PipelineState, PrecachePipeline
from .settings import GenerationOptions, PipelineOptions, ResolvedConfig, resolve_config

__all__ = [
    "PrecachePipeline",
    "PipelineState",
    "PipelineOptions",
    "GenerationOptions",
    "ResolvedConfig",
    "resolve_config",
    "SwBuildError",
    "ConfigurationError",
    "DiscoveryError",
    "ArtifactWriteError",
    "HelperLibraryError",
    "GeneratorError",
]
