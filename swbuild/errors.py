from __future__ import annotations


class SwBuildError(Exception):
    """Base class for every failure raised by the service-worker pipeline."""


class ConfigurationError(SwBuildError):
    pass


class DiscoveryError(SwBuildError):
    pass


class ArtifactWriteError(SwBuildError):
    pass


class HelperLibraryError(SwBuildError):
    pass


class GeneratorError(SwBuildError):
    pass
