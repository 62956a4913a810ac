from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

DEFAULT_SW_DEST = "sw.js"


def _parse_bool(value, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if value is None or value == "":
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


class PipelineOptions(BaseSettings):
    """Options consumed directly by the pipeline; env/.env values act as defaults."""

    dist_dir: str = Field(".next", alias="NEXT_SW_DIST_DIR")
    # Only a production `next build` writes a build id.
    build_id: str = Field("", alias="NEXT_BUILD_ID", validate_default=True)
    # Must live under static/ so `next export` ships it.
    sw_dest_root: str = Field("./static/workbox", alias="NEXT_SW_DEST_ROOT")
    sw_url_root: str = Field("/static/workbox", alias="NEXT_SW_URL_ROOT")
    cdn_root: str = Field("", alias="NEXT_SW_CDN_ROOT")
    remove_dir: bool = Field(True, alias="NEXT_SW_REMOVE_DIR")
    # True/False toggles manifest mode; a list enables it and adds extra entries.
    precache_manifest: Union[bool, List[str]] = Field(True, alias="NEXT_SW_PRECACHE_MANIFEST")
    debug: bool = Field(False, alias="NEXT_SW_DEBUG")
    import_workbox_from: str = Field("local", alias="NEXT_SW_IMPORT_WORKBOX_FROM")
    workbox_version: str = Field("3.6.3", alias="NEXT_SW_WORKBOX_VERSION")
    workbox_cdn_url: str = Field(
        "https://storage.googleapis.com/workbox-cdn/releases", alias="NEXT_SW_WORKBOX_CDN_URL"
    )
    workbox_search_root: Optional[str] = Field(None, alias="NEXT_SW_WORKBOX_SEARCH_ROOT")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    @field_validator("build_id", mode="before")
    @classmethod
    def _require_build_id(cls, value) -> str:
        val = "" if value is None else str(value).strip()
        if not val:
            raise ValueError(
                "Build id from next.js must exist. This is only generated in "
                "production Next builds (NODE_ENV=production)"
            )
        return val

    @field_validator("remove_dir", mode="before")
    @classmethod
    def _parse_remove_dir(cls, value) -> bool:
        return _parse_bool(value, True)

    @field_validator("debug", mode="before")
    @classmethod
    def _parse_debug(cls, value) -> bool:
        return _parse_bool(value, False)

    @field_validator("sw_url_root", "cdn_root", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str:
        return (value or "").strip().rstrip("/")

    @field_validator("import_workbox_from", mode="before")
    @classmethod
    def _normalize_source(cls, value: str | None) -> str:
        val = (value or "local").strip()
        return val or "local"

    @property
    def manifest_enabled(self) -> bool:
        return isinstance(self.precache_manifest, list) or bool(self.precache_manifest)

    @property
    def extra_entries(self) -> List[str]:
        if isinstance(self.precache_manifest, list):
            return list(self.precache_manifest)
        return []


class RuntimeCachingRule(BaseModel):
    url_pattern: str
    handler: str
    method: str = "GET"
    options: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True)

    @field_validator("url_pattern", mode="before")
    @classmethod
    def _pattern_source(cls, value):
        if isinstance(value, re.Pattern):
            return value.pattern
        return value


def _default_runtime_caching() -> List[RuntimeCachingRule]:
    return [RuntimeCachingRule(url_pattern=r"^http[s|]?.*", handler="staleWhileRevalidate")]


class GenerationOptions(BaseModel):
    """Options forwarded to the worker generator; only import_scripts is touched here."""

    glob_directory: str = "./"
    glob_patterns: List[str] = Field(default_factory=list)
    clients_claim: bool = True
    skip_waiting: bool = True
    runtime_caching: List[RuntimeCachingRule] = Field(default_factory=_default_runtime_caching)
    import_scripts: List[str] = Field(default_factory=list)
    sw_dest: str = DEFAULT_SW_DEST
    cache_id: Optional[str] = None
    navigate_fallback: Optional[str] = None
    maximum_file_size_to_cache_in_bytes: int = 2 * 1024 * 1024

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid", frozen=True)

    @field_validator("sw_dest", mode="before")
    @classmethod
    def _basename_only(cls, value: str | None) -> str:
        # The directory is always sw_dest_root.
        name = os.path.basename((value or "").strip())
        return name or DEFAULT_SW_DEST


@dataclass(frozen=True)
class ResolvedConfig:
    pipeline: PipelineOptions
    generation: GenerationOptions

    @property
    def sw_dest_path(self) -> Path:
        return Path(self.pipeline.sw_dest_root) / self.generation.sw_dest


def _key_map(model) -> Dict[str, str]:
    keys: Dict[str, str] = {}
    for name in model.model_fields:
        keys[name] = name
        keys[to_camel(name)] = name
    return keys


_PIPELINE_KEYS = _key_map(PipelineOptions)
_GENERATION_KEYS = _key_map(GenerationOptions)


def resolve_config(overrides: Optional[Mapping[str, Any]] = None) -> ResolvedConfig:
    """Split caller overrides into pipeline and generation options.

    Keys may be snake_case or camelCase. Unknown keys and a missing build id
    raise ConfigurationError.
    """
    pipeline_kwargs: Dict[str, Any] = {}
    generation_kwargs: Dict[str, Any] = {}
    unknown: List[str] = []
    for key, value in (overrides or {}).items():
        if key in _PIPELINE_KEYS:
            pipeline_kwargs[_PIPELINE_KEYS[key]] = value
        elif key in _GENERATION_KEYS:
            generation_kwargs[_GENERATION_KEYS[key]] = value
        else:
            unknown.append(key)
    if unknown:
        raise ConfigurationError(f"unrecognized option(s): {', '.join(sorted(unknown))}")

    try:
        pipeline = PipelineOptions(**pipeline_kwargs)
        generation = GenerationOptions(**generation_kwargs)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
    return ResolvedConfig(pipeline=pipeline, generation=generation)
