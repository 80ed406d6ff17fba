"""Concrete loader for pipeline settings stored in local YAML / JSON files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from ruamel.yaml import YAML

from ..core.convention_registry import (
    ConventionRegistry,
    get_global_registry,
    register_builtin_conventions,
)
from ..core.pipeline import MappingPipeline
from ..core.policy import PipelinePolicy
from ..exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_YAML_EXTS: Final[set[str]] = {".yaml", ".yml"}
_JSON_EXTS: Final[set[str]] = {".json"}

_yaml_parser = YAML(typ="safe")  # safe loader, YAML 1.2

DEFAULT_CONVENTIONS: Final[list[str]] = [
    "ignore_marker",
    "name_match",
    "recursive",
    "path_flatten",
]


class PipelineSettings(BaseModel):
    """Validated content of a pipeline settings file."""

    conventions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CONVENTIONS),
        description="Convention names in evaluation order.",
    )
    policy: PipelinePolicy = Field(default_factory=PipelinePolicy)

    model_config = ConfigDict(extra="forbid")

    @field_validator("conventions")
    @classmethod
    def _normalise_names(cls, v: list[str]) -> list[str]:
        names = [name.strip().lower() for name in v]
        if any(not name for name in names):
            raise ValueError("Convention names must not be empty")
        return names

    def build_pipeline(
        self, registry: ConventionRegistry | None = None
    ) -> MappingPipeline:
        if registry is None:
            register_builtin_conventions()
            registry = get_global_registry()
        conventions = registry.create_conventions(self.conventions)
        return MappingPipeline(conventions=conventions, policy=self.policy)


def load_settings(path: str | Path) -> PipelineSettings:
    """Read and validate a settings file."""
    file_path = Path(path)

    # validation
    if not file_path.exists():
        logger.error("Settings file not found: %s", file_path)
        raise ConfigurationError(f"Settings file not found: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix not in _YAML_EXTS | _JSON_EXTS:
        raise ConfigurationError(
            f"Unsupported extension '{file_path.suffix}'. "
            f"Supported: {', '.join(sorted(_YAML_EXTS | _JSON_EXTS))}"
        )

    raw_text = file_path.read_text(encoding="utf-8")

    # parse
    try:
        if suffix in _YAML_EXTS:
            data: Any = _yaml_parser.load(raw_text)
        else:  # .json
            data = json.loads(raw_text)
    except Exception as exc:
        raise ConfigurationError(f"Cannot parse {file_path.name}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError("Top-level object must be a mapping")

    try:
        settings = PipelineSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid settings in {file_path.name}: {exc}"
        ) from exc

    logger.debug(
        "Settings loaded from %s (%d convention(s))",
        file_path,
        len(settings.conventions),
    )
    return settings


def load_pipeline(
    path: str | Path, registry: ConventionRegistry | None = None
) -> MappingPipeline:
    """Build a pipeline from a settings file."""
    return load_settings(path).build_pipeline(registry)
