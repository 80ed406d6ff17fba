"""Unit tests for loading pipeline settings files."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from structmap.conventions import (
    CollectionRecursiveConvention,
    IgnoreMarkerConvention,
    NameMatchConvention,
    PathFlattenConvention,
    RecursiveConvention,
)
from structmap.core.convention_registry import ConventionRegistry
from structmap.exceptions import ConfigurationError
from structmap.io import PipelineSettings, load_pipeline, load_settings

# -------------------- Helpers --------------------


def write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


# --------------------------- Tests ---------------------------


class TestLoadSettings:
    def test_yaml_settings(self, tmp_path: Path) -> None:
        path = write(
            tmp_path,
            "mapping.yaml",
            """
conventions:
  - Name_Match
  - collection_recursive
policy:
  throw_on_unmappable: true
  max_recursion_depth: 10
""",
        )
        settings = load_settings(path)

        assert settings.conventions == ["name_match", "collection_recursive"]
        assert settings.policy.throw_on_unmappable is True
        assert settings.policy.max_recursion_depth == 10
        assert settings.policy.generate_if_not_found is True

    def test_json_settings(self, tmp_path: Path) -> None:
        path = write(
            tmp_path,
            "mapping.json",
            json.dumps({"policy": {"generate_if_not_found": False}}),
        )
        settings = load_settings(path)

        assert settings.policy.generate_if_not_found is False
        assert settings.conventions == [
            "ignore_marker",
            "name_match",
            "recursive",
            "path_flatten",
        ]

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(write(tmp_path, "empty.yml", ""))
        assert settings == PipelineSettings()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_settings(tmp_path / "nope.yaml")

    def test_unsupported_extension(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Unsupported extension"):
            load_settings(write(tmp_path, "mapping.toml", "x = 1"))

    def test_syntax_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="Cannot parse"):
            load_settings(write(tmp_path, "broken.yaml", "conventions: [name_match"))

    def test_root_must_be_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="must be a mapping"):
            load_settings(write(tmp_path, "list.yaml", "- name_match\n"))

    @pytest.mark.parametrize(
        "text",
        [
            "unknown_key: 1\n",
            "policy:\n  max_recursion_depth: '10'\n",
            "policy:\n  throw_on_unmapped: true\n",
            "conventions:\n  - ''\n",
        ],
    )
    def test_invalid_settings(self, tmp_path: Path, text: str) -> None:
        with pytest.raises(ConfigurationError, match="Invalid settings"):
            load_settings(write(tmp_path, "bad.yaml", text))


class TestBuildPipeline:
    def test_default_settings_use_stock_order(self, tmp_path: Path) -> None:
        pipeline = load_pipeline(write(tmp_path, "empty.yaml", "{}"))
        assert [type(c) for c in pipeline.conventions] == [
            IgnoreMarkerConvention,
            NameMatchConvention,
            RecursiveConvention,
            PathFlattenConvention,
        ]

    def test_settings_drive_pipeline(self, tmp_path: Path) -> None:
        path = write(
            tmp_path,
            "mapping.yaml",
            "conventions: [collection_recursive, name_match]\n"
            "policy: {max_recursion_depth: 7}\n",
        )
        pipeline = load_pipeline(path)

        assert [type(c) for c in pipeline.conventions] == [
            CollectionRecursiveConvention,
            NameMatchConvention,
        ]
        assert pipeline.policy.max_recursion_depth == 7

    def test_unknown_convention_name(self, tmp_path: Path) -> None:
        path = write(tmp_path, "mapping.yaml", "conventions: [fuzzy_match]\n")
        with pytest.raises(ConfigurationError, match="Unknown convention 'fuzzy_match'"):
            load_pipeline(path)

    def test_custom_registry(self) -> None:
        registry = ConventionRegistry()
        registry.register_convention("only", NameMatchConvention)

        pipeline = PipelineSettings(conventions=["only"]).build_pipeline(registry)
        assert [type(c) for c in pipeline.conventions] == [NameMatchConvention]
