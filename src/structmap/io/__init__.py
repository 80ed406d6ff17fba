"""Loading pipeline settings from YAML / JSON files."""

from .config_loader import PipelineSettings, load_pipeline, load_settings

__all__ = ["PipelineSettings", "load_pipeline", "load_settings"]
