"""
Package façade – a single import gives users everything they need:

    >>> from structmap import map_object
    >>> dto = map_object(order, OrderDto)

Design
------
* Conventions decide, field by field, how a source contributes to a target.
* A `MappingPipeline` fixes the convention order and policy, and caches one
  compiled mapping per (source type, target type) pair.
* Re-exports only what external callers should see.
"""

from .api import (
    clone,
    configure,
    get_default_pipeline,
    map_all,
    map_object,
    register_explicit_mapping,
    register_mapping,
    reset,
)
from .core.compiled import CompiledMapping, RegisteredMapping
from .core.markers import IGNORE_MAP, IgnoreMap, Marker, has_ignore_marker
from .core.pipeline import MappingPipeline
from .core.policy import PipelinePolicy
from .core.shapes import ReflectionTypeDescriptor, Shape, ShapeField
from .exceptions import (
    ConfigurationError,
    DuplicateBindingError,
    MappingExecutionError,
    MappingGenerationError,
    MappingNotFoundError,
    NotConstructibleError,
    RecursionLimitExceeded,
    StructMapError,
    UnmappablePropertyError,
)

__all__ = [
    "IGNORE_MAP",
    "CompiledMapping",
    "ConfigurationError",
    "DuplicateBindingError",
    "IgnoreMap",
    "MappingExecutionError",
    "MappingGenerationError",
    "MappingNotFoundError",
    "MappingPipeline",
    "Marker",
    "NotConstructibleError",
    "PipelinePolicy",
    "RecursionLimitExceeded",
    "ReflectionTypeDescriptor",
    "RegisteredMapping",
    "Shape",
    "ShapeField",
    "StructMapError",
    "UnmappablePropertyError",
    "clone",
    "configure",
    "get_default_pipeline",
    "has_ignore_marker",
    "map_all",
    "map_object",
    "register_explicit_mapping",
    "register_mapping",
    "reset",
]

__version__ = "0.1.0"
