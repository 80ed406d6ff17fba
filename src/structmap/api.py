"""
Process-wide convenience surface over a default `MappingPipeline`.

The default pipeline is never mutated in place: `configure` and
`register_explicit_mapping` swap in a new pipeline under a lock, so a
mapping already in flight keeps using the pipeline it started with.
"""

import logging
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from .core.pipeline import MappingPipeline
from .core.policy import PipelinePolicy

if TYPE_CHECKING:
    from .core.protocols import Convention

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_default_pipeline = MappingPipeline()


def get_default_pipeline() -> MappingPipeline:
    """Get the pipeline used by the module-level helpers."""
    return _default_pipeline


def configure(
    conventions: Sequence["Convention"] | None = None,
    policy: PipelinePolicy | None = None,
    **policy_overrides: Any,
) -> MappingPipeline:
    """
    Replace the default pipeline.

    Args:
        conventions: Conventions in evaluation order (stock order if omitted)
        policy: Policy flags (defaults if omitted)
        **policy_overrides: Individual policy flags applied on top of `policy`

    Returns:
        The new default pipeline
    """
    global _default_pipeline

    if policy_overrides:
        base = policy.model_dump() if policy is not None else {}
        policy = PipelinePolicy(**{**base, **policy_overrides})

    pipeline = MappingPipeline(conventions=conventions, policy=policy)
    with _lock:
        _default_pipeline = pipeline
    logger.info(f"Configured default pipeline: {pipeline!r}")
    return pipeline


def register_explicit_mapping(
    source_type: type, target_type: type, template: Mapping[str, Any]
) -> MappingPipeline:
    """Install an explicit template for a pair on the default pipeline."""
    global _default_pipeline

    with _lock:
        _default_pipeline = _default_pipeline.with_explicit_mapping(
            source_type, target_type, template
        )
        return _default_pipeline


def register_mapping(
    source_type: type, target_type: type, function: Callable[[Any], Any]
) -> MappingPipeline:
    """Register a hand-written mapping on the default pipeline."""
    return get_default_pipeline().register_mapping(source_type, target_type, function)


def map_object(
    source: Any,
    target_type: type,
    *,
    source_type: type | None = None,
    merge_with: Mapping[str, Any] | None = None,
) -> Any:
    """Map one instance with the default pipeline."""
    return get_default_pipeline().map(
        source, target_type, source_type=source_type, merge_with=merge_with
    )


def map_all(
    sources: Iterable[Any],
    target_type: type,
    *,
    source_type: type | None = None,
    lazy: bool = False,
    merge_with: Mapping[str, Any] | None = None,
) -> list[Any] | Iterator[Any]:
    """Map every element of `sources` with the default pipeline."""
    return get_default_pipeline().map_all(
        sources, target_type, source_type=source_type, lazy=lazy, merge_with=merge_with
    )


def clone(source: Any, *, merge_with: Mapping[str, Any] | None = None) -> Any:
    """Copy an instance into its own type with the default pipeline."""
    return get_default_pipeline().clone(source, merge_with=merge_with)


def reset() -> MappingPipeline:
    """Restore a fresh default pipeline (stock conventions, default policy)."""
    return configure()
