"""Immutable mapping pipelines: conventions + policy + their own cache."""

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from ..conventions import ExplicitOverrideConvention, default_conventions
from ..exceptions import MappingGenerationError
from .compiled import MappingFunction
from .generator import MappingGenerator
from .policy import PipelinePolicy
from .registry import MappingRegistry
from .shapes import get_default_descriptor

if TYPE_CHECKING:
    from .protocols import Convention, TypeDescriptor

logger = logging.getLogger(__name__)


class MappingPipeline:
    """
    One logical mapping configuration.

    The convention order and the policy are fixed at construction; methods
    that change them return a new pipeline with an empty cache instead of
    mutating this one, so a pipeline can be shared between threads freely.
    Hand-registered mappings are carried over to derived pipelines.
    """

    def __init__(
        self,
        conventions: Iterable["Convention"] | None = None,
        policy: PipelinePolicy | None = None,
        descriptor: "TypeDescriptor | None" = None,
    ):
        """
        Initialize the pipeline.

        Args:
            conventions: Conventions in evaluation order; the stock order
                when omitted
            policy: Policy flags; defaults when omitted
            descriptor: Shape discovery service; the process-wide
                reflection descriptor when omitted
        """
        self._logger = logger.getChild(self.__class__.__name__)
        self._conventions: tuple["Convention", ...] = (
            tuple(conventions) if conventions is not None else default_conventions()
        )
        self._policy = policy or PipelinePolicy()
        self._descriptor = descriptor or get_default_descriptor()
        self._registry = MappingRegistry(
            MappingGenerator(self._conventions, self._policy, self._descriptor),
            self._policy,
        )

    # --- configuration --------------------------------------------------

    @property
    def conventions(self) -> tuple["Convention", ...]:
        return self._conventions

    @property
    def policy(self) -> PipelinePolicy:
        return self._policy

    @property
    def descriptor(self) -> "TypeDescriptor":
        return self._descriptor

    @property
    def registry(self) -> MappingRegistry:
        return self._registry

    def with_conventions(self, conventions: Sequence["Convention"]) -> "MappingPipeline":
        """Return a copy of this pipeline using `conventions` instead."""
        return self._derive(conventions=tuple(conventions))

    def with_policy(self, **changes: Any) -> "MappingPipeline":
        """
        Return a copy of this pipeline with some policy flags changed.

        Raises:
            pydantic.ValidationError: If a flag is unknown or mistyped
        """
        policy = PipelinePolicy(**{**self._policy.model_dump(), **changes})
        return self._derive(policy=policy)

    def with_explicit_mapping(
        self,
        source_type: type,
        target_type: type,
        template: Mapping[str, Any],
    ) -> "MappingPipeline":
        """
        Return a copy of this pipeline where generations of the given pair
        merge `template` before any other convention binds.

        Args:
            source_type: Source type of the pair
            target_type: Target type of the pair
            template: Target field name -> thunk of the source, or constant
        """
        override = ExplicitOverrideConvention(source_type, target_type, template)
        self._logger.info(
            f"Installing explicit mapping {source_type.__name__} -> "
            f"{target_type.__name__} for fields {sorted(override.template)}"
        )
        return self._derive(conventions=(override, *self._conventions))

    register_explicit_mapping = with_explicit_mapping

    def register_mapping(
        self,
        source_type: type,
        target_type: type,
        function: Callable[[Any], Any],
    ) -> "MappingPipeline":
        """
        Register a hand-written mapping for a pair in this pipeline's cache.

        Returns:
            Self for method chaining
        """
        self._registry.register(source_type, target_type, function)
        return self

    def reset(self) -> "MappingPipeline":
        """
        Drop every cached and registered mapping.

        Returns:
            Self for method chaining
        """
        self._registry.reset()
        return self

    # --- mapping surface ------------------------------------------------

    def get_mapping(self, source_type: type, target_type: type) -> MappingFunction:
        """Return the (cached) mapping function between two types."""
        return self._registry.get_or_generate(source_type, target_type)

    def map(
        self,
        source: Any,
        target_type: type,
        *,
        source_type: type | None = None,
        merge_with: Mapping[str, Any] | None = None,
    ) -> Any:
        """
        Map one instance to `target_type`.

        Args:
            source: The value to map; None maps to None
            target_type: The type to produce
            source_type: Shape to read `source` as; ``type(source)`` when omitted
            merge_with: One-off template (target field -> thunk or constant)
                merged ahead of every convention. The mapping it produces is
                generated for this call only and never cached; nested pairs
                still come from the cache.

        Returns:
            A new `target_type` instance, or None
        """
        if source is None:
            return None
        source_type = source_type or type(source)
        if merge_with is not None:
            mapping = self._merged_mapping(source_type, target_type, merge_with)
        else:
            mapping = self.get_mapping(source_type, target_type)
        return mapping(source)

    def map_all(
        self,
        sources: Iterable[Any],
        target_type: type,
        *,
        source_type: type | None = None,
        lazy: bool = False,
        merge_with: Mapping[str, Any] | None = None,
    ) -> list[Any] | Iterator[Any]:
        """
        Map every element of `sources` to `target_type`.

        With `merge_with`, the merged mapping is generated once per source
        type for the duration of the call.

        Returns:
            A list, or a lazy iterator when `lazy` is set
        """
        if merge_with is None:
            mapped = (
                self.map(item, target_type, source_type=source_type)
                for item in sources
            )
        else:
            mapped = self._map_merged(sources, target_type, source_type, merge_with)
        if lazy:
            return mapped
        return list(mapped)

    def clone(self, source: Any, *, merge_with: Mapping[str, Any] | None = None) -> Any:
        """
        Copy `source` into a new instance of its own type.

        Same as ``map(source, type(source))``, so the copy is shallow: lists,
        dicts and sets are copied while other values, nested composites
        included, are shared with `source`.
        """
        if source is None:
            return None
        return self.map(source, type(source), merge_with=merge_with)

    def _map_merged(
        self,
        sources: Iterable[Any],
        target_type: type,
        source_type: type | None,
        merge_with: Mapping[str, Any],
    ) -> Iterator[Any]:
        merged: dict[type, MappingFunction] = {}
        for item in sources:
            if item is None:
                yield None
                continue
            item_type = source_type or type(item)
            mapping = merged.get(item_type)
            if mapping is None:
                mapping = self._merged_mapping(item_type, target_type, merge_with)
                merged[item_type] = mapping
            yield mapping(item)

    def _merged_mapping(
        self, source_type: type, target_type: type, merge_with: Mapping[str, Any]
    ) -> MappingFunction:
        override = ExplicitOverrideConvention(source_type, target_type, merge_with)
        generator = MappingGenerator(
            (override, *self._conventions), self._policy, self._descriptor
        )
        self._logger.debug(
            f"Generating uncached {source_type.__name__} -> {target_type.__name__} "
            f"merging {sorted(override.template)}"
        )
        try:
            return generator.generate(source_type, target_type, self._registry)
        except MappingGenerationError as e:
            self._logger.error(
                f"Merged generation of {source_type.__name__} -> "
                f"{target_type.__name__} failed: {e}"
            )
            raise

    # --- introspection --------------------------------------------------

    def get_pipeline_info(self) -> dict[str, Any]:
        """
        Get information about the current pipeline configuration.

        Returns:
            Dictionary with the convention order, policy and cached pairs
        """
        return {
            "pipeline_class": self.__class__.__name__,
            "conventions": [repr(c) for c in self._conventions],
            "policy": self._policy.model_dump(),
            "cached_pairs": [
                f"{source.__name__} -> {target.__name__}"
                for source, target in self._registry.pairs()
            ],
        }

    def _derive(
        self,
        conventions: tuple["Convention", ...] | None = None,
        policy: PipelinePolicy | None = None,
    ) -> "MappingPipeline":
        derived = MappingPipeline(
            conventions=self._conventions if conventions is None else conventions,
            policy=policy or self._policy,
            descriptor=self._descriptor,
        )
        for mapping in self._registry.registered_items():
            derived.registry.register(
                mapping.source_type, mapping.target_type, mapping.function
            )
        return derived

    def __repr__(self) -> str:
        names = ", ".join(getattr(c, "name", repr(c)) for c in self._conventions)
        return f"MappingPipeline([{names}], {self._policy!r})"
