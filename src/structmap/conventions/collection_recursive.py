from __future__ import annotations

import collections.abc
import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, get_args, get_origin

from ..core.assignability import unwrap_optional
from ..core.binding import Binding
from ..exceptions import MappingNotFoundError
from .base_convention import BaseConvention

if TYPE_CHECKING:
    from ..core.compiled import MappingFunction
    from ..core.context import ConventionContext
    from ..core.shapes import Shape, ShapeField

logger = logging.getLogger(__name__)

# Container origin -> factory used to rebuild the mapped collection.
_CONTAINERS: dict[Any, Callable[[Iterable[Any]], Any]] = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Collection: list,
    collections.abc.Iterable: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
}


class CollectionRecursiveConvention(BaseConvention):
    """
    Maps a same-named collection of composites element-wise through the
    nested mapping, e.g. ``list[Dog]`` to ``list[DogDto]``.

    Opt-in: not part of the default convention order. A None collection
    maps to None and None elements map to None.

    Set targets need hashable elements; a pair whose target element type is
    unhashable (a plain dataclass, a mutable pydantic model) is declined.
    """

    name = "collection_recursive"

    def apply(
        self,
        source_field: ShapeField,
        target_shape: Shape,
        context: ConventionContext,
    ) -> bool:
        target_field = self._free_target(target_shape, source_field.name, context)
        if target_field is None:
            return False

        source_item = _element_type(source_field.type)
        target_element = _element_type(target_field.type)
        if source_item is None or target_element is None:
            return False

        descriptor = context.descriptor
        source_type, _ = unwrap_optional(source_item[0])
        target_type, _ = unwrap_optional(target_element[0])
        if not (
            descriptor.is_composite(source_type) and descriptor.is_composite(target_type)
        ):
            return False
        if not descriptor.describe(target_type).constructible:
            return False
        if target_element[1] in (set, frozenset) and target_type.__hash__ is None:
            logger.debug(
                f"Declining '{source_field.name}': {target_type.__name__} instances "
                "are unhashable and cannot be set members"
            )
            return False

        try:
            nested = context.resolver.get_or_generate(
                source_type, target_type, context.nested_depth
            )
        except MappingNotFoundError as e:
            logger.debug(f"Declining '{source_field.name}': {e}")
            return False

        accessor = context.source.access(source_field.name)
        context.add_binding(
            Binding(
                target_field=target_field,
                value=ElementWiseMap(accessor, nested, target_element[1]),
                origin=f"map_each({accessor})",
            )
        )
        return True


class ElementWiseMap:
    """Applies a nested mapping to every element of a collection."""

    def __init__(
        self,
        accessor: Any,
        nested: MappingFunction,
        factory: Callable[[Iterable[Any]], Any],
    ) -> None:
        self._accessor = accessor
        self._factory = factory
        self.nested = nested

    def __call__(self, source: Any) -> Any:
        items = self._accessor(source)
        if items is None:
            return None
        return self._factory(self.nested(item) for item in items)


def _element_type(tp: Any) -> tuple[Any, Callable[[Iterable[Any]], Any]] | None:
    inner, _ = unwrap_optional(tp)
    origin = get_origin(inner)
    factory = _CONTAINERS.get(origin)
    args = get_args(inner)
    if factory is None or not args:
        return None
    if origin is tuple and not (len(args) == 2 and args[1] is Ellipsis):
        # Fixed-length tuples are records, not collections.
        return None
    return args[0], factory
