from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..exceptions import MappingNotFoundError
from ..core.assignability import unwrap_optional
from ..core.binding import Binding
from .base_convention import BaseConvention

if TYPE_CHECKING:
    from ..core.compiled import MappingFunction
    from ..core.context import ConventionContext
    from ..core.shapes import Shape, ShapeField

logger = logging.getLogger(__name__)


class RecursiveConvention(BaseConvention):
    """
    Maps a composite source field onto the same-named composite target field
    through a nested mapping obtained from the registry.

    The binding is null-propagating: a None source value yields None.
    """

    name = "recursive"

    def apply(
        self,
        source_field: ShapeField,
        target_shape: Shape,
        context: ConventionContext,
    ) -> bool:
        target_field = self._free_target(target_shape, source_field.name, context)
        if target_field is None:
            return False

        descriptor = context.descriptor
        if not (
            descriptor.is_composite(source_field.type)
            and descriptor.is_composite(target_field.type)
        ):
            return False

        source_type, _ = unwrap_optional(source_field.type)
        target_type, _ = unwrap_optional(target_field.type)
        if not descriptor.describe(target_type).constructible:
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
                value=NullPropagatingMap(accessor, nested),
                origin=f"map({accessor})",
            )
        )
        return True


class NullPropagatingMap:
    """``value is None ? None : nested(value)`` over an accessor."""

    def __init__(self, accessor: Any, nested: MappingFunction) -> None:
        self._accessor = accessor
        self.nested = nested

    def __call__(self, source: Any) -> Any:
        value = self._accessor(source)
        if value is None:
            return None
        return self.nested(value)
