from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from ..core.assignability import is_assignable
from ..core.binding import Binding
from .base_convention import BaseConvention

if TYPE_CHECKING:
    from ..core.context import ConventionContext
    from ..core.shapes import Shape, ShapeField

# Copied on assignment so the target never aliases a source container.
_MUTABLE_CONTAINERS = (list, dict, set, bytearray)


class NameMatchConvention(BaseConvention):
    """
    Copies a source field into the same-named target field when the target's
    declared type accepts the source's.
    """

    name = "name_match"

    def apply(
        self,
        source_field: ShapeField,
        target_shape: Shape,
        context: ConventionContext,
    ) -> bool:
        target_field = self._free_target(target_shape, source_field.name, context)
        if target_field is None:
            return False
        if not is_assignable(target_field.type, source_field.type):
            return False

        accessor = context.source.access(source_field.name)
        context.add_binding(
            Binding(
                target_field=target_field,
                value=_CopyingAccessor(accessor),
                origin=str(accessor),
            )
        )
        return True


class _CopyingAccessor:
    def __init__(self, accessor: Any) -> None:
        self._accessor = accessor

    def __call__(self, source: Any) -> Any:
        value = self._accessor(source)
        if isinstance(value, _MUTABLE_CONTAINERS):
            return copy.copy(value)
        return value
