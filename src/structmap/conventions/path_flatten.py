from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.assignability import is_assignable, unwrap_optional
from ..core.binding import Binding
from .base_convention import BaseConvention

if TYPE_CHECKING:
    from ..core.context import ConventionContext
    from ..core.shapes import Shape, ShapeField


class PathFlattenConvention(BaseConvention):
    """
    Binds target fields named ``<source field><nested field>`` to the
    two-hop path ``source.<source field>.<nested field>``.

    ``dog`` + ``name`` matches ``DogName``, ``dog_name`` and ``dogName``.
    Only one level of nesting is resolved. Every matching target field is
    bound, not just the first.
    """

    name = "path_flatten"

    def apply(
        self,
        source_field: ShapeField,
        target_shape: Shape,
        context: ConventionContext,
    ) -> bool:
        descriptor = context.descriptor
        if not descriptor.is_composite(source_field.type):
            return False

        nested_type, _ = unwrap_optional(source_field.type)
        nested_shape = descriptor.describe(nested_type)
        prefix = source_field.name.lower()

        claimed = False
        for target_field in target_shape.writable_fields():
            target_name = target_field.name
            if len(target_name) <= len(prefix):
                continue
            if not target_name.lower().startswith(prefix):
                continue
            if context.is_bound(target_name):
                continue

            nested_field = _resolve_suffix(nested_shape, target_name[len(prefix):])
            if nested_field is None or not nested_field.readable:
                continue
            if not is_assignable(target_field.type, nested_field.type):
                continue

            accessor = context.source.access(source_field.name, nested_field.name)
            context.add_binding(
                Binding(target_field=target_field, value=accessor, origin=str(accessor))
            )
            claimed = True

        return claimed


def _resolve_suffix(nested_shape: Shape, suffix: str) -> ShapeField | None:
    stripped = suffix.lstrip("_")
    for candidate in (suffix, stripped, stripped[:1].lower() + stripped[1:]):
        if candidate:
            nested_field = nested_shape.field(candidate)
            if nested_field is not None:
                return nested_field
    return None
