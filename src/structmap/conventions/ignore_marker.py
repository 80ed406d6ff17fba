from __future__ import annotations

from typing import TYPE_CHECKING

from ..core.markers import has_ignore_marker
from .base_convention import BaseConvention

if TYPE_CHECKING:
    from ..core.context import ConventionContext
    from ..core.protocols import MarkerPredicate
    from ..core.shapes import Shape, ShapeField


class IgnoreMarkerConvention(BaseConvention):
    """Claims marked source fields without binding anything."""

    name = "ignore_marker"

    def __init__(self, predicate: MarkerPredicate | None = None) -> None:
        self._predicate = predicate or has_ignore_marker

    def apply(
        self,
        source_field: ShapeField,
        target_shape: Shape,
        context: ConventionContext,
    ) -> bool:
        return self._predicate(source_field)
