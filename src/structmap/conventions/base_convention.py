"""Abstract base-class for all mapping conventions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..core.context import ConventionContext
    from ..core.shapes import Shape, ShapeField


class BaseConvention(ABC):
    """Interface enforced for every convention plugged into a pipeline."""

    #: Name used in settings files and logs.
    name: str = "convention"

    @abstractmethod
    def apply(
        self,
        source_field: ShapeField,
        target_shape: Shape,
        context: ConventionContext,
    ) -> bool:
        """Claim `source_field` (returning True) or decline it."""

    # --------------------------------------------------------------------- #
    # Shared helpers
    # --------------------------------------------------------------------- #

    @staticmethod
    def _free_target(
        target_shape: Shape, name: str, context: ConventionContext
    ) -> ShapeField | None:
        """The writable, still unbound target field called `name`, if any."""
        target_field = target_shape.field(name)
        if target_field is None or not target_field.writable:
            return None
        if context.is_bound(name):
            return None
        return target_field

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
