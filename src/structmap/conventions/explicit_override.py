from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ..core.binding import Binding, Constant
from ..exceptions import ConfigurationError
from .base_convention import BaseConvention

if TYPE_CHECKING:
    from ..core.context import ConventionContext
    from ..core.shapes import Shape, ShapeField

logger = logging.getLogger(__name__)


class ExplicitOverrideConvention(BaseConvention):
    """
    Merges a caller-supplied template of bindings into generations of one
    (source, target) pair.

    The template maps target field names to values: a callable is a thunk
    receiving the source instance, anything else is a constant. Usage::

        ExplicitOverrideConvention(
            Order, OrderDto, {"count": 99, "label": lambda o: o.name.upper()}
        )

    The template is merged once per generation, on the first field the
    convention sees (or after the field pass when no field reached it), and
    never overwrites a field bound earlier in that generation. The convention
    itself never claims a field. Constants are copied on every call, so a
    mutable template value is never shared between targets.
    """

    name = "explicit_override"

    _SCRATCH_PREFIX = "explicit-override"

    def __init__(
        self,
        source_type: type,
        target_type: type,
        template: Mapping[str, Any],
    ) -> None:
        self._id = uuid.uuid4()
        self._logger = logger.getChild(self.__class__.__name__)
        self.source_type = source_type
        self.target_type = target_type
        self.template = dict(template)

    @property
    def scratch_key(self) -> tuple[str, uuid.UUID]:
        return (self._SCRATCH_PREFIX, self._id)

    def applies_to(self, source_type: type, target_type: type) -> bool:
        return source_type is self.source_type and target_type is self.target_type

    def apply(
        self,
        source_field: ShapeField,
        target_shape: Shape,
        context: ConventionContext,
    ) -> bool:
        if not self.applies_to(context.source_shape.type, target_shape.type):
            return False

        activations = context.scratch_get(self.scratch_key, 0)
        if activations == 0:
            self._add_bindings(target_shape, context)
        context.scratch_set(self.scratch_key, activations + 1)
        return False

    def activate(self, target_shape: Shape, context: ConventionContext) -> None:
        """
        Merge the template if no field evaluation did so.

        Called by the generator once the field pass is over, so a source
        shape without readable fields still receives the template.
        """
        if not self.applies_to(context.source_shape.type, target_shape.type):
            return
        if context.scratch_get(self.scratch_key, 0) == 0:
            self._add_bindings(target_shape, context)
            context.scratch_set(self.scratch_key, 1)

    def _add_bindings(self, target_shape: Shape, context: ConventionContext) -> None:
        for field_name, template_value in self.template.items():
            target_field = self._template_target(target_shape, field_name)

            if callable(template_value):
                value: Any = context.source.bind(template_value)
            else:
                value = Constant(template_value)

            binding = Binding(
                target_field=target_field, value=value, origin=f"explicit {value}"
            )
            if not context.try_add_binding(binding):
                self._logger.debug(
                    f"'{field_name}' already bound on {target_shape.name}, "
                    "keeping the earlier binding"
                )

    def _template_target(self, target_shape: Shape, field_name: str) -> ShapeField:
        target_field = target_shape.field(field_name)
        if target_field is None:
            raise ConfigurationError(
                f"Explicit mapping {self.source_type.__name__} -> "
                f"{self.target_type.__name__} names unknown field '{field_name}'"
            )
        if not target_field.writable:
            raise ConfigurationError(
                f"Explicit mapping {self.source_type.__name__} -> "
                f"{self.target_type.__name__} cannot assign read-only "
                f"field '{field_name}'"
            )
        return target_field

    def __repr__(self) -> str:
        return (
            f"ExplicitOverrideConvention({self.source_type.__name__} -> "
            f"{self.target_type.__name__}, fields={sorted(self.template)})"
        )
