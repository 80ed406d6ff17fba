"""
Convention Context

Per-generation scratch space shared by every convention evaluated while one
(source shape, target shape) pair is being compiled. A context is created
fresh by the generator and discarded once the mapping is closed.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..exceptions import DuplicateBindingError
from .binding import Binding, SourceHandle

if TYPE_CHECKING:
    from .protocols import MappingResolver, TypeDescriptor
    from .shapes import Shape

logger = logging.getLogger(__name__)


@dataclass
class ConventionContext:
    """
    Context object containing everything a convention needs during one
    generation pass.

    The resolver and descriptor are handed over here so conventions never
    import the registry or generator directly.
    """

    source_shape: "Shape"
    target_shape: "Shape"
    source: SourceHandle
    resolver: "MappingResolver"
    descriptor: "TypeDescriptor"
    depth: int = 0
    bindings: list[Binding] = field(default_factory=list)
    bound_names: set[str] = field(default_factory=set)
    scratch: dict[Any, Any] = field(default_factory=dict)

    def add_binding(self, binding: Binding) -> None:
        """
        Record a binding for its target field.

        Raises:
            DuplicateBindingError: If the target field is already bound in
                this generation.
        """
        name = binding.target_name
        if name in self.bound_names:
            existing = next(b for b in self.bindings if b.target_name == name)
            raise DuplicateBindingError(name, existing.origin, binding.origin)

        self.bindings.append(binding)
        self.bound_names.add(name)
        logger.debug(
            f"[{self.source_shape.name} -> {self.target_shape.name}] "
            f"bound '{name}' <- {binding.origin}"
        )

    def try_add_binding(self, binding: Binding) -> bool:
        """
        Record a binding unless its target field is already bound.

        Returns:
            True if the binding was added, False if an earlier binding won.
        """
        if self.is_bound(binding.target_name):
            return False
        self.add_binding(binding)
        return True

    def is_bound(self, field_name: str) -> bool:
        return field_name in self.bound_names

    def scratch_get(self, key: Any, default: Any = None) -> Any:
        return self.scratch.get(key, default)

    def scratch_set(self, key: Any, value: Any) -> None:
        self.scratch[key] = value

    @property
    def nested_depth(self) -> int:
        """Depth to use when this generation requests a nested mapping."""
        return self.depth + 1
