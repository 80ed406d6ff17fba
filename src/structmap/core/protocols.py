from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from .compiled import MappingFunction
    from .context import ConventionContext
    from .shapes import Shape, ShapeField


class TypeDescriptor(Protocol):
    """Defines the contract for enumerating the fields of a shape."""

    def describe(self, tp: type) -> "Shape":
        """
        Returns the shape of a type.

        The result is deterministic and stable across calls. A type with no
        accessible fields yields a shape with an empty field tuple.
        """
        ...

    def fields_of(self, tp: type) -> tuple["ShapeField", ...]:
        """Returns the fields of a type in declaration order."""
        ...

    def is_composite(self, tp: Any) -> bool:
        """
        Checks whether a declared type is a structured, field-bearing type
        (as opposed to a primitive, a string or a builtin container).
        """
        ...


class Convention(Protocol):
    """
    Defines the contract for a single mapping rule.

    A convention may also define `activate(target_shape, context)`; the
    generator calls it once after the field pass.
    """

    name: str

    def apply(
        self,
        source_field: "ShapeField",
        target_shape: "Shape",
        context: "ConventionContext",
    ) -> bool:
        """
        Inspect one source field against the target shape.

        Args:
            source_field: The readable source field under evaluation
            target_shape: The shape being produced by this generation
            context: Per-generation scratch space receiving the bindings

        Returns:
            True if the field is claimed (with zero or more bindings added
            to the context), False to let the next convention try.
        """
        ...


class MappingResolver(Protocol):
    """Defines the contract for obtaining nested compiled mappings."""

    def get_or_generate(
        self, source_type: type, target_type: type, depth: int = 0
    ) -> "MappingFunction":
        """
        Return the cached mapping for a pair, generating it when missing.

        Args:
            source_type: The nested source type
            target_type: The nested target type
            depth: Nesting level of the request (0 for a root request)
        """
        ...


MarkerPredicate = Callable[["ShapeField"], bool]
