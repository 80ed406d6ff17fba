import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from ..exceptions import (
    NotConstructibleError,
    RecursionLimitExceeded,
    UnmappablePropertyError,
)
from .binding import SourceHandle
from .compiled import CompiledMapping
from .context import ConventionContext
from .policy import PipelinePolicy

if TYPE_CHECKING:
    from .protocols import Convention, MappingResolver, TypeDescriptor
    from .shapes import Shape, ShapeField

logger = logging.getLogger(__name__)


class MappingGenerator:
    """
    Builds a compiled mapping for one (source, target) pair.

    One generation pass:

    1. Creates a fresh `ConventionContext`.
    2. Runs the convention list, in order, over every readable source field
       not already bound; the first convention claiming a field wins.
    3. Calls the `activate` hook of conventions that have one, for bindings
       that do not hang off a source field.
    4. Closes the collected bindings into a null-guarded `CompiledMapping`.
    """

    def __init__(
        self,
        conventions: Sequence["Convention"],
        policy: PipelinePolicy,
        descriptor: "TypeDescriptor",
    ):
        self._logger = logger.getChild(self.__class__.__name__)
        self._conventions = tuple(conventions)
        self._policy = policy
        self._descriptor = descriptor

    @property
    def conventions(self) -> tuple["Convention", ...]:
        return self._conventions

    def generate(
        self,
        source_type: type,
        target_type: type,
        resolver: "MappingResolver",
        depth: int = 0,
    ) -> CompiledMapping:
        """
        Generate the mapping function between two shapes.

        Args:
            source_type: Type whose fields are read
            target_type: Type to construct
            resolver: Where nested mappings are requested from
            depth: Nesting level of this generation (0 for a root request)

        Raises:
            NotConstructibleError: If the target needs constructor arguments
            UnmappablePropertyError: If a field is unclaimed and the policy
                says to throw
            RecursionLimitExceeded: If the interpreter stack runs out under
                a root request. With the depth guard disabled this is how a
                self-referential pair fails, with `depth` left as None.
        """
        source_shape = self._descriptor.describe(source_type)
        target_shape = self._descriptor.describe(target_type)

        if not target_shape.constructible:
            raise NotConstructibleError(target_type, _missing_defaults(target_shape))

        context = ConventionContext(
            source_shape=source_shape,
            target_shape=target_shape,
            source=SourceHandle(source_type),
            resolver=resolver,
            descriptor=self._descriptor,
            depth=depth,
        )

        self._logger.debug(
            f"Generating {source_shape.name} -> {target_shape.name} at depth {depth}"
        )

        try:
            self._bind_fields(source_shape, target_shape, context)
        except RecursionError as e:
            # Only the root generation converts; nested ones let it unwind.
            if depth > 0:
                raise
            raise RecursionLimitExceeded(
                source_type, target_type, None, self._policy.max_recursion_depth
            ) from e

        return CompiledMapping(source_shape, target_shape, context.bindings)

    def _bind_fields(
        self, source_shape: "Shape", target_shape: "Shape", context: ConventionContext
    ) -> None:
        for source_field in source_shape.readable_fields():
            if context.is_bound(source_field.name):
                self._logger.debug(
                    f"Field '{source_field.name}' already bound, skipping"
                )
                continue

            if not self._run_conventions(source_field, target_shape, context):
                self._handle_unclaimed(source_field, source_shape, target_shape)

        # Conventions that are not field-driven get a last chance to bind.
        for convention in self._conventions:
            activate = getattr(convention, "activate", None)
            if activate is not None:
                activate(target_shape, context)

    def _run_conventions(
        self,
        source_field: "ShapeField",
        target_shape: "Shape",
        context: ConventionContext,
    ) -> bool:
        for convention in self._conventions:
            if convention.apply(source_field, target_shape, context):
                self._logger.debug(
                    f"Field '{source_field.name}' claimed by '{convention.name}'"
                )
                return True
            # A convention may decline yet bind the field as a side effect
            # (explicit templates activate on the first evaluated field).
            if context.is_bound(source_field.name):
                self._logger.debug(
                    f"Field '{source_field.name}' bound during '{convention.name}'"
                )
                return True
        return False

    def _handle_unclaimed(
        self,
        source_field: "ShapeField",
        source_shape: "Shape",
        target_shape: "Shape",
    ) -> None:
        if self._policy.throw_on_unmappable:
            raise UnmappablePropertyError(
                source_shape.type, source_field.name, target_shape.type
            )
        self._logger.debug(
            f"No convention claimed '{source_shape.name}.{source_field.name}', "
            "skipping"
        )


def _missing_defaults(shape: "Shape") -> str:
    required = [f.name for f in shape.fields if f.init and not f.has_default]
    if required:
        return f"no default for {', '.join(required)}"
    return "its constructor requires arguments"
