"""
exceptions.py

Custom, typed exception hierarchy used across the mapping engine
"""

from __future__ import annotations

from typing import Any

# --------------------------------------------------------------------------- #
#                              Base hierarchy                                 #
# --------------------------------------------------------------------------- #


class StructMapError(Exception):
    """
    Root of all errors raised by this project.
    """


class ConfigurationError(StructMapError):
    """
    Raised when a pipeline cannot be configured.

    Examples
    --------
    * Settings file does not exist / bad extension
    * YAML or JSON syntax error, or a root that is not a mapping
    * Unknown convention name
    * Explicit template naming a field the target shape cannot receive
    """


# --------------------------------------------------------------------------- #
#                           Generation-time errors                            #
# --------------------------------------------------------------------------- #


class MappingGenerationError(StructMapError):
    """
    Raised while building a compiled mapping for a (source, target) pair.

    Generation is deterministic: retrying without changing the pipeline or
    the shapes fails the same way.
    """


class UnmappablePropertyError(MappingGenerationError):
    """A source field matched no convention while `throw_on_unmappable` is set."""

    def __init__(self, source_type: type, field_name: str, target_type: type):
        self.source_type = source_type
        self.field_name = field_name
        self.target_type = target_type
        super().__init__(
            f"The field '{field_name}' on {source_type.__name__} cannot be mapped "
            f"to {target_type.__name__}: no convention claimed it. To suppress "
            "this error, set 'throw_on_unmappable' to false."
        )


class RecursionLimitExceeded(MappingGenerationError):
    """
    Nested mapping generation went deeper than `max_recursion_depth`.

    Usually signals a self-referential or mutually-referential shape graph.
    `depth` is None when the interpreter's own recursion limit stopped the
    generation first (typically with the guard disabled).
    """

    def __init__(
        self, source_type: type, target_type: type, depth: int | None, limit: int
    ):
        self.source_type = source_type
        self.target_type = target_type
        self.depth = depth
        self.limit = limit
        if depth is None:
            reached = f"exhausted the interpreter stack (limit {limit})"
        else:
            reached = f"reached depth {depth} (limit {limit})"
        super().__init__(
            f"The mapping between {source_type.__name__} and {target_type.__name__} "
            f"{reached}; the shapes seem to cause an infinite recursion of mappings."
        )


class NotConstructibleError(MappingGenerationError):
    """The target shape cannot be built without constructor arguments."""

    def __init__(self, target_type: type, reason: str = ""):
        self.target_type = target_type
        message = f"{target_type.__name__} is not default-constructible"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DuplicateBindingError(MappingGenerationError):
    """
    Two bindings targeted the same field within one generation.

    This is a programming error in a convention, not a recoverable condition.
    """

    def __init__(self, field_name: str, existing_origin: str, new_origin: str):
        self.field_name = field_name
        self.existing_origin = existing_origin
        self.new_origin = new_origin
        super().__init__(
            f"Target field '{field_name}' is already bound to '{existing_origin}'; "
            f"refusing to rebind it to '{new_origin}'."
        )


class MappingNotFoundError(MappingGenerationError):
    """No mapping is cached for a pair and on-demand generation is disabled."""

    def __init__(self, source_type: type, target_type: type):
        self.source_type = source_type
        self.target_type = target_type
        super().__init__(
            f"No mapping was registered between {source_type.__name__} and "
            f"{target_type.__name__}. Register one with 'register_mapping' or "
            "enable 'generate_if_not_found'."
        )


# --------------------------------------------------------------------------- #
#                            Execution-time errors                            #
# --------------------------------------------------------------------------- #


class MappingExecutionError(StructMapError):
    """
    Raised when a compiled mapping fails while running against an instance.

    This typically wraps:
        * An attribute access failing on the source instance
        * A template thunk raising
        * The target constructor rejecting the values (e.g. pydantic validation)
    """

    def __init__(self, target_type: type, message: str, cause: Any = None):
        self.target_type = target_type
        self.cause = cause
        super().__init__(f"Mapping to {target_type.__name__} failed: {message}")
