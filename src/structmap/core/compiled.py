"""Executable mapping functions produced by generation or registration."""

from collections.abc import Callable
from typing import Any

from ..exceptions import MappingExecutionError, StructMapError
from .binding import Binding
from .shapes import Shape


class CompiledMapping:
    """
    A generated mapping function.

    Contract: ``f(None) is None``; otherwise a new target instance is built
    from the bindings evaluated against the source. Unbound target fields
    keep their default value.
    """

    def __init__(
        self, source_shape: Shape, target_shape: Shape, bindings: list[Binding]
    ):
        self._source_shape = source_shape
        self._target_shape = target_shape
        self._bindings = tuple(bindings)

    @property
    def source_type(self) -> type:
        return self._source_shape.type

    @property
    def target_type(self) -> type:
        return self._target_shape.type

    @property
    def source_shape(self) -> Shape:
        return self._source_shape

    @property
    def target_shape(self) -> Shape:
        return self._target_shape

    @property
    def bindings(self) -> tuple[Binding, ...]:
        return self._bindings

    def __call__(self, source: Any) -> Any:
        if source is None:
            return None

        values: dict[str, Any] = {}
        for binding in self._bindings:
            try:
                values[binding.target_name] = binding.evaluate(source)
            except StructMapError:
                raise
            except Exception as e:
                raise MappingExecutionError(
                    self.target_type,
                    f"binding '{binding.target_name}' <- {binding.origin} "
                    f"raised {e!r}",
                    e,
                ) from e

        try:
            return self._target_shape.construct(values)
        except Exception as e:
            raise MappingExecutionError(
                self.target_type, f"constructor rejected the values: {e}", e
            ) from e

    def describe(self) -> list[tuple[str, str]]:
        """Return ``(target_field, origin)`` pairs in binding order."""
        return [(b.target_name, b.origin) for b in self._bindings]

    def __repr__(self) -> str:
        return (
            f"<CompiledMapping {self._source_shape.name} -> "
            f"{self._target_shape.name} ({len(self._bindings)} bindings)>"
        )


class RegisteredMapping:
    """A hand-written mapping function registered for a pair, null-guarded."""

    def __init__(
        self, source_type: type, target_type: type, function: Callable[[Any], Any]
    ):
        self._source_type = source_type
        self._target_type = target_type
        self._function = function

    @property
    def source_type(self) -> type:
        return self._source_type

    @property
    def target_type(self) -> type:
        return self._target_type

    @property
    def function(self) -> Callable[[Any], Any]:
        return self._function

    def __call__(self, source: Any) -> Any:
        if source is None:
            return None
        return self._function(source)

    def describe(self) -> list[tuple[str, str]]:
        name = getattr(self._function, "__qualname__", repr(self._function))
        return [("*", f"{name}(...)")]

    def __repr__(self) -> str:
        return (
            f"<RegisteredMapping {self._source_type.__name__} -> "
            f"{self._target_type.__name__}>"
        )


MappingFunction = CompiledMapping | RegisteredMapping
