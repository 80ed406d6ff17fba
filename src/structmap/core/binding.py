"""Deferred value computations bound to target fields."""

import copy
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .shapes import ShapeField

Thunk = Callable[[Any], Any]


@dataclass(frozen=True)
class Binding:
    """
    The rule computing one target field from a source instance.

    `origin` is a readable rendition of the computation (for example
    ``d.owner.name``), used by `CompiledMapping.describe()` and in logs.
    """

    target_field: ShapeField
    value: Thunk
    origin: str

    @property
    def target_name(self) -> str:
        return self.target_field.name

    def evaluate(self, source: Any) -> Any:
        return self.value(source)


@dataclass(frozen=True)
class Accessor:
    """Reads an attribute path, yielding None as soon as a hop is None."""

    parameter: str
    path: tuple[str, ...]

    def __call__(self, source: Any) -> Any:
        value = source
        for name in self.path:
            if value is None:
                return None
            value = getattr(value, name)
        return value

    def __str__(self) -> str:
        return ".".join((self.parameter, *self.path))


@dataclass(frozen=True)
class BoundThunk:
    """A caller-supplied thunk rebound to a generation's source parameter."""

    parameter: str
    function: Thunk
    label: str

    def __call__(self, source: Any) -> Any:
        return self.function(source)

    def __str__(self) -> str:
        return f"{self.label}({self.parameter})"


@dataclass(frozen=True)
class Constant:
    """
    A template value that does not depend on the source.

    Each call returns a fresh deep copy, so targets never share a mutable
    template value.
    """

    value: Any

    def __call__(self, source: Any) -> Any:
        return copy.deepcopy(self.value)

    def __str__(self) -> str:
        return repr(self.value)


class SourceHandle:
    """
    Stands for "the source value being mapped" within one generation.

    Conventions never see a concrete source instance while generating; they
    build accessors through the handle, which are evaluated later against
    whatever instance the compiled mapping receives.
    """

    def __init__(self, source_type: type):
        self.source_type = source_type
        self.parameter = source_type.__name__[:1].lower() or "s"

    def access(self, *path: str) -> Accessor:
        return Accessor(self.parameter, tuple(path))

    def bind(self, function: Thunk, label: str | None = None) -> BoundThunk:
        label = label or getattr(function, "__name__", "thunk")
        return BoundThunk(self.parameter, function, label)

    def __repr__(self) -> str:
        return f"SourceHandle({self.source_type.__name__} as '{self.parameter}')"
