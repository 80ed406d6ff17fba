"""
Shape discovery for dataclasses, pydantic models and plain annotated classes.

A `Shape` is the read-only field schema of a type. Shapes are discovered on
first use and cached for the lifetime of the descriptor, which for the
default descriptor is the lifetime of the process.
"""

import dataclasses
import datetime
import functools
import inspect
import logging
import operator
import threading
import types
import uuid
from decimal import Decimal
from enum import Enum
from typing import (
    Annotated,
    Any,
    ClassVar,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from pydantic import BaseModel

from .assignability import strip_annotated, unwrap_optional
from .markers import MARKERS_METADATA_KEY, Marker

logger = logging.getLogger(__name__)

_PRIMITIVE_BASES: tuple[type, ...] = (
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    bytearray,
    Decimal,
    datetime.date,
    datetime.time,
    datetime.timedelta,
    uuid.UUID,
    Enum,
)

# Properties declared here belong to the framework, not to user shapes.
_FRAMEWORK_BASES: frozenset[type] = frozenset(BaseModel.__mro__)


@dataclasses.dataclass(frozen=True)
class ShapeField:
    """A named, typed slot within a shape."""

    name: str
    type: Any = Any
    readable: bool = True
    writable: bool = True
    markers: frozenset[str] = frozenset()
    has_default: bool = True
    init: bool = True
    init_name: str = ""

    @property
    def constructor_name(self) -> str:
        """Keyword used when the value is passed to the constructor."""
        return self.init_name or self.name


@dataclasses.dataclass(frozen=True)
class Shape:
    """The field schema of a source or target type."""

    type: type
    kind: str
    fields: tuple[ShapeField, ...]
    constructible: bool
    _index: dict[str, ShapeField] = dataclasses.field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {f.name: f for f in self.fields})

    @property
    def name(self) -> str:
        return self.type.__name__

    def field(self, name: str) -> ShapeField | None:
        return self._index.get(name)

    def readable_fields(self) -> tuple[ShapeField, ...]:
        return tuple(f for f in self.fields if f.readable)

    def writable_fields(self) -> tuple[ShapeField, ...]:
        return tuple(f for f in self.fields if f.writable)

    def construct(self, values: dict[str, Any]) -> Any:
        """
        Build an instance from `values` keyed by field name.

        Fields settable through the constructor are passed as keywords; the
        remaining ones are assigned on the new instance. Fields missing from
        `values` keep their default.
        """
        init_kwargs: dict[str, Any] = {}
        late: dict[str, Any] = {}
        for name, value in values.items():
            shape_field = self._index.get(name)
            if shape_field is not None and shape_field.init:
                init_kwargs[shape_field.constructor_name] = value
            else:
                late[name] = value

        instance = self.type(**init_kwargs)
        for name, value in late.items():
            setattr(instance, name, value)
        return instance


class ReflectionTypeDescriptor:
    """
    TypeDescriptor backed by Python's own introspection.

    Supports dataclasses, pydantic v2 models and plain classes with
    annotations and/or properties. Field order is declaration order,
    properties come after data fields.
    """

    def __init__(self) -> None:
        self._shapes: dict[type, Shape] = {}
        self._lock = threading.Lock()
        self._logger = logger.getChild(self.__class__.__name__)

    # --- TypeDescriptor -------------------------------------------------

    def describe(self, tp: type) -> Shape:
        """Return the (cached) shape of `tp`."""
        shape = self._shapes.get(tp)
        if shape is not None:
            return shape

        shape = self._build_shape(tp)
        with self._lock:
            return self._shapes.setdefault(tp, shape)

    def fields_of(self, tp: type) -> tuple[ShapeField, ...]:
        return self.describe(tp).fields

    def is_composite(self, tp: Any) -> bool:
        """
        Check whether values of `tp` are structured objects worth mapping
        field by field (as opposed to primitives and builtin containers).
        """
        inner, _ = unwrap_optional(tp)
        if get_origin(inner) is not None or not isinstance(inner, type):
            return False
        if issubclass(inner, _PRIMITIVE_BASES) or inner.__module__ == "builtins":
            return False
        if dataclasses.is_dataclass(inner) or issubclass(inner, BaseModel):
            return True
        return bool(self.describe(inner).fields)

    def clear(self) -> None:
        with self._lock:
            self._shapes.clear()

    # --- discovery ------------------------------------------------------

    def _build_shape(self, tp: type) -> Shape:
        if not isinstance(tp, type):
            raise TypeError(f"Cannot describe {tp!r}: not a class")

        hints = self._resolve_hints(tp)

        if dataclasses.is_dataclass(tp):
            kind = "dataclass"
            fields, constructible = self._dataclass_fields(tp, hints)
        elif issubclass(tp, BaseModel):
            kind = "pydantic"
            fields, constructible = self._pydantic_fields(tp)
        else:
            kind = "class"
            fields, constructible = self._class_fields(tp, hints)

        known = {f.name for f in fields}
        fields.extend(p for p in self._property_fields(tp) if p.name not in known)

        shape = Shape(
            type=tp, kind=kind, fields=tuple(fields), constructible=constructible
        )
        self._logger.debug(
            f"Discovered {kind} shape '{tp.__qualname__}' with "
            f"{len(shape.fields)} field(s)"
        )
        return shape

    def _resolve_hints(self, tp: type) -> dict[str, Any]:
        try:
            return get_type_hints(tp, include_extras=True)
        except (NameError, TypeError) as e:
            self._logger.warning(
                f"Could not resolve annotations of '{tp.__qualname__}', "
                f"falling back to raw annotations: {e}"
            )
            raw: dict[str, Any] = {}
            for klass in reversed(tp.__mro__):
                raw.update(getattr(klass, "__annotations__", {}))
            return raw

    def _dataclass_fields(
        self, tp: type, hints: dict[str, Any]
    ) -> tuple[list[ShapeField], bool]:
        frozen = tp.__dataclass_params__.frozen  # type: ignore[attr-defined]
        fields: list[ShapeField] = []
        for dc_field in dataclasses.fields(tp):
            annotation, markers = _split_annotation(hints.get(dc_field.name, Any))
            markers |= _marker_names(dc_field.metadata.get(MARKERS_METADATA_KEY, ()))
            has_default = (
                dc_field.default is not dataclasses.MISSING
                or dc_field.default_factory is not dataclasses.MISSING
            )
            fields.append(
                ShapeField(
                    name=dc_field.name,
                    type=annotation,
                    readable=True,
                    writable=dc_field.init or not frozen,
                    markers=markers,
                    has_default=has_default,
                    init=dc_field.init,
                )
            )
        constructible = all(f.has_default for f in fields if f.init)
        return fields, constructible

    def _pydantic_fields(self, tp: type[BaseModel]) -> tuple[list[ShapeField], bool]:
        fields: list[ShapeField] = []
        for name, info in tp.model_fields.items():
            markers = frozenset(m.name for m in info.metadata if isinstance(m, Marker))
            annotation, extra = _split_annotation(info.annotation)
            fields.append(
                ShapeField(
                    name=name,
                    type=annotation,
                    readable=True,
                    writable=True,
                    markers=markers | extra,
                    has_default=not info.is_required(),
                    init=True,
                    init_name=info.alias or "",
                )
            )
        constructible = all(f.has_default for f in fields)
        return fields, constructible

    def _class_fields(
        self, tp: type, hints: dict[str, Any]
    ) -> tuple[list[ShapeField], bool]:
        try:
            parameters = inspect.signature(tp).parameters
        except (TypeError, ValueError):
            parameters = None

        keyword_kinds = (
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
            inspect.Parameter.KEYWORD_ONLY,
        )
        if parameters is None:
            constructible = False
            init_names: set[str] = set()
        else:
            constructible = all(
                p.default is not inspect.Parameter.empty
                or p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
                for p in parameters.values()
            )
            init_names = {n for n, p in parameters.items() if p.kind in keyword_kinds}

        fields: list[ShapeField] = []
        for name, hint in hints.items():
            if name.startswith("_") or get_origin(strip_annotated(hint)) is ClassVar:
                continue
            annotation, markers = _split_annotation(hint)
            fields.append(
                ShapeField(
                    name=name,
                    type=annotation,
                    readable=True,
                    writable=True,
                    markers=markers,
                    has_default=hasattr(tp, name) or name in init_names,
                    init=name in init_names,
                )
            )
        return fields, constructible

    def _property_fields(self, tp: type) -> list[ShapeField]:
        found: dict[str, property] = {}
        for klass in reversed(tp.__mro__):
            if klass in _FRAMEWORK_BASES:
                continue
            for name, member in vars(klass).items():
                if isinstance(member, property) and not name.startswith("_"):
                    found[name] = member

        fields: list[ShapeField] = []
        for name, prop in found.items():
            annotation: Any = Any
            if prop.fget is not None:
                try:
                    annotation = get_type_hints(prop.fget, include_extras=True).get(
                        "return", Any
                    )
                except (NameError, TypeError):
                    annotation = Any
            annotation, markers = _split_annotation(annotation)
            fields.append(
                ShapeField(
                    name=name,
                    type=annotation,
                    readable=prop.fget is not None,
                    writable=prop.fset is not None,
                    markers=markers,
                    has_default=True,
                    init=False,
                )
            )
        return fields


def _split_annotation(annotation: Any) -> tuple[Any, frozenset[str]]:
    """Separate ``Annotated`` marker metadata from the declared type."""
    markers = set(_annotated_markers(annotation))
    bare = strip_annotated(annotation)
    origin = get_origin(bare)
    if origin is Union or origin is types.UnionType:
        # Optional[Annotated[X, ...]] keeps its markers on the member
        members = get_args(bare)
        for member in members:
            markers.update(_annotated_markers(member))
        if any(get_origin(m) is Annotated for m in members):
            bare = functools.reduce(
                operator.or_, (strip_annotated(m) for m in members)
            )
    return bare, frozenset(markers)


def _annotated_markers(tp: Any) -> list[str]:
    found: list[str] = []
    while get_origin(tp) is Annotated:
        found.extend(m.name for m in tp.__metadata__ if isinstance(m, Marker))
        tp = get_args(tp)[0]
    return found


def _marker_names(value: Any) -> frozenset[str]:
    if isinstance(value, str):
        return frozenset({value})
    if isinstance(value, Marker):
        return frozenset({value.name})
    return frozenset(m.name if isinstance(m, Marker) else str(m) for m in value)


_default_descriptor = ReflectionTypeDescriptor()


def get_default_descriptor() -> ReflectionTypeDescriptor:
    """Get the process-wide descriptor shared by default pipelines."""
    return _default_descriptor
