"""Small, pure helpers deciding whether a declared type accepts another."""

from __future__ import annotations

import types
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin

NoneType = type(None)

# float accepts int, complex accepts int and float (PEP 484 numeric tower).
_NUMERIC_PROMOTIONS: dict[type, tuple[type, ...]] = {
    float: (int,),
    complex: (int, float),
}


def strip_annotated(tp: Any) -> Any:
    """Return the bare type behind an ``Annotated[...]`` wrapper."""
    while get_origin(tp) is Annotated:
        tp = get_args(tp)[0]
    return tp


def union_members(tp: Any) -> tuple[Any, ...]:
    """Return the members of a union (``X | Y`` or ``Union[X, Y]``), or ``(tp,)``."""
    tp = strip_annotated(tp)
    origin = get_origin(tp)
    if origin is Union or origin is types.UnionType:
        return tuple(strip_annotated(arg) for arg in get_args(tp))
    return (tp,)


def unwrap_optional(tp: Any) -> tuple[Any, bool]:
    """
    Drop ``None`` from an optional annotation.

    Returns:
        ``(inner, was_optional)``; ``inner`` is only unwrapped when exactly
        one non-``None`` member remains.
    """
    members = union_members(tp)
    non_none = tuple(m for m in members if m is not NoneType)
    was_optional = len(non_none) != len(members)
    if len(non_none) == 1:
        return non_none[0], was_optional
    return strip_annotated(tp), was_optional


def is_assignable(target_tp: Any, source_tp: Any) -> bool:
    """
    Check whether a value declared as ``source_tp`` may be stored in a field
    declared as ``target_tp``.

    Nullability is not enforced: ``None`` members of the source are ignored.
    """
    target_members = union_members(target_tp)
    source_members = [m for m in union_members(source_tp) if m is not NoneType]
    if not source_members:
        # A field that can only hold None fits anywhere.
        return True
    return all(
        any(_is_single_assignable(t, s) for t in target_members)
        for s in source_members
    )


def _is_single_assignable(target: Any, source: Any) -> bool:
    if target is Any or target is object or isinstance(source, TypeVar):
        return True
    if source is Any or isinstance(target, TypeVar):
        return True
    if target == source:
        return True

    target_origin = get_origin(target) or target
    source_origin = get_origin(source) or source
    if not (isinstance(target_origin, type) and isinstance(source_origin, type)):
        return False

    if not _is_subclass(source_origin, target_origin):
        return False

    target_args = get_args(target)
    source_args = get_args(source)
    if not target_args or not source_args:
        return True
    return _args_assignable(target_args, source_args)


def _is_subclass(source: type, target: type) -> bool:
    if source in _NUMERIC_PROMOTIONS.get(target, ()):
        return True
    try:
        return issubclass(source, target)
    except TypeError:
        return False


def _args_assignable(target_args: tuple[Any, ...], source_args: tuple[Any, ...]) -> bool:
    # tuple[X, ...] against a fixed-length tuple compares every element with X
    if len(target_args) == 2 and target_args[1] is Ellipsis:
        element = target_args[0]
        candidates = source_args[:1] if source_args[-1:] == (Ellipsis,) else source_args
        return all(is_assignable(element, s) for s in candidates)
    if len(target_args) != len(source_args):
        return False
    return all(
        t is Ellipsis and s is Ellipsis or is_assignable(t, s)
        for t, s in zip(target_args, source_args)
    )
