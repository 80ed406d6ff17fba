"""Field markers attached through ``typing.Annotated`` or dataclass metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .shapes import ShapeField

IGNORE_MAP = "ignore_map"

# Key read from ``dataclasses.field(metadata=...)``.
MARKERS_METADATA_KEY = "markers"


@dataclass(frozen=True)
class Marker:
    """
    A named tag on a field.

    Usage::

        @dataclass
        class User:
            password: Annotated[str, Marker("ignore_map")] = ""
    """

    name: str


class IgnoreMap(Marker):
    """Excludes the annotated source field from every generated mapping."""

    def __init__(self) -> None:
        super().__init__(IGNORE_MAP)


def has_ignore_marker(field: "ShapeField") -> bool:
    """Default marker predicate used by the ignore-marker convention."""
    return IGNORE_MAP in field.markers
