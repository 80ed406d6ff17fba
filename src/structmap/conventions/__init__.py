"""
Conventions package

Pluggable rules deciding how a source field contributes to the target.

Public helpers
--------------
default_conventions() -> tuple[BaseConvention, ...]
    Fresh instances of the stock conventions in their default order.
"""

from .base_convention import BaseConvention
from .collection_recursive import CollectionRecursiveConvention
from .explicit_override import ExplicitOverrideConvention
from .ignore_marker import IgnoreMarkerConvention
from .name_match import NameMatchConvention
from .path_flatten import PathFlattenConvention
from .recursive import RecursiveConvention

__all__ = [
    "BaseConvention",
    "CollectionRecursiveConvention",
    "ExplicitOverrideConvention",
    "IgnoreMarkerConvention",
    "NameMatchConvention",
    "PathFlattenConvention",
    "RecursiveConvention",
    "default_conventions",
]


def default_conventions() -> tuple[BaseConvention, ...]:
    """The stock convention order: ignore, copy, recurse, flatten."""
    return (
        IgnoreMarkerConvention(),
        NameMatchConvention(),
        RecursiveConvention(),
        PathFlattenConvention(),
    )
