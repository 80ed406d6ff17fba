"""Unit tests for PipelinePolicy."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from structmap.core.policy import PipelinePolicy


def test_defaults() -> None:
    policy = PipelinePolicy()
    assert policy.generate_if_not_found is True
    assert policy.throw_on_unmappable is False
    assert policy.max_recursion_depth == 50
    assert policy.recursion_guard_enabled is True


def test_policy_is_frozen() -> None:
    policy = PipelinePolicy()
    with pytest.raises(ValidationError):
        policy.max_recursion_depth = 3  # type: ignore[misc]


def test_unknown_flag_is_rejected() -> None:
    with pytest.raises(ValidationError):
        PipelinePolicy(throw_on_unmapped=True)  # type: ignore[call-arg]


@pytest.mark.parametrize(
    "changes",
    [
        {"max_recursion_depth": "10"},
        {"generate_if_not_found": "yes"},
        {"throw_on_unmappable": 1},
    ],
)
def test_values_are_not_coerced(changes: dict) -> None:
    with pytest.raises(ValidationError):
        PipelinePolicy(**changes)


@pytest.mark.parametrize(
    ("limit", "depth", "exceeds"),
    [
        (50, 50, False),
        (50, 51, True),
        (2, 3, True),
        (2, 2, False),
        (1, 1000, False),
        (0, 1000, False),
    ],
)
def test_exceeds_depth(limit: int, depth: int, exceeds: bool) -> None:
    policy = PipelinePolicy(max_recursion_depth=limit)
    assert policy.exceeds_depth(depth) is exceeds
    assert policy.recursion_guard_enabled is (limit > 1)
