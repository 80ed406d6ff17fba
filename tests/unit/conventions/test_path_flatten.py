"""Unit tests for PathFlattenConvention."""

from __future__ import annotations

from dataclasses import dataclass

from structmap.conventions import PathFlattenConvention
from structmap.core.pipeline import MappingPipeline

# -------------------- Sample shapes --------------------


@dataclass
class Dog:
    name: str = ""
    legs: int = 0


@dataclass
class Owner:
    dog: Dog | None = None
    age: int = 0


@dataclass
class FlatOwner:
    DogName: str = ""
    DogLegs: int = 0


@dataclass
class SnakeOwner:
    dog_name: str = ""
    dogLegs: int = 0


@dataclass
class MismatchedOwner:
    DogName: str = ""
    DogLegs: str = ""


@dataclass
class Person:
    owner: Owner | None = None


@dataclass
class FlatPerson:
    ownerAge: int = 0
    ownerDogName: str = ""


@dataclass
class MixedOwner:
    dog_name: str = "direct"
    dog: Dog | None = None


# --------------------------- Tests ---------------------------


def test_flattens_every_matching_target_field() -> None:
    flat = MappingPipeline().map(Owner(dog=Dog(name="Rex", legs=4)), FlatOwner)
    assert flat == FlatOwner(DogName="Rex", DogLegs=4)


def test_separator_and_camel_case_variants() -> None:
    flat = MappingPipeline().map(Owner(dog=Dog(name="Rex", legs=3)), SnakeOwner)
    assert flat == SnakeOwner(dog_name="Rex", dogLegs=3)


def test_origins_are_two_hop_paths() -> None:
    mapping = MappingPipeline().get_mapping(Owner, FlatOwner)
    assert mapping.describe() == [("DogName", "o.dog.name"), ("DogLegs", "o.dog.legs")]


def test_none_intermediate_propagates() -> None:
    flat = MappingPipeline().map(Owner(dog=None), FlatOwner)
    assert flat.DogName is None
    assert flat.DogLegs is None


def test_incompatible_nested_type_is_skipped() -> None:
    flat = MappingPipeline().map(Owner(dog=Dog(name="Rex", legs=4)), MismatchedOwner)
    assert flat == MismatchedOwner(DogName="Rex", DogLegs="")


def test_only_one_level_is_resolved() -> None:
    person = Person(owner=Owner(dog=Dog(name="Rex"), age=40))
    flat = MappingPipeline().map(person, FlatPerson)

    assert flat.ownerAge == 40
    assert flat.ownerDogName == ""


def test_earlier_binding_is_not_replaced() -> None:
    flat = MappingPipeline().map(
        MixedOwner(dog_name="direct", dog=Dog(name="Rex")), SnakeOwner
    )
    assert flat.dog_name == "direct"


def test_declines_primitive_fields() -> None:
    pipeline = MappingPipeline(conventions=[PathFlattenConvention()])
    mapping = pipeline.get_mapping(Owner, FlatOwner)
    # only the composite field contributes
    assert {origin for _, origin in mapping.describe()} == {"o.dog.name", "o.dog.legs"}
