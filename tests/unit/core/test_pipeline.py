"""Unit tests for MappingPipeline."""

from __future__ import annotations

import types
from dataclasses import dataclass, field

import pytest
from pydantic import BaseModel, Field, ValidationError

from structmap.conventions import (
    CollectionRecursiveConvention,
    ExplicitOverrideConvention,
    NameMatchConvention,
    default_conventions,
)
from structmap.core.pipeline import MappingPipeline
from structmap.core.policy import PipelinePolicy
from structmap.exceptions import (
    ConfigurationError,
    MappingExecutionError,
    UnmappablePropertyError,
)

# -------------------- Sample shapes --------------------


@dataclass
class Order:
    ident: int = 0
    customer: str = ""
    lines: list[str] = field(default_factory=list)
    note: str = ""


@dataclass
class OrderDto:
    ident: int = 0
    customer: str = ""
    lines: list[str] = field(default_factory=list)


@dataclass
class Shipment:
    order: Order | None = None


@dataclass
class ShipmentDto:
    order: OrderDto | None = None
    label: str = ""


class OrderModel(BaseModel):
    order_id: int = Field(default=0, alias="orderId")
    customer: str = ""


@dataclass
class OrderWithId:
    order_id: int = 0
    customer: str = ""


class Exploding:
    @property
    def customer(self) -> str:
        raise RuntimeError("boom")


@dataclass
class Count:
    ident: int = 0


class CountModel(BaseModel):
    ident: int = 0


# --------------------------- Tests ---------------------------


class TestMap:
    def test_map_copies_fields(self) -> None:
        dto = MappingPipeline().map(Order(ident=1, customer="ann"), OrderDto)
        assert dto == OrderDto(ident=1, customer="ann")

    def test_map_none_is_none(self) -> None:
        assert MappingPipeline().map(None, OrderDto) is None

    def test_lists_are_not_aliased(self) -> None:
        order = Order(lines=["a", "b"])
        dto = MappingPipeline().map(order, OrderDto)

        assert dto.lines == ["a", "b"]
        assert dto.lines is not order.lines

    def test_pydantic_target_with_alias(self) -> None:
        model = MappingPipeline().map(OrderWithId(order_id=5, customer="c"), OrderModel)
        assert isinstance(model, OrderModel)
        assert model.order_id == 5

    def test_explicit_source_type(self) -> None:
        source = types.SimpleNamespace(ident=3, customer="x", lines=["l"])
        dto = MappingPipeline().map(source, OrderDto, source_type=OrderDto)
        assert dto == OrderDto(ident=3, customer="x", lines=["l"])

    def test_failing_accessor_is_wrapped(self) -> None:
        with pytest.raises(MappingExecutionError) as exc_info:
            MappingPipeline().map(Exploding(), OrderDto)

        assert isinstance(exc_info.value.cause, RuntimeError)
        assert exc_info.value.target_type is OrderDto

    def test_rejected_construction_is_wrapped(self) -> None:
        pipeline = MappingPipeline().with_explicit_mapping(
            Count, CountModel, {"ident": "not a number"}
        )
        with pytest.raises(MappingExecutionError) as exc_info:
            pipeline.map(Count(), CountModel)
        assert isinstance(exc_info.value.cause, ValidationError)

    def test_map_all(self) -> None:
        pipeline = MappingPipeline()
        orders = [Order(ident=1), None, Order(ident=2)]

        assert pipeline.map_all(orders, OrderDto) == [
            OrderDto(ident=1),
            None,
            OrderDto(ident=2),
        ]

    def test_map_all_lazy(self) -> None:
        mapped = MappingPipeline().map_all(iter([Order(ident=1)]), OrderDto, lazy=True)
        assert not isinstance(mapped, list)
        assert list(mapped) == [OrderDto(ident=1)]

    def test_get_mapping_is_cached(self) -> None:
        pipeline = MappingPipeline()
        assert pipeline.get_mapping(Order, OrderDto) is pipeline.get_mapping(
            Order, OrderDto
        )


class TestMergeWith:
    def test_merge_applies_to_one_call(self) -> None:
        pipeline = MappingPipeline()
        dto = pipeline.map(
            Order(ident=1, customer="c"),
            OrderDto,
            merge_with={"customer": lambda o: o.customer.upper()},
        )

        assert dto == OrderDto(ident=1, customer="C")
        assert (Order, OrderDto) not in pipeline.registry
        assert pipeline.map(Order(customer="c"), OrderDto).customer == "c"

    def test_merge_leaves_cached_mapping_alone(self) -> None:
        pipeline = MappingPipeline()
        cached = pipeline.get_mapping(Order, OrderDto)

        pipeline.map(Order(ident=1), OrderDto, merge_with={"ident": 9})

        assert pipeline.get_mapping(Order, OrderDto) is cached
        assert cached(Order(ident=1)).ident == 1

    def test_nested_pairs_come_from_the_cache(self) -> None:
        pipeline = MappingPipeline()
        dto = pipeline.map(
            Shipment(order=Order(ident=3)), ShipmentDto, merge_with={"label": "rush"}
        )

        assert dto == ShipmentDto(order=OrderDto(ident=3), label="rush")
        assert (Order, OrderDto) in pipeline.registry
        assert (Shipment, ShipmentDto) not in pipeline.registry

    def test_merge_beats_registered_template(self) -> None:
        pipeline = MappingPipeline().with_explicit_mapping(
            Order, OrderDto, {"ident": 7}
        )
        assert pipeline.map(Order(), OrderDto, merge_with={"ident": 8}).ident == 8
        assert pipeline.map(Order(), OrderDto).ident == 7

    def test_merge_with_unknown_field(self) -> None:
        with pytest.raises(ConfigurationError, match="unknown field 'total'"):
            MappingPipeline().map(Order(), OrderDto, merge_with={"total": 1})

    def test_merge_none_source(self) -> None:
        assert MappingPipeline().map(None, OrderDto, merge_with={"ident": 1}) is None

    def test_map_all_with_merge(self) -> None:
        pipeline = MappingPipeline()
        result = pipeline.map_all(
            [Order(ident=1), None, Order(ident=2)],
            OrderDto,
            merge_with={"customer": "bulk"},
        )

        assert result == [
            OrderDto(ident=1, customer="bulk"),
            None,
            OrderDto(ident=2, customer="bulk"),
        ]
        assert len(pipeline.registry) == 0

    def test_map_all_lazy_with_merge(self) -> None:
        mapped = MappingPipeline().map_all(
            [Order(ident=1)], OrderDto, lazy=True, merge_with={"customer": "x"}
        )
        assert not isinstance(mapped, list)
        assert list(mapped) == [OrderDto(ident=1, customer="x")]


class TestClone:
    def test_clone_is_a_shallow_copy(self) -> None:
        source = Order(ident=1, customer="c", lines=["a"], note="n")
        copied = MappingPipeline().clone(source)

        assert copied == source
        assert copied is not source
        assert copied.lines is not source.lines

    def test_clone_with_merge(self) -> None:
        copied = MappingPipeline().clone(
            Order(ident=1, note="n"), merge_with={"note": ""}
        )
        assert copied == Order(ident=1)

    def test_clone_none(self) -> None:
        assert MappingPipeline().clone(None) is None

    def test_clone_caches_the_self_mapping(self) -> None:
        pipeline = MappingPipeline()
        pipeline.clone(Order())
        assert (Order, Order) in pipeline.registry


class TestDerivedPipelines:
    def test_with_policy_returns_new_pipeline(self) -> None:
        pipeline = MappingPipeline()
        strict = pipeline.with_policy(throw_on_unmappable=True)

        assert strict is not pipeline
        assert pipeline.policy.throw_on_unmappable is False
        assert strict.policy.throw_on_unmappable is True
        with pytest.raises(UnmappablePropertyError, match="note"):
            strict.map(Order(), OrderDto)
        assert pipeline.map(Order(), OrderDto) == OrderDto()

    def test_with_policy_validates(self) -> None:
        with pytest.raises(ValidationError):
            MappingPipeline().with_policy(max_recursion_depth="deep")

    def test_derived_pipeline_starts_with_empty_cache(self) -> None:
        pipeline = MappingPipeline()
        pipeline.map(Order(), OrderDto)
        derived = pipeline.with_conventions([NameMatchConvention()])

        assert len(pipeline.registry) == 1
        assert len(derived.registry) == 0
        assert [c.name for c in derived.conventions] == ["name_match"]

    def test_registered_mappings_carry_over(self) -> None:
        pipeline = MappingPipeline().register_mapping(
            Order, OrderDto, lambda o: OrderDto(ident=-1)
        )
        derived = pipeline.with_policy(throw_on_unmappable=True)
        assert derived.map(Order(ident=5), OrderDto) == OrderDto(ident=-1)

    def test_explicit_mapping_is_prepended(self) -> None:
        pipeline = MappingPipeline()
        derived = pipeline.register_explicit_mapping(Order, OrderDto, {"ident": 7})

        assert isinstance(derived.conventions[0], ExplicitOverrideConvention)
        assert len(derived.conventions) == len(pipeline.conventions) + 1
        assert derived.map(Order(ident=1), OrderDto).ident == 7
        assert pipeline.map(Order(ident=1), OrderDto).ident == 1

    def test_reset_drops_cache(self) -> None:
        pipeline = MappingPipeline()
        pipeline.map(Order(), OrderDto)
        assert pipeline.reset() is pipeline
        assert len(pipeline.registry) == 0


class TestIntrospection:
    def test_defaults(self) -> None:
        pipeline = MappingPipeline()
        assert [c.name for c in pipeline.conventions] == [
            c.name for c in default_conventions()
        ]
        assert pipeline.policy == PipelinePolicy()

    def test_pipeline_info(self) -> None:
        pipeline = MappingPipeline(
            conventions=[NameMatchConvention(), CollectionRecursiveConvention()],
            policy=PipelinePolicy(max_recursion_depth=5),
        )
        pipeline.map(Order(), OrderDto)
        info = pipeline.get_pipeline_info()

        assert info["pipeline_class"] == "MappingPipeline"
        assert info["conventions"] == [
            "NameMatchConvention()",
            "CollectionRecursiveConvention()",
        ]
        assert info["policy"]["max_recursion_depth"] == 5
        assert info["cached_pairs"] == ["Order -> OrderDto"]

    def test_repr_lists_convention_names(self) -> None:
        text = repr(MappingPipeline(conventions=[NameMatchConvention()]))
        assert text.startswith("MappingPipeline([name_match]")
