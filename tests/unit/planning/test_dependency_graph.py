"""Unit tests for planning.dependency_graph."""

from __future__ import annotations

import random

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from map_validator.planning import DependencyGraph, ExclusionReason


def test_declaration_order_breaks_ties_among_ready_nodes() -> None:
    graph = DependencyGraph.from_prerequisites({"c": (), "a": (), "b": ("c",), "d": ("a",)})

    schedule = graph.schedule()

    assert schedule.order == ("c", "a", "b", "d")
    assert schedule.is_complete


def test_dangling_prerequisite_excludes_node_and_its_dependents() -> None:
    graph = DependencyGraph.from_prerequisites({"a": (), "c": ("z",), "d": ("c",)})

    schedule = graph.schedule()

    assert schedule.order == ("a",)
    assert schedule.excluded == ("c", "d")
    assert graph.indegree("c") == 1
    assert graph.dangling_prerequisites() == {"c": ("z",)}
    assert graph.diagnose(schedule.excluded) == {
        "c": ExclusionReason.MISSING_PREREQUISITE,
        "d": ExclusionReason.UPSTREAM_EXCLUDED,
    }


def test_two_node_cycle_is_excluded() -> None:
    graph = DependencyGraph.from_prerequisites({"a": ("b",), "b": ("a",), "c": ()})

    schedule = graph.schedule()

    assert schedule.order == ("c",)
    assert schedule.excluded == ("a", "b")
    assert graph.detect_cycles() == (("a", "b", "a"),)
    assert set(graph.diagnose(schedule.excluded).values()) == {ExclusionReason.CYCLE}


def test_self_prerequisite_is_a_cycle() -> None:
    graph = DependencyGraph.from_prerequisites({"a": ("a",)})

    assert graph.schedule().excluded == ("a",)
    assert graph.detect_cycles() == (("a", "a"),)


def test_late_declaration_resolves_dangling_edge() -> None:
    graph = DependencyGraph(nodes=("b",))
    graph.add_edge("a", "b")
    assert graph.dangling_prerequisites() == {"b": ("a",)}

    graph.add_node("a")

    assert graph.dangling_prerequisites() == {}
    assert graph.edges == (("a", "b"),)
    assert graph.schedule().order == ("a", "b")


def test_queries_are_deterministic_and_validate_names() -> None:
    graph = DependencyGraph.from_prerequisites({"a": (), "b": (), "c": ("b", "a")})

    assert graph.nodes == ("a", "b", "c")
    assert graph.get_prerequisites("c") == ("a", "b")
    assert graph.get_dependents("a") == ("c",)
    with pytest.raises(KeyError, match="Unknown validator"):
        graph.indegree("nope")
    with pytest.raises(ValueError, match="non-empty"):
        graph.add_node("")


def test_seeded_random_dag_with_1000_nodes_schedules_completely() -> None:
    rng = random.Random(20_260_214)
    node_count = 1_000
    names = [f"check_{index:04d}" for index in range(node_count)]
    prerequisites: dict[str, tuple[str, ...]] = {}
    for index, name in enumerate(names):
        fan_in = min(4, index)
        prerequisites[name] = tuple(
            names[parent] for parent in rng.sample(range(index), fan_in) if rng.random() < 0.55
        )

    graph = DependencyGraph.from_prerequisites(prerequisites)
    schedule = graph.schedule()

    assert len(schedule.order) == node_count
    position = {name: index for index, name in enumerate(schedule.order)}
    for prerequisite, dependent in graph.edges:
        assert position[prerequisite] < position[dependent]


@st.composite
def _acyclic_prerequisites(draw: st.DrawFn) -> dict[str, tuple[str, ...]]:
    count = draw(st.integers(min_value=1, max_value=12))
    names = [f"v{index}" for index in range(count)]
    order = draw(st.permutations(names))
    mapping: dict[str, tuple[str, ...]] = {}
    for index, name in enumerate(order):
        earlier = order[:index]
        chosen = draw(st.lists(st.sampled_from(earlier), unique=True)) if earlier else []
        mapping[name] = tuple(chosen)
    # Declaration order independent of the topological order used to build edges.
    declared = draw(st.permutations(names))
    return {name: mapping[name] for name in declared}


@settings(max_examples=25, derandomize=True, deadline=None)
@given(_acyclic_prerequisites())
def test_property_acyclic_specs_schedule_every_node_in_topological_order(
    prerequisites: dict[str, tuple[str, ...]],
) -> None:
    schedule = DependencyGraph.from_prerequisites(prerequisites).schedule()

    assert schedule.excluded == ()
    assert sorted(schedule.order) == sorted(prerequisites)
    position = {name: index for index, name in enumerate(schedule.order)}
    for name, targets in prerequisites.items():
        for target in targets:
            assert position[target] < position[name]


@settings(max_examples=25, derandomize=True, deadline=None)
@given(_acyclic_prerequisites())
def test_property_schedule_is_reproducible(prerequisites: dict[str, tuple[str, ...]]) -> None:
    first = DependencyGraph.from_prerequisites(prerequisites).schedule()
    second = DependencyGraph.from_prerequisites(dict(prerequisites)).schedule()

    assert first == second
