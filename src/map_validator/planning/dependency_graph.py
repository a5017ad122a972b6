"""Deterministic prerequisite graph and Kahn scheduling for validator runs."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from enum import StrEnum
from heapq import heapify, heappop, heappush


class ExclusionReason(StrEnum):
    """Why the scheduler could not place a node."""

    MISSING_PREREQUISITE = "missing_prerequisite"
    CYCLE = "cycle"
    UPSTREAM_EXCLUDED = "upstream_excluded"


@dataclass(frozen=True, slots=True)
class Schedule:
    """Result of scheduling: executable order plus nodes that can never run."""

    order: tuple[str, ...]
    excluded: tuple[str, ...]

    @property
    def is_complete(self) -> bool:
        return not self.excluded


class DependencyGraph:
    """Directed graph ``prerequisite -> dependent`` over declared validator names.

    Nodes keep their declaration order, which is the tie-break among nodes that
    become ready at the same time. Prerequisite names that were never declared are
    remembered as dangling references; they count toward the dependent's indegree
    but can never be dequeued, so the dependent is never scheduled.
    """

    __slots__ = ("_index", "_dependents", "_prerequisites", "_dangling")

    def __init__(
        self,
        nodes: Iterable[str] | None = None,
        edges: Iterable[tuple[str, str]] | None = None,
    ) -> None:
        self._index: dict[str, int] = {}
        self._dependents: dict[str, set[str]] = {}
        self._prerequisites: dict[str, set[str]] = {}
        self._dangling: dict[str, set[str]] = {}

        if nodes is not None:
            for node in nodes:
                self.add_node(node)

        if edges is not None:
            for prerequisite, dependent in edges:
                self.add_edge(prerequisite, dependent)

    @classmethod
    def from_prerequisites(cls, prerequisites: Mapping[str, Iterable[str]]) -> DependencyGraph:
        """Build a graph from ``name -> prerequisite names`` in mapping order."""

        graph = cls(nodes=prerequisites)
        for dependent, targets in prerequisites.items():
            for target in targets:
                graph.add_edge(target, dependent)
        return graph

    @property
    def nodes(self) -> tuple[str, ...]:
        """Declared nodes in declaration order."""
        return tuple(self._index)

    @property
    def edges(self) -> tuple[tuple[str, str], ...]:
        """Resolved ``(prerequisite, dependent)`` pairs in declaration order."""
        ordered: list[tuple[str, str]] = []
        for prerequisite in self._index:
            for dependent in self._ordered(self._dependents[prerequisite]):
                ordered.append((prerequisite, dependent))
        return tuple(ordered)

    def add_node(self, node: str) -> None:
        """Declare a node; redeclaring keeps the first position."""
        self._validate_node_id(node)
        if node in self._index:
            return
        self._index[node] = len(self._index)
        self._dependents[node] = set()
        self._prerequisites[node] = set()
        self._dangling[node] = set()
        for other, missing in self._dangling.items():
            if node in missing:
                missing.discard(node)
                self._link(node, other)

    def add_edge(self, prerequisite: str, dependent: str) -> None:
        """Add ``prerequisite -> dependent``; the dependent must be declared."""
        self._validate_node_id(prerequisite)
        self._assert_node_exists(dependent)
        if prerequisite in self._index:
            self._link(prerequisite, dependent)
        else:
            self._dangling[dependent].add(prerequisite)

    def indegree(self, node: str) -> int:
        """Number of distinct declared prerequisite names, resolved or not."""
        self._assert_node_exists(node)
        return len(self._prerequisites[node]) + len(self._dangling[node])

    def get_prerequisites(self, node: str) -> tuple[str, ...]:
        self._assert_node_exists(node)
        return self._ordered(self._prerequisites[node])

    def get_dependents(self, node: str) -> tuple[str, ...]:
        self._assert_node_exists(node)
        return self._ordered(self._dependents[node])

    def dangling_prerequisites(self) -> dict[str, tuple[str, ...]]:
        """Map each node with undeclared prerequisites to those names (sorted)."""
        return {
            node: tuple(sorted(missing)) for node, missing in self._dangling.items() if missing
        }

    def schedule(self) -> Schedule:
        """Kahn's algorithm with declaration-order tie-breaking.

        Nodes never dequeued are returned as ``excluded`` in declaration order
        instead of raising, so callers can finalize them individually.
        """
        indegree = {node: self.indegree(node) for node in self._index}
        ready: list[tuple[int, str]] = [
            (self._index[node], node) for node, degree in indegree.items() if degree == 0
        ]
        heapify(ready)

        order: list[str] = []
        while ready:
            _, node = heappop(ready)
            order.append(node)
            for dependent in self._ordered(self._dependents[node]):
                indegree[dependent] -= 1
                if indegree[dependent] == 0:
                    heappush(ready, (self._index[dependent], dependent))

        placed = set(order)
        excluded = tuple(node for node in self._index if node not in placed)
        return Schedule(order=tuple(order), excluded=excluded)

    def detect_cycles(self) -> tuple[tuple[str, ...], ...]:
        """
        Detect directed cycles among declared nodes.

        Returns closed paths such as ``("A", "B", "A")``, each rotated to start at
        its earliest-declared member.
        """
        state: dict[str, int] = {}
        stack: list[str] = []
        stack_index: dict[str, int] = {}
        cycles: dict[tuple[str, ...], None] = {}

        for start in self._index:
            if state.get(start, 0) != 0:
                continue

            state[start] = 1
            stack.append(start)
            stack_index[start] = 0
            frames: list[tuple[str, Iterator[str]]] = [
                (start, iter(self._ordered(self._dependents[start])))
            ]

            while frames:
                node, child_iter = frames[-1]

                try:
                    child = next(child_iter)
                except StopIteration:
                    frames.pop()
                    state[node] = 2
                    stack.pop()
                    del stack_index[node]
                    continue

                child_state = state.get(child, 0)
                if child_state == 0:
                    state[child] = 1
                    stack_index[child] = len(stack)
                    stack.append(child)
                    frames.append((child, iter(self._ordered(self._dependents[child]))))
                elif child_state == 1:
                    cycle = tuple(stack[stack_index[child] :] + [child])
                    cycles[self._canonicalize_cycle(cycle)] = None

        return tuple(cycles)

    def diagnose(self, excluded: Iterable[str]) -> dict[str, ExclusionReason]:
        """Classify excluded nodes by the first applicable root cause."""
        excluded_nodes = tuple(excluded)
        dangling = self.dangling_prerequisites()
        in_cycle = {node for cycle in self.detect_cycles() for node in cycle}

        reasons: dict[str, ExclusionReason] = {}
        for node in excluded_nodes:
            if node in dangling:
                reasons[node] = ExclusionReason.MISSING_PREREQUISITE
            elif node in in_cycle:
                reasons[node] = ExclusionReason.CYCLE
            else:
                reasons[node] = ExclusionReason.UPSTREAM_EXCLUDED
        return reasons

    def _link(self, prerequisite: str, dependent: str) -> None:
        self._dependents[prerequisite].add(dependent)
        self._prerequisites[dependent].add(prerequisite)

    def _ordered(self, names: Iterable[str]) -> tuple[str, ...]:
        return tuple(sorted(names, key=self._index.__getitem__))

    def _canonicalize_cycle(self, cycle: Sequence[str]) -> tuple[str, ...]:
        core = tuple(cycle[:-1])
        if len(core) == 1:
            return (core[0], core[0])
        start = min(range(len(core)), key=lambda offset: self._index[core[offset]])
        rotated = core[start:] + core[:start]
        return rotated + (rotated[0],)

    @staticmethod
    def _validate_node_id(node: str) -> None:
        if not isinstance(node, str) or not node:
            raise ValueError("Validator name must be a non-empty string.")

    def _assert_node_exists(self, node: str) -> None:
        if node not in self._index:
            raise KeyError(f"Unknown validator: {node}")


__all__ = ["DependencyGraph", "ExclusionReason", "Schedule"]
