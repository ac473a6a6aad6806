"""Object dependency graph: nodes, relationship edges, and a load order that tolerates cycles."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterable, Sequence

from .models import RelationshipKind, SchemaObject


@dataclass(frozen=True)
class GraphNode:
    name: str
    label: str = ""


@dataclass(frozen=True)
class GraphEdge:
    """Directed edge: `source` holds a relationship field pointing at `target`."""

    source: str
    target: str
    kind: RelationshipKind = RelationshipKind.LOOKUP


@dataclass(frozen=True)
class DependencyGraph:
    """Read-only graph value. `order` always lists every node name exactly once."""

    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()
    order: tuple[str, ...] = ()
    resolved: int = 0  # length of the topologically sorted prefix of `order`
    load_order: tuple[str, ...] = ()  # referenced objects before the objects pointing at them
    load_resolved: int = 0  # length of the sorted prefix of `load_order`

    def successors(self, name: str) -> list[str]:
        return [e.target for e in self.edges if e.source == name]

    def cyclic(self) -> tuple[str, ...]:
        """Names the sort could not resolve; appended to `order` in input order."""
        return self.order[self.resolved:]

    def load_cyclic(self) -> tuple[str, ...]:
        """Unresolved tail of `load_order`: cycles plus the objects that depend on them."""
        return self.load_order[self.load_resolved:]

    def to_dict(self) -> dict:
        return {
            "nodes": [{"name": n.name, "label": n.label} for n in self.nodes],
            "edges": [{"from": e.source, "to": e.target, "type": e.kind.value} for e in self.edges],
            "order": list(self.order),
            "load_order": list(self.load_order),
        }


def build_graph(objects: Sequence[SchemaObject]) -> DependencyGraph:
    """
    Build the dependency graph of scanned objects.
    Relationship targets missing from `objects` are dropped, since scans are often partial.
    """
    nodes = tuple(GraphNode(name=obj.name, label=obj.label) for obj in objects)
    known = {n.name for n in nodes}

    edges: list[GraphEdge] = []
    for obj in objects:
        for lookup in obj.lookups:
            if lookup.target in known:
                edges.append(GraphEdge(source=obj.name, target=lookup.target, kind=lookup.kind))

    names = [n.name for n in nodes]
    order, resolved = _kahn(names, edges)
    load_order, load_resolved = _kahn(names, [GraphEdge(e.target, e.source, e.kind) for e in edges])
    return DependencyGraph(
        nodes=nodes,
        edges=tuple(edges),
        order=tuple(order),
        resolved=resolved,
        load_order=tuple(load_order),
        load_resolved=load_resolved,
    )


def topological_sort(names: Sequence[str], edges: Iterable[GraphEdge]) -> list[str]:
    """
    Kahn's algorithm, FIFO, seeded in input order. Nodes stuck in a cycle are
    appended afterwards in input order, so the result is a permutation of `names`.
    """
    order, _ = _kahn(names, edges)
    return order


def _kahn(names: Sequence[str], edges: Iterable[GraphEdge]) -> tuple[list[str], int]:
    in_degree: dict[str, int] = {n: 0 for n in names}
    successors: dict[str, list[str]] = {n: [] for n in names}
    for e in edges:
        if e.source not in successors or e.target not in in_degree:
            continue
        successors[e.source].append(e.target)
        in_degree[e.target] += 1

    queue = deque(n for n in names if in_degree[n] == 0)
    result: list[str] = []
    while queue:
        node = queue.popleft()
        result.append(node)
        for succ in successors[node]:
            in_degree[succ] -= 1
            if in_degree[succ] == 0:
                queue.append(succ)

    resolved = len(result)
    seen = set(result)
    # Leftovers still have positive in-degree: they sit on or behind a cycle
    for n in names:
        if n not in seen:
            result.append(n)
            seen.add(n)
    return result, resolved
