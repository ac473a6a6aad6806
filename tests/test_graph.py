"""Tests for the object dependency graph and its order."""

import itertools

from orgdrift.graph import GraphEdge, build_graph, topological_sort
from orgdrift.models import Lookup, RelationshipKind, SchemaObject


def obj(name, *targets, md=(), label=None):
    lookups = tuple(Lookup(field=f"{t}Id", target=t) for t in targets)
    lookups += tuple(Lookup(field=f"{t}Id", target=t, is_master_detail=True) for t in md)
    return SchemaObject(name=name, label=label or name, lookups=lookups)


def test_concrete_scenario():
    """
    Account/Contact/Opportunity: dangling Missing__c edge dropped.
    Account-first holds for load_order; order follows edge direction.
    """
    objects = [
        obj("Account"),
        obj("Contact", "Account"),
        obj("Opportunity", "Account", md=("Missing__c",)),
    ]
    g = build_graph(objects)
    assert [n.name for n in g.nodes] == ["Account", "Contact", "Opportunity"]
    assert [(e.source, e.target, e.kind) for e in g.edges] == [
        ("Contact", "Account", RelationshipKind.LOOKUP),
        ("Opportunity", "Account", RelationshipKind.LOOKUP),
    ]
    assert sorted(g.order) == ["Account", "Contact", "Opportunity"]
    assert g.load_order.index("Account") < g.load_order.index("Contact")
    assert g.load_order.index("Account") < g.load_order.index("Opportunity")


def test_empty_input():
    """No objects -> empty graph, no error."""
    g = build_graph([])
    assert g.nodes == () and g.edges == () and g.order == ()
    assert g.cyclic() == ()


def test_labels_preserved():
    """Node label comes from the object."""
    g = build_graph([obj("Invoice__c", label="Invoice")])
    assert g.nodes[0].label == "Invoice"


def test_master_detail_kind():
    """Flagged references become master-detail edges."""
    g = build_graph([obj("Parent__c"), obj("Child__c", md=("Parent__c",))])
    assert g.edges[0].kind is RelationshipKind.MASTER_DETAIL
    assert g.to_dict()["edges"] == [{"from": "Child__c", "to": "Parent__c", "type": "master-detail"}]


def test_edge_iff_both_endpoints_known():
    """References to unscanned objects never become edges."""
    objects = [obj("A", "B", "X"), obj("B", "Y"), obj("C", "A", "Z")]
    g = build_graph(objects)
    names = {n.name for n in g.nodes}
    assert all(e.source in names and e.target in names for e in g.edges)
    assert {(e.source, e.target) for e in g.edges} == {("A", "B"), ("C", "A")}


def test_acyclic_edges_respected():
    """Every edge (a, b) puts a before b in order, and b before a in load_order."""
    objects = [obj("D", "C"), obj("C", "B", "A"), obj("B", "A"), obj("A"), obj("E", "A")]
    g = build_graph(objects)
    for e in g.edges:
        assert g.order.index(e.source) < g.order.index(e.target)
        assert g.load_order.index(e.target) < g.load_order.index(e.source)
    assert g.cyclic() == ()


def test_fifo_input_order_seed():
    """Independent nodes keep input order."""
    g = build_graph([obj("Z"), obj("M"), obj("A")])
    assert g.order == ("Z", "M", "A")


def test_two_node_cycle():
    """A -> B -> A still yields a 2-element permutation."""
    g = build_graph([obj("A", "B"), obj("B", "A")])
    assert sorted(g.order) == ["A", "B"]
    assert g.order == ("A", "B")
    assert g.cyclic() == ("A", "B")


def test_cycle_tail_in_input_order():
    """Resolved prefix first, then the cyclic rest in input order."""
    objects = [obj("X", "Y"), obj("Free"), obj("Y", "X"), obj("Leaf", "X")]
    g = build_graph(objects)
    assert g.order[: g.resolved] == ("Free", "Leaf")
    assert g.cyclic() == ("X", "Y")
    assert len(g.order) == len(set(g.order)) == 4


def test_self_reference():
    """Self lookup (hierarchy field) is a one-node cycle, still ordered once."""
    g = build_graph([obj("Account", "Account"), obj("Contact", "Account")])
    assert sorted(g.order) == ["Account", "Contact"]
    assert "Account" in g.cyclic()


def test_permutation_over_many_shapes():
    """order is always a permutation of node names."""
    names = ["A", "B", "C", "D"]
    for targets in itertools.product([(), ("A",), ("B", "C"), ("D",)], repeat=4):
        objects = [obj(n, *t) for n, t in zip(names, targets)]
        g = build_graph(objects)
        assert sorted(g.order) == names
        assert sorted(g.load_order) == names


def test_duplicate_references_counted():
    """Two lookups to the same parent are two edges; ordering still holds."""
    g = build_graph([obj("Case", "Contact", "Contact"), obj("Contact")])
    assert len(g.edges) == 2
    assert g.order == ("Case", "Contact")


def test_topological_sort_ignores_unknown_endpoints():
    """Edges naming unknown nodes are skipped."""
    order = topological_sort(["A", "B"], [GraphEdge("A", "B"), GraphEdge("A", "Q")])
    assert order == ["A", "B"]


def test_successors():
    g = build_graph([obj("Contact", "Account"), obj("Account")])
    assert g.successors("Contact") == ["Account"]
    assert g.successors("Account") == []


def test_load_order_unresolved_tail():
    """Objects pointing into a cycle stay in the unresolved load_order tail."""
    objects = [obj("X", "Y"), obj("Free"), obj("Y", "X"), obj("Leaf", "X")]
    g = build_graph(objects)
    assert g.load_order == ("Free", "X", "Y", "Leaf")
    assert g.load_cyclic() == ("X", "Y", "Leaf")
    assert g.cyclic() == ("X", "Y")
