"""Propagation rules applied when a relative is added.

Each cascade wires one base edge between the anchor member and the new
member, then asks its rule for extra edges. Rules only read the graph and
return EdgeSpecs; the cascade engine inserts them. This keeps the
propagation matrix testable without touching a store.

    kind      base edge                     rule
    parent    new is parent of anchor       new is parent of anchor's siblings
    spouse    new is spouse of anchor       none
    sibling   new is sibling of anchor      new is child of anchor's parents (optional)
    child     anchor is parent of new       anchor's spouses are parents of new
"""

from enum import Enum
from typing import Callable, Protocol, Union

from src.graph.models import EdgeSpec
from src.models import RelationType


class CascadeKind(str, Enum):
    """The four add-relative operations."""
    PARENT = "parent"
    SPOUSE = "spouse"
    SIBLING = "sibling"
    CHILD = "child"


class GraphView(Protocol):
    """The read access a rule needs."""

    def related_ids(self, member_id: str, rel_type: Union[RelationType, str]) -> list[str]:
        ...


Rule = Callable[[GraphView, str, str], list[EdgeSpec]]


# ─────────────────────────────────────────
# Base edges
# ─────────────────────────────────────────

def base_edge(kind: CascadeKind, anchor_id: str, new_id: str) -> EdgeSpec:
    """The edge that ties a new relative to the member it was added for."""
    kind = CascadeKind(kind)
    if kind is CascadeKind.CHILD:
        return EdgeSpec(new_id, anchor_id, RelationType.PARENT)
    return EdgeSpec(anchor_id, new_id, RelationType(kind.value))


# ─────────────────────────────────────────
# Rules
# ─────────────────────────────────────────

def share_parent_with_siblings(graph: GraphView, child_id: str, new_parent_id: str) -> list[EdgeSpec]:
    """A new parent is also parent of every existing sibling of the child."""
    return [
        EdgeSpec(sibling_id, new_parent_id, RelationType.PARENT)
        for sibling_id in graph.related_ids(child_id, RelationType.SIBLING)
        if sibling_id != new_parent_id
    ]


def no_propagation(graph: GraphView, anchor_id: str, new_id: str) -> list[EdgeSpec]:
    """Spouses do not inherit each other's parents or children."""
    return []


def inherit_parents(graph: GraphView, member_id: str, new_sibling_id: str) -> list[EdgeSpec]:
    """A new sibling becomes child of every existing parent of the member."""
    return [
        EdgeSpec(new_sibling_id, parent_id, RelationType.PARENT)
        for parent_id in graph.related_ids(member_id, RelationType.PARENT)
        if parent_id != new_sibling_id
    ]


def link_child_to_spouses(graph: GraphView, parent_id: str, new_child_id: str) -> list[EdgeSpec]:
    """A new child is also child of every existing spouse of the parent."""
    return [
        EdgeSpec(new_child_id, spouse_id, RelationType.PARENT)
        for spouse_id in graph.related_ids(parent_id, RelationType.SPOUSE)
        if spouse_id != new_child_id
    ]


PROPAGATION_RULES: dict[CascadeKind, Rule] = {
    CascadeKind.PARENT: share_parent_with_siblings,
    CascadeKind.SPOUSE: no_propagation,
    CascadeKind.SIBLING: inherit_parents,
    CascadeKind.CHILD: link_child_to_spouses,
}


def plan_edges(graph: GraphView, kind: CascadeKind, anchor_id: str, new_id: str,
               propagate: bool = True) -> list[EdgeSpec]:
    """Base edge followed by whatever the kind's rule adds."""
    kind = CascadeKind(kind)
    specs = [base_edge(kind, anchor_id, new_id)]
    if propagate:
        specs.extend(PROPAGATION_RULES[kind](graph, anchor_id, new_id))
    return specs
