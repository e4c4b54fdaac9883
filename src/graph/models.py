"""Derived views over the family graph.

These are pure data structures computed on demand from the edge set.
Nothing here is persisted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from src.models import Member, RelationType, RelationshipEdge


@dataclass
class RelationshipBundle:
    """A member's direct relations grouped by type."""
    parents: list[Member] = field(default_factory=list)
    children: list[Member] = field(default_factory=list)
    spouses: list[Member] = field(default_factory=list)
    siblings: list[Member] = field(default_factory=list)

    def bucket(self, rel_type: RelationType) -> list[Member]:
        """Members under one relationship type."""
        return {
            RelationType.PARENT: self.parents,
            RelationType.CHILD: self.children,
            RelationType.SPOUSE: self.spouses,
            RelationType.SIBLING: self.siblings,
        }[rel_type]

    def to_dict(self) -> dict:
        return {
            "parents": [m.id for m in self.parents],
            "children": [m.id for m in self.children],
            "spouses": [m.id for m in self.spouses],
            "siblings": [m.id for m in self.siblings],
        }


@dataclass
class RootedTree:
    """Ego-centric view of the graph around one focus member."""
    focus: Optional[Member] = None
    parents: list[Member] = field(default_factory=list)
    grandparents: list[Member] = field(default_factory=list)
    spouses: list[Member] = field(default_factory=list)
    children: list[Member] = field(default_factory=list)
    siblings: list[Member] = field(default_factory=list)
    aunts_uncles: list[Member] = field(default_factory=list)
    cousins: list[Member] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.focus is None

    def to_dict(self) -> dict:
        """Convert to a dictionary of member ids."""
        return {
            "focus": self.focus.id if self.focus else None,
            "parents": [m.id for m in self.parents],
            "grandparents": [m.id for m in self.grandparents],
            "spouses": [m.id for m in self.spouses],
            "children": [m.id for m in self.children],
            "siblings": [m.id for m in self.siblings],
            "aunts_uncles": [m.id for m in self.aunts_uncles],
            "cousins": [m.id for m in self.cousins],
        }


class RelationLabel(str, Enum):
    """Relationship of one member to another, as seen from the first."""
    PARENT = "Parent"
    CHILD = "Child"
    SPOUSE = "Spouse"
    SIBLING = "Sibling"
    GRANDPARENT = "Grandparent"
    AUNT_UNCLE = "Aunt/Uncle"
    COUSIN = "Cousin"


@dataclass(frozen=True)
class EdgeSpec:
    """A planned edge insertion: related_id is <rel_type> of member_id."""
    member_id: str
    related_id: str
    rel_type: RelationType


@dataclass
class CascadeResult:
    """Outcome of a composite add-relative operation."""
    member: Member
    edges: list[RelationshipEdge] = field(default_factory=list)


@dataclass
class GenerationReport:
    """Outcome of a generation recompute."""
    assigned: dict[str, int] = field(default_factory=dict)
    unreachable: list[str] = field(default_factory=list)
    # member id -> distinct parent levels that disagree
    conflicts: dict[str, list[int]] = field(default_factory=dict)

    @property
    def consistent(self) -> bool:
        return not self.conflicts and not self.unreachable
