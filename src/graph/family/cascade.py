"""Composite add-relative operations."""

import logging

from src.config import GenerationPolicy
from src.graph.family.generations import assign_generations
from src.graph.family.rules import CascadeKind, plan_edges
from src.graph.family.store import MemberData, RelationshipStore, member_payload
from src.graph.models import CascadeResult

logger = logging.getLogger(__name__)


class CascadeEngine:
    """
    Add a relative and wire every edge its propagation rule implies.

    Each operation creates exactly one member, links it to the anchor,
    applies the rule from rules.py and recomputes generations. All of it
    runs in one store transaction, so a failure leaves no partial links.

    Usage:
        engine = CascadeEngine(store)
        dad = engine.add_parent(amit.id, {"given_name": "Suresh"}).member
    """

    def __init__(self, store: RelationshipStore,
                 policy: GenerationPolicy = GenerationPolicy.FIRST_VISIT,
                 root_level: int = 1):
        self.store = store
        self.policy = policy
        self.root_level = root_level

    def add_parent(self, child_id: str, data: MemberData) -> CascadeResult:
        """Add a parent; existing siblings of the child get the same parent."""
        return self._cascade(CascadeKind.PARENT, child_id, data)

    def add_spouse(self, member_id: str, data: MemberData) -> CascadeResult:
        """Add a spouse, who is always recorded as married in."""
        return self._cascade(CascadeKind.SPOUSE, member_id, data,
                             overrides={"born_into_family": False})

    def add_sibling(self, member_id: str, data: MemberData, share_parents: bool = True) -> CascadeResult:
        """Add a sibling, optionally sharing the member's parents."""
        return self._cascade(CascadeKind.SIBLING, member_id, data, propagate=share_parents)

    def add_child(self, parent_id: str, data: MemberData) -> CascadeResult:
        """Add a child; existing spouses of the parent become parents too."""
        return self._cascade(CascadeKind.CHILD, parent_id, data)

    def _cascade(self, kind: CascadeKind, anchor_id: str, data: MemberData,
                 propagate: bool = True, overrides: dict = None) -> CascadeResult:
        anchor = self.store.get_member(anchor_id)
        payload = member_payload(data)
        payload.update(overrides or {})

        with self.store.transaction():
            member = self.store.add_member(payload)
            result = CascadeResult(member=member)
            for spec in plan_edges(self.store, kind, anchor_id, member.id, propagate=propagate):
                result.edges.extend(
                    self.store.add_relationship_edge(spec.member_id, spec.related_id, spec.rel_type)
                )
            assign_generations(self.store, self.policy, self.root_level)

        result.member = self.store.get_member(member.id)
        logger.info("Added %s %s (%s) for %s, %d edge(s)", kind.value, member.id,
                    member.full_name, anchor.full_name, len(result.edges))
        return result
