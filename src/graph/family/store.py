"""Relationship store: members plus an indexed, always-symmetric edge set."""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Iterator, Mapping, Optional, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from src.graph.errors import InvariantViolation, NotFoundError, ValidationError
from src.graph.models import RelationshipBundle
from src.models import Member, RelationType, RelationshipEdge

logger = logging.getLogger(__name__)

MemberData = Union[Mapping, BaseModel]

# Fields the store owns; callers cannot set them
_RESERVED_FIELDS = ("id", "created_at", "updated_at")


def member_payload(data: MemberData) -> dict:
    """Plain dict of member fields from a mapping or a model."""
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    return dict(data)


class RelationshipStore:
    """
    Canonical member and edge collections.

    Edges are indexed by member: ``adjacency[a][b]`` is the single edge
    from ``a`` to ``b``. Every write goes through add_relationship_edge or
    remove_relationship_edge, which always touch both directions.
    """

    def __init__(self):
        self._members: dict[str, Member] = {}
        self._edges: dict[str, RelationshipEdge] = {}
        self._adjacency: dict[str, dict[str, RelationshipEdge]] = {}
        self._tx_depth = 0
        self.dirty_members = False
        self.dirty_edges = False

    @classmethod
    def from_records(cls, members: Iterable[Member], edges: Iterable[RelationshipEdge]) -> "RelationshipStore":
        """Rebuild a store from persisted records, rejecting a broken edge set."""
        store = cls()
        for member in members:
            store._members[member.id] = member
            store._adjacency[member.id] = {}

        problems = []
        for edge in edges:
            src, dst = edge.source_member_id, edge.target_member_id
            if src not in store._members or dst not in store._members:
                problems.append(f"edge {edge.id} references an unknown member")
                continue
            if src == dst:
                problems.append(f"edge {edge.id} links {src} to itself")
                continue
            if dst in store._adjacency[src]:
                problems.append(f"duplicate edge {src} -> {dst}")
                continue
            store._adjacency[src][dst] = edge
            store._edges[edge.id] = edge

        problems.extend(store.check_invariants())
        if problems:
            raise InvariantViolation("Inconsistent relationship data: " + "; ".join(problems))
        return store

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, member_id: str) -> bool:
        return member_id in self._members

    # ─────────────────────────────────────────
    # Members
    # ─────────────────────────────────────────

    def add_member(self, data: MemberData) -> Member:
        """Create a member with a fresh id and timestamps."""
        payload = member_payload(data)
        for key in _RESERVED_FIELDS:
            payload.pop(key, None)
        try:
            member = Member.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

        self._members[member.id] = member
        self._adjacency[member.id] = {}
        self.dirty_members = True
        logger.debug("Added member %s (%s)", member.id, member.full_name)
        return member

    def get_member(self, member_id: str) -> Member:
        """Get member by id."""
        member = self._members.get(member_id)
        if member is None:
            raise NotFoundError(member_id)
        return member

    def find_member(self, member_id: str) -> Optional[Member]:
        """Get member by id, or None."""
        return self._members.get(member_id)

    def update_member(self, member_id: str, **changes) -> Member:
        """Update member fields and refresh updated_at."""
        current = self.get_member(member_id)
        payload = current.model_dump()
        payload.update({k: v for k, v in changes.items() if k not in _RESERVED_FIELDS})
        payload["updated_at"] = datetime.now()
        try:
            updated = Member.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

        self._members[member_id] = updated
        self.dirty_members = True
        return updated

    def set_generation(self, member_id: str, generation: int) -> None:
        """Store a derived generation level without touching updated_at."""
        member = self.get_member(member_id)
        self._members[member_id] = member.model_copy(update={"generation": generation})
        self.dirty_members = True

    def delete_member(self, member_id: str) -> Member:
        """Delete a member and every edge touching it, in both directions."""
        member = self.get_member(member_id)
        with self.transaction():
            for related_id in list(self._adjacency[member_id]):
                self.remove_relationship_edge(member_id, related_id)
            del self._adjacency[member_id]
            del self._members[member_id]
            self.dirty_members = True
        logger.info("Deleted member %s (%s)", member_id, member.full_name)
        return member

    def all_members(self) -> list[Member]:
        """All members in insertion order."""
        return list(self._members.values())

    # ─────────────────────────────────────────
    # Edges
    # ─────────────────────────────────────────

    def add_relationship_edge(self, member_id: str, related_id: str,
                              rel_type: Union[RelationType, str]) -> list[RelationshipEdge]:
        """
        Record that related_id is the <rel_type> of member_id.

        Inserts the edge and its inverse together. Returns the inserted pair,
        or an empty list if the pair is already linked this way.
        """
        rel_type = RelationType(rel_type)
        self.get_member(member_id)
        self.get_member(related_id)
        if member_id == related_id:
            raise InvariantViolation(f"Member {member_id} cannot be related to itself")

        existing = self._adjacency[member_id].get(related_id)
        if existing is not None:
            if existing.relationship_type == rel_type:
                return []
            raise InvariantViolation(
                f"{member_id} and {related_id} are already related as "
                f"{existing.relationship_type.value}, cannot add {rel_type.value}"
            )

        now = datetime.now()
        forward = RelationshipEdge(
            source_member_id=member_id,
            target_member_id=related_id,
            relationship_type=rel_type,
            created_at=now,
        )
        inverse = RelationshipEdge(
            source_member_id=related_id,
            target_member_id=member_id,
            relationship_type=rel_type.inverse,
            created_at=now,
        )
        for edge in (forward, inverse):
            self._adjacency[edge.source_member_id][edge.target_member_id] = edge
            self._edges[edge.id] = edge
        self.dirty_edges = True
        logger.debug("Linked %s -[%s]-> %s", member_id, rel_type.value, related_id)
        return [forward, inverse]

    def remove_relationship_edge(self, member_id: str, related_id: str) -> bool:
        """Remove both directional edges between a pair."""
        removed = False
        for src, dst in ((member_id, related_id), (related_id, member_id)):
            edge = self._adjacency.get(src, {}).pop(dst, None)
            if edge is not None:
                del self._edges[edge.id]
                removed = True
        if removed:
            self.dirty_edges = True
            logger.debug("Unlinked %s and %s", member_id, related_id)
        return removed

    def relationship_between(self, member_id: str, related_id: str) -> Optional[RelationType]:
        """What related_id is to member_id, if they are directly linked."""
        edge = self._adjacency.get(member_id, {}).get(related_id)
        return edge.relationship_type if edge else None

    def related_ids(self, member_id: str, rel_type: Union[RelationType, str]) -> list[str]:
        """Ids of members linked to member_id by rel_type, in edge order."""
        rel_type = RelationType(rel_type)
        return [
            related_id
            for related_id, edge in self._adjacency.get(member_id, {}).items()
            if edge.relationship_type == rel_type
        ]

    def get_relationship_bundle(self, member_id: str) -> RelationshipBundle:
        """Direct relations of a member grouped by type."""
        self.get_member(member_id)
        bundle = RelationshipBundle()
        for related_id, edge in self._adjacency[member_id].items():
            bundle.bucket(edge.relationship_type).append(self._members[related_id])
        return bundle

    def all_edges(self) -> list[RelationshipEdge]:
        """All directed edges in insertion order."""
        return list(self._edges.values())

    def iter_parent_edges(self) -> Iterator[RelationshipEdge]:
        """Every (child -> parent, PARENT) edge, in insertion order."""
        for edge in self._edges.values():
            if edge.relationship_type is RelationType.PARENT:
                yield edge

    def check_invariants(self) -> list[str]:
        """Describe every dangling, self-referencing or one-way edge."""
        problems = []
        for edge in self._edges.values():
            src, dst = edge.source_member_id, edge.target_member_id
            missing = [mid for mid in (src, dst) if mid not in self._members]
            if missing:
                problems.append(f"edge {src} -> {dst} references unknown member(s) {', '.join(missing)}")
                continue
            if src == dst:
                problems.append(f"edge {edge.id} links {src} to itself")
                continue
            back = self._adjacency.get(dst, {}).get(src)
            if back is None:
                problems.append(f"edge {src} -> {dst} has no inverse")
            elif back.relationship_type != edge.relationship_type.inverse:
                problems.append(
                    f"edge {src} -> {dst} is {edge.relationship_type.value} "
                    f"but its inverse is {back.relationship_type.value}"
                )
        return problems

    # ─────────────────────────────────────────
    # Transactions and flush bookkeeping
    # ─────────────────────────────────────────

    @contextmanager
    def transaction(self) -> Iterator["RelationshipStore"]:
        """
        Group writes so they land together or not at all.

        On an exception, members and edges are restored to their state at
        entry and the exception propagates. Nested blocks join the outer one.
        """
        if self._tx_depth:
            self._tx_depth += 1
            try:
                yield self
            finally:
                self._tx_depth -= 1
            return

        snapshot = (
            dict(self._members),
            dict(self._edges),
            {mid: dict(links) for mid, links in self._adjacency.items()},
            self.dirty_members,
            self.dirty_edges,
        )
        self._tx_depth = 1
        try:
            yield self
        except BaseException:
            (self._members, self._edges, self._adjacency,
             self.dirty_members, self.dirty_edges) = snapshot
            logger.debug("Rolled back store transaction")
            raise
        finally:
            self._tx_depth = 0

    def mark_clean(self) -> None:
        """Record that the current state has been persisted."""
        self.dirty_members = False
        self.dirty_edges = False

    def mark_dirty(self) -> None:
        """Force the next flush to rewrite both collections."""
        self.dirty_members = True
        self.dirty_edges = True

    def clear(self) -> None:
        """Remove all members and edges."""
        self._members.clear()
        self._edges.clear()
        self._adjacency.clear()
        self.dirty_members = True
        self.dirty_edges = True
