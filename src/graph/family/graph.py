"""Main FamilyGraph facade combining all operations."""

import asyncio
import logging
from typing import Optional, Union

from src.config import Settings, settings as default_settings
from src.graph.errors import FamilyGraphError, StorageError
from src.graph.family.cascade import CascadeEngine
from src.graph.family.ego import EgoTreeBuilder
from src.graph.family.generations import assign_generations
from src.graph.family.queries import FamilyQueries
from src.graph.family.rules import CascadeKind
from src.graph.family.sample import seed_sample_family
from src.graph.family.store import MemberData, RelationshipStore, member_payload
from src.graph.models import (
    CascadeResult,
    GenerationReport,
    RelationLabel,
    RelationshipBundle,
    RootedTree,
)
from src.graph.storage import FamilyStorage, InMemoryStorage, create_storage
from src.models import Member, RelationType, RelationshipEdge

logger = logging.getLogger(__name__)


class FamilyGraph:
    """
    Main interface for family graph operations.

    Holds the in-memory store, one lock around it, and the storage it
    flushes to. Every call takes the lock; a mutating call keeps it through
    the flush, and a failed flush rolls the in-memory state back.

    Usage:
        graph = await FamilyGraph.open(SQLiteStorage("data/family.db"))
        amit = await graph.add_member(given_name="Amit", family_name="Kumar")
        await graph.add_parent(amit.id, given_name="Suresh")
        tree = await graph.get_rooted_tree(amit.id)
        await graph.close()
    """

    def __init__(self, storage: Optional[FamilyStorage] = None,
                 store: Optional[RelationshipStore] = None,
                 config: Optional[Settings] = None):
        self.config = config or default_settings
        self.storage = storage or InMemoryStorage()
        self.store = store or RelationshipStore()
        self._lock = asyncio.Lock()
        self._closed = False

        # Compose operations
        policy = self.config.generation.policy
        root_level = self.config.generation.root_level
        self.cascades = CascadeEngine(self.store, policy, root_level)
        self.ego = EgoTreeBuilder(self.store)
        self.queries = FamilyQueries(self.store)

    @classmethod
    async def open(cls, storage: Optional[FamilyStorage] = None,
                   config: Optional[Settings] = None) -> "FamilyGraph":
        """Load members and edges from storage into a new graph."""
        config = config or default_settings
        storage = storage or create_storage(config)
        members = await storage.load_members()
        edges = await storage.load_edges()
        store = RelationshipStore.from_records(members, edges)
        logger.info("Opened family graph: %d members, %d edges", len(members), len(edges))
        return cls(storage, store, config)

    async def close(self) -> None:
        """Flush pending changes and release storage."""
        if self._closed:
            return
        async with self._lock:
            await self._flush()
            await self.storage.close()
            self._closed = True

    async def __aenter__(self) -> "FamilyGraph":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ─────────────────────────────────────────
    # Lock and flush boundary
    # ─────────────────────────────────────────

    def _check_open(self) -> None:
        if self._closed:
            raise FamilyGraphError("FamilyGraph is closed")

    async def _flush(self) -> None:
        """Write dirty collections to storage."""
        if not (self.store.dirty_members or self.store.dirty_edges):
            return
        await self.storage.save_all(
            members=self.store.all_members() if self.store.dirty_members else None,
            edges=self.store.all_edges() if self.store.dirty_edges else None,
        )
        self.store.mark_clean()
        logger.debug("Flushed family graph")

    async def _flush_to_completion(self) -> bool:
        """Flush in a task the caller's cancellation cannot interrupt.

        Returns whether the caller was cancelled while the write ran.
        """
        flush = asyncio.create_task(self._flush())
        cancelled = False
        while True:
            try:
                await asyncio.shield(flush)
                return cancelled
            except asyncio.CancelledError:
                if flush.cancelled():
                    raise
                cancelled = True

    async def _write(self, operation, *args, **kwargs):
        """Run a store mutation and flush it, all under the lock.

        Memory only keeps the mutation if the flush succeeded. A caller
        cancelled mid-flush still waits for the write, then sees the
        cancellation with memory matching what was stored.
        """
        self._check_open()
        async with self._lock:
            try:
                with self.store.transaction():
                    result = operation(*args, **kwargs)
                    cancelled = await self._flush_to_completion()
            except StorageError:
                # storage may hold part of the failed write
                self.store.mark_dirty()
                raise
        if cancelled:
            raise asyncio.CancelledError()
        return result

    async def _read(self, operation, *args, **kwargs):
        self._check_open()
        async with self._lock:
            return operation(*args, **kwargs)

    def _recompute(self) -> GenerationReport:
        generation = self.config.generation
        return assign_generations(self.store, generation.policy, generation.root_level)

    # ─────────────────────────────────────────
    # Member operations
    # ─────────────────────────────────────────

    async def add_member(self, data: Optional[MemberData] = None, **fields) -> Member:
        payload = {**member_payload(data or {}), **fields}
        return await self._write(self.store.add_member, payload)

    async def get_member(self, member_id: str) -> Member:
        return await self._read(self.store.get_member, member_id)

    async def get_all_members(self) -> list[Member]:
        return await self._read(self.store.all_members)

    async def update_member(self, member_id: str, **changes) -> Member:
        return await self._write(self.store.update_member, member_id, **changes)

    async def delete_member(self, member_id: str) -> Member:
        """Delete a member with all their relationships."""
        def delete() -> Member:
            member = self.store.delete_member(member_id)
            self._recompute()
            return member
        return await self._write(delete)

    # ─────────────────────────────────────────
    # Relationship operations
    # ─────────────────────────────────────────

    async def add_relationship(self, member_id: str, related_id: str,
                               rel_type: Union[RelationType, str]) -> list[RelationshipEdge]:
        """Link two existing members; related_id becomes <rel_type> of member_id."""
        def link() -> list[RelationshipEdge]:
            edges = self.store.add_relationship_edge(member_id, related_id, rel_type)
            if edges:
                self._recompute()
            return edges
        return await self._write(link)

    async def remove_relationship(self, member_id: str, related_id: str) -> bool:
        def unlink() -> bool:
            removed = self.store.remove_relationship_edge(member_id, related_id)
            if removed:
                self._recompute()
            return removed
        return await self._write(unlink)

    async def get_all_relationships(self) -> list[RelationshipEdge]:
        return await self._read(self.store.all_edges)

    async def get_relationship_bundle(self, member_id: str) -> RelationshipBundle:
        return await self._read(self.store.get_relationship_bundle, member_id)

    # ─────────────────────────────────────────
    # Cascades (delegated)
    # ─────────────────────────────────────────

    async def add_parent(self, child_id: str, data: Optional[MemberData] = None, **fields) -> Member:
        result = await self.add_relative(CascadeKind.PARENT, child_id, data, **fields)
        return result.member

    async def add_spouse(self, member_id: str, data: Optional[MemberData] = None, **fields) -> Member:
        result = await self.add_relative(CascadeKind.SPOUSE, member_id, data, **fields)
        return result.member

    async def add_sibling(self, member_id: str, data: Optional[MemberData] = None,
                          share_parents: bool = True, **fields) -> Member:
        result = await self.add_relative(CascadeKind.SIBLING, member_id, data,
                                         share_parents=share_parents, **fields)
        return result.member

    async def add_child(self, parent_id: str, data: Optional[MemberData] = None, **fields) -> Member:
        result = await self.add_relative(CascadeKind.CHILD, parent_id, data, **fields)
        return result.member

    async def add_relative(self, kind: Union[CascadeKind, str], anchor_id: str,
                           data: Optional[MemberData] = None, share_parents: bool = True,
                           **fields) -> CascadeResult:
        """Run one cascade and return the new member with every inserted edge."""
        kind = CascadeKind(kind)
        payload = {**member_payload(data or {}), **fields}
        if kind is CascadeKind.PARENT:
            return await self._write(self.cascades.add_parent, anchor_id, payload)
        if kind is CascadeKind.SPOUSE:
            return await self._write(self.cascades.add_spouse, anchor_id, payload)
        if kind is CascadeKind.SIBLING:
            return await self._write(self.cascades.add_sibling, anchor_id, payload, share_parents)
        return await self._write(self.cascades.add_child, anchor_id, payload)

    async def recompute_generations(self) -> GenerationReport:
        return await self._write(self._recompute)

    # ─────────────────────────────────────────
    # Query operations (delegated)
    # ─────────────────────────────────────────

    async def get_rooted_tree(self, focus_id: str) -> RootedTree:
        return await self._read(self.ego.get_rooted_tree, focus_id)

    async def get_grandchildren(self, focus_id: str) -> list[Member]:
        return await self._read(self.ego.get_grandchildren, focus_id)

    async def get_relationship_path(self, from_id: str, to_id: str) -> Optional[RelationLabel]:
        return await self._read(self.ego.get_relationship_path, from_id, to_id)

    async def search_members(self, query: str) -> list[Member]:
        return await self._read(self.queries.search_members, query)

    async def get_by_family_name(self, family_name: str) -> list[Member]:
        return await self._read(self.queries.get_by_family_name, family_name)

    # ─────────────────────────────────────────
    # Housekeeping
    # ─────────────────────────────────────────

    async def seed_sample_family(self) -> dict[str, Member]:
        """Load the sample household if the graph is empty."""
        return await self._write(seed_sample_family, self.store)

    async def clear(self) -> None:
        """Remove every member and relationship."""
        await self._write(self.store.clear)
