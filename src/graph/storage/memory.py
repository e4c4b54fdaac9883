"""In-memory storage, mainly for tests and scratch sessions."""

from src.graph.storage.base import FamilyStorage
from src.models import Member, RelationshipEdge


class InMemoryStorage(FamilyStorage):
    """Keep saved collections in process memory.

    Members and edges are frozen, so holding the records themselves is safe;
    only the lists are copied.
    """

    def __init__(self, members: list[Member] = None, edges: list[RelationshipEdge] = None):
        self._members = list(members or [])
        self._edges = list(edges or [])
        self.save_count = 0

    async def load_members(self) -> list[Member]:
        return list(self._members)

    async def save_members(self, members: list[Member]) -> None:
        self._members = list(members)
        self.save_count += 1

    async def load_edges(self) -> list[RelationshipEdge]:
        return list(self._edges)

    async def save_edges(self, edges: list[RelationshipEdge]) -> None:
        self._edges = list(edges)
        self.save_count += 1
