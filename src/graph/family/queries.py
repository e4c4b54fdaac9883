"""Member lookup queries."""

from src.graph.family.store import RelationshipStore
from src.models import Member


class FamilyQueries:
    """Query operations over stored members."""

    def __init__(self, store: RelationshipStore):
        self.store = store

    def search_members(self, query: str) -> list[Member]:
        """Case-insensitive substring match on given name, family name and nickname.

        Results keep store order; they are not ranked. The query is used as
        given, so an empty query matches everyone.
        """
        needle = (query or "").lower()
        return [
            m for m in self.store.all_members()
            if any(needle in name.lower() for name in (m.given_name, m.family_name, m.nickname) if name)
        ]

    def get_by_family_name(self, family_name: str) -> list[Member]:
        """All members with a family name, ignoring case."""
        wanted = (family_name or "").strip().lower()
        return [m for m in self.store.all_members() if m.family_name and m.family_name.lower() == wanted]

    def get_by_generation(self, generation: int) -> list[Member]:
        return [m for m in self.store.all_members() if m.generation == generation]
