"""Persistence collaborator interface for the family graph.

Storage only loads and saves whole collections. It knows nothing about
relationship rules; the store enforces those.
"""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from src.graph.errors import StorageError
from src.models import Member, RelationshipEdge

logger = logging.getLogger(__name__)


class FamilyStorage(ABC):
    """Load/save collaborator for members and relationship edges."""

    @abstractmethod
    async def load_members(self) -> list[Member]:
        """Load all members in insertion order."""

    @abstractmethod
    async def save_members(self, members: list[Member]) -> None:
        """Replace all stored members."""

    @abstractmethod
    async def load_edges(self) -> list[RelationshipEdge]:
        """Load all relationship edges in insertion order."""

    @abstractmethod
    async def save_edges(self, edges: list[RelationshipEdge]) -> None:
        """Replace all stored relationship edges."""

    async def save_all(
        self,
        members: Optional[list[Member]] = None,
        edges: Optional[list[RelationshipEdge]] = None,
    ) -> None:
        """Save whichever collections are given, both or neither.

        If the edges fail after the members were written, the previous
        members are written back before the error propagates. Backends that
        can write both in one transaction override this.
        """
        if members is None or edges is None:
            if members is not None:
                await self.save_members(members)
            if edges is not None:
                await self.save_edges(edges)
            return

        previous = await self.load_members()
        await self.save_members(members)
        try:
            await self.save_edges(edges)
        except Exception:
            logger.warning("Edge save failed, restoring %d stored member(s)", len(previous))
            await self.save_members(previous)
            raise

    async def close(self) -> None:
        """Release any held resources."""


def decode_members(records: Iterable[dict]) -> list[Member]:
    """Validate raw member records loaded from storage."""
    try:
        return [Member.model_validate(r) for r in records]
    except PydanticValidationError as e:
        raise StorageError(f"Stored member record is invalid: {e}") from e


def decode_edges(records: Iterable[dict]) -> list[RelationshipEdge]:
    """Validate raw edge records loaded from storage."""
    try:
        return [RelationshipEdge.model_validate(r) for r in records]
    except PydanticValidationError as e:
        raise StorageError(f"Stored relationship record is invalid: {e}") from e
