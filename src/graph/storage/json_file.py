"""Family data stored in a single JSON document.

Layout:
    {"members": [...], "relationships": [...]}
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Optional

from src.graph.errors import StorageError
from src.graph.storage.base import FamilyStorage, decode_edges, decode_members
from src.models import Member, RelationshipEdge

logger = logging.getLogger(__name__)


class JsonFileStorage(FamilyStorage):
    """Manage family data with JSON file persistence."""

    def __init__(self, path: str = "data/family_tree.json"):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _read(self) -> dict:
        """Read the whole document, or an empty one if the file is missing."""
        if not self.path.exists():
            return {"members": [], "relationships": []}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise StorageError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected document in {self.path}")
        data.setdefault("members", [])
        data.setdefault("relationships", [])
        return data

    def _write(self, members: Optional[list[dict]], relationships: Optional[list[dict]]) -> None:
        """Rewrite the document, keeping whichever part was not given."""
        data = self._read()
        if members is not None:
            data["members"] = members
        if relationships is not None:
            data["relationships"] = relationships

        # Replace via temp file; readers never see half a document
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Cannot write {self.path}: {e}") from e
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
        logger.debug("Wrote %s", self.path)

    async def load_members(self) -> list[Member]:
        data = await asyncio.to_thread(self._read)
        return decode_members(data["members"])

    async def load_edges(self) -> list[RelationshipEdge]:
        data = await asyncio.to_thread(self._read)
        return decode_edges(data["relationships"])

    async def save_members(self, members: list[Member]) -> None:
        records = [m.model_dump(mode="json") for m in members]
        await asyncio.to_thread(self._write, records, None)

    async def save_edges(self, edges: list[RelationshipEdge]) -> None:
        records = [e.model_dump(mode="json") for e in edges]
        await asyncio.to_thread(self._write, None, records)

    async def save_all(
        self,
        members: Optional[list[Member]] = None,
        edges: Optional[list[RelationshipEdge]] = None,
    ) -> None:
        """Write both collections with a single file replace."""
        member_records = [m.model_dump(mode="json") for m in members] if members is not None else None
        edge_records = [e.model_dump(mode="json") for e in edges] if edges is not None else None
        await asyncio.to_thread(self._write, member_records, edge_records)
