"""
SQLite storage for members and relationship edges.

Tables:
- members: one row per member, ordered by position
- relationships: one row per directed edge, ordered by position
- meta: revision counter used to detect lost updates

Each save replaces a whole collection inside one transaction. A save made
from a stale revision raises ConcurrencyConflict and writes nothing.
"""

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Optional

from src.graph.errors import ConcurrencyConflict, StorageError
from src.graph.storage.base import FamilyStorage, decode_edges, decode_members
from src.models import Member, RelationshipEdge

logger = logging.getLogger(__name__)


DEFAULT_DB_PATH = "data/family_tree.db"

MEMBER_COLUMNS = (
    "id", "given_name", "family_name", "nickname", "gender",
    "birth_date", "death_date", "is_alive", "generation", "born_into_family",
    "location", "phone", "email", "bio", "created_at", "updated_at",
)

EDGE_COLUMNS = (
    "id", "source_member_id", "target_member_id", "relationship_type", "created_at",
)


class SQLiteStorage(FamilyStorage):
    """Store family members and relationships in SQLite."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or DEFAULT_DB_PATH
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._revision = 0
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS members (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    given_name TEXT NOT NULL,
                    family_name TEXT,
                    nickname TEXT,
                    gender TEXT,
                    birth_date TEXT,
                    death_date TEXT,
                    is_alive INTEGER DEFAULT 1,
                    generation INTEGER DEFAULT 0,
                    born_into_family INTEGER DEFAULT 1,
                    location TEXT,
                    phone TEXT,
                    email TEXT,
                    bio TEXT,
                    created_at TEXT,
                    updated_at TEXT
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS relationships (
                    id TEXT PRIMARY KEY,
                    position INTEGER NOT NULL,
                    source_member_id TEXT NOT NULL,
                    target_member_id TEXT NOT NULL,
                    relationship_type TEXT NOT NULL,
                    created_at TEXT,
                    UNIQUE (source_member_id, target_member_id, relationship_type)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value INTEGER NOT NULL
                )
            """)
            conn.execute("INSERT OR IGNORE INTO meta (key, value) VALUES ('revision', 0)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_rel_source ON relationships(source_member_id)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_member_name ON members(given_name)")

    @property
    def revision(self) -> int:
        """Revision this handle last loaded or wrote."""
        return self._revision

    # ─────────────────────────────────────────
    # Blocking helpers (run in a worker thread)
    # ─────────────────────────────────────────

    def _read_revision(self, conn: sqlite3.Connection) -> int:
        row = conn.execute("SELECT value FROM meta WHERE key = 'revision'").fetchone()
        return row[0] if row else 0

    def _select(self, table: str, columns: tuple[str, ...]) -> list[dict]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.row_factory = sqlite3.Row
                rows = conn.execute(
                    f"SELECT {', '.join(columns)} FROM {table} ORDER BY position"
                ).fetchall()
                self._revision = self._read_revision(conn)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot read {table} from {self.db_path}: {e}") from e
        return [dict(row) for row in rows]

    def _replace(self, members: Optional[list[dict]], edges: Optional[list[dict]]) -> None:
        """Replace the given collections in one transaction."""
        conn = sqlite3.connect(self.db_path, isolation_level=None)
        try:
            conn.execute("BEGIN IMMEDIATE")
            stored = self._read_revision(conn)
            if stored != self._revision:
                conn.execute("ROLLBACK")
                raise ConcurrencyConflict(
                    f"{self.db_path} is at revision {stored}, this handle loaded {self._revision}"
                )

            if members is not None:
                conn.execute("DELETE FROM members")
                self._insert_rows(conn, "members", MEMBER_COLUMNS, members)
            if edges is not None:
                conn.execute("DELETE FROM relationships")
                self._insert_rows(conn, "relationships", EDGE_COLUMNS, edges)

            conn.execute("UPDATE meta SET value = ? WHERE key = 'revision'", (stored + 1,))
            conn.execute("COMMIT")
            self._revision = stored + 1
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StorageError(f"Cannot write {self.db_path}: {e}") from e
        finally:
            conn.close()
        logger.debug("Saved %s at revision %d", self.db_path, self._revision)

    @staticmethod
    def _insert_rows(conn: sqlite3.Connection, table: str, columns: tuple[str, ...], records: list[dict]) -> None:
        placeholders = ", ".join(f":{c}" for c in columns)
        conn.executemany(
            f"INSERT INTO {table} (position, {', '.join(columns)}) VALUES (:position, {placeholders})",
            [{**{c: r.get(c) for c in columns}, "position": i} for i, r in enumerate(records)],
        )

    # ─────────────────────────────────────────
    # FamilyStorage interface
    # ─────────────────────────────────────────

    async def load_members(self) -> list[Member]:
        rows = await asyncio.to_thread(self._select, "members", MEMBER_COLUMNS)
        return decode_members(rows)

    async def load_edges(self) -> list[RelationshipEdge]:
        rows = await asyncio.to_thread(self._select, "relationships", EDGE_COLUMNS)
        return decode_edges(rows)

    async def save_members(self, members: list[Member]) -> None:
        await self.save_all(members=members)

    async def save_edges(self, edges: list[RelationshipEdge]) -> None:
        await self.save_all(edges=edges)

    async def save_all(
        self,
        members: Optional[list[Member]] = None,
        edges: Optional[list[RelationshipEdge]] = None,
    ) -> None:
        member_rows = [m.model_dump(mode="json") for m in members] if members is not None else None
        edge_rows = [e.model_dump(mode="json") for e in edges] if edges is not None else None
        await asyncio.to_thread(self._replace, member_rows, edge_rows)
