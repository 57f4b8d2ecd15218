"""
SQLite Family Store - persistent storage for the family graph.

Tables:
- accounts: Registered accounts
- manual_entries: People entered by an account, optionally linked to one
- relationships: Directed typed edges, unique per (initiator, target, type)

Blocking sqlite3 calls run in a worker thread so the event loop stays free.
Paired relationship writes share one transaction.
"""

import asyncio
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from functools import partial
from pathlib import Path
from typing import Optional

from familytree.config import settings
from familytree.errors import (
    AlreadyLinkedError,
    DuplicateRelationshipError,
    FamilyTreeError,
    InternalError,
    NotFoundError,
)
from familytree.graph.store import FamilyStore, RelationshipPair
from familytree.logging import get_logger
from familytree.models import (
    Account,
    AccountRelationships,
    Gender,
    ManualEntry,
    Relationship,
    RelationshipType,
)

logger = get_logger(__name__)


class SQLiteFamilyStore(FamilyStore):
    """FamilyStore backed by a single SQLite database file."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = Path(db_path or settings.database.db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    @contextmanager
    def _get_conn(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON;")
        conn.execute("PRAGMA busy_timeout=5000;")
        try:
            yield conn
        finally:
            conn.close()

    def _init_db(self):
        """Initialize accounts, manual_entries and relationships tables."""
        with self._get_conn() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS accounts (
                    id TEXT PRIMARY KEY,
                    display_name TEXT NOT NULL,
                    gender TEXT NOT NULL DEFAULT 'unspecified',
                    date_of_birth TEXT,
                    image_url TEXT,
                    is_profile_public INTEGER DEFAULT 0,
                    invite_code TEXT UNIQUE,
                    invited_by_id TEXT,
                    created_at TEXT NOT NULL,

                    FOREIGN KEY (invited_by_id) REFERENCES accounts(id) ON DELETE SET NULL
                );

                CREATE TABLE IF NOT EXISTS manual_entries (
                    id TEXT PRIMARY KEY,
                    added_by_id TEXT NOT NULL,
                    display_name TEXT NOT NULL,
                    gender TEXT,
                    date_of_birth TEXT,
                    relationship_to_adder TEXT,
                    linked_account_id TEXT,
                    created_at TEXT NOT NULL,

                    FOREIGN KEY (added_by_id) REFERENCES accounts(id) ON DELETE CASCADE,
                    FOREIGN KEY (linked_account_id) REFERENCES accounts(id) ON DELETE SET NULL
                );

                CREATE TABLE IF NOT EXISTS relationships (
                    id TEXT PRIMARY KEY,
                    initiator_id TEXT NOT NULL,
                    target_id TEXT NOT NULL,
                    type TEXT NOT NULL,
                    created_at TEXT NOT NULL,

                    UNIQUE (initiator_id, target_id, type),
                    CHECK (initiator_id <> target_id),
                    FOREIGN KEY (initiator_id) REFERENCES accounts(id) ON DELETE CASCADE,
                    FOREIGN KEY (target_id) REFERENCES accounts(id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_account_name ON accounts(display_name);
                CREATE INDEX IF NOT EXISTS idx_manual_added_by ON manual_entries(added_by_id);
                CREATE INDEX IF NOT EXISTS idx_relationship_initiator ON relationships(initiator_id);
                CREATE INDEX IF NOT EXISTS idx_relationship_target ON relationships(target_id);
            """)
            conn.commit()

    async def _run(self, func, *args):
        """Run a blocking store call off the event loop."""
        try:
            return await asyncio.to_thread(partial(func, *args))
        except FamilyTreeError:
            raise
        except sqlite3.Error as e:
            logger.error("store_failure", operation=func.__name__, error=str(e))
            raise InternalError(f"Store operation {func.__name__} failed: {e}") from e

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    async def find_account_by_id(self, account_id: str) -> Optional[Account]:
        return await self._run(self._fetch_account, "id", account_id)

    async def find_account_by_invite_code(self, invite_code: str) -> Optional[Account]:
        return await self._run(self._fetch_account, "invite_code", invite_code)

    def _fetch_account(self, column: str, value: str) -> Optional[Account]:
        with self._get_conn() as conn:
            row = conn.execute(
                f"SELECT * FROM accounts WHERE {column} = ?", (value,)
            ).fetchone()
            return self._row_to_account(row) if row else None

    async def create_account(self, account: Account) -> Account:
        await self._run(self._insert_account, account)
        return account

    def _insert_account(self, account: Account) -> None:
        with self._get_conn() as conn, conn:
            conn.execute("""
                INSERT INTO accounts (
                    id, display_name, gender, date_of_birth, image_url,
                    is_profile_public, invite_code, invited_by_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, self._account_values(account))

    async def save_account(self, account: Account) -> Account:
        await self._run(self._update_account, account)
        return account

    def _update_account(self, account: Account) -> None:
        with self._get_conn() as conn, conn:
            values = self._account_values(account)
            cursor = conn.execute("""
                UPDATE accounts SET
                    display_name = ?, gender = ?, date_of_birth = ?, image_url = ?,
                    is_profile_public = ?, invite_code = ?, invited_by_id = ?, created_at = ?
                WHERE id = ?
            """, (*values[1:], account.id))
            if cursor.rowcount == 0:
                raise NotFoundError("Account", account.id)

    async def search_public_accounts(
        self,
        term: str,
        exclude_id: Optional[str] = None,
        limit: int = 10,
    ) -> list[Account]:
        return await self._run(self._search_public, term, exclude_id, limit)

    def _search_public(self, term: str, exclude_id: Optional[str], limit: int) -> list[Account]:
        with self._get_conn() as conn:
            rows = conn.execute("""
                SELECT * FROM accounts
                WHERE is_profile_public = 1
                  AND id IS NOT ?
                  AND lower(display_name) LIKE ?
                ORDER BY display_name
                LIMIT ?
            """, (exclude_id, f"%{term.lower()}%", limit)).fetchall()
            return [self._row_to_account(row) for row in rows]

    # =========================================================================
    # MANUAL ENTRIES
    # =========================================================================

    async def find_manual_entry_by_id(self, entry_id: str) -> Optional[ManualEntry]:
        return await self._run(self._fetch_manual_entry, entry_id)

    def _fetch_manual_entry(self, entry_id: str) -> Optional[ManualEntry]:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT * FROM manual_entries WHERE id = ?", (entry_id,)
            ).fetchone()
            return self._row_to_manual_entry(row) if row else None

    async def create_manual_entry(self, entry: ManualEntry) -> ManualEntry:
        await self._run(self._insert_manual_entry, entry)
        return entry

    def _insert_manual_entry(self, entry: ManualEntry) -> None:
        with self._get_conn() as conn, conn:
            conn.execute("""
                INSERT INTO manual_entries (
                    id, added_by_id, display_name, gender, date_of_birth,
                    relationship_to_adder, linked_account_id, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                entry.id,
                entry.added_by_id,
                entry.display_name,
                entry.gender.value if entry.gender else None,
                entry.date_of_birth.isoformat() if entry.date_of_birth else None,
                entry.relationship_to_adder.value if entry.relationship_to_adder else None,
                entry.linked_account_id,
                entry.created_at.isoformat(),
            ))

    async def find_manual_entries_added_by(self, account_id: str) -> list[ManualEntry]:
        return await self._run(self._fetch_manual_entries_added_by, account_id)

    def _fetch_manual_entries_added_by(self, account_id: str) -> list[ManualEntry]:
        with self._get_conn() as conn:
            rows = conn.execute(
                "SELECT * FROM manual_entries WHERE added_by_id = ? ORDER BY rowid",
                (account_id,)
            ).fetchall()
            return [self._row_to_manual_entry(row) for row in rows]

    async def update_manual_entry_link(
        self,
        entry_id: str,
        account_id: str,
        implied_pair: Optional[RelationshipPair] = None,
    ) -> ManualEntry:
        return await self._run(self._link_manual_entry, entry_id, account_id, implied_pair)

    def _link_manual_entry(
        self,
        entry_id: str,
        account_id: str,
        implied_pair: Optional[RelationshipPair],
    ) -> ManualEntry:
        with self._get_conn() as conn, conn:
            # The link check is part of the write so concurrent links serialize on it
            cursor = conn.execute("""
                UPDATE manual_entries SET linked_account_id = ?
                WHERE id = ? AND (linked_account_id IS NULL OR linked_account_id = ?)
            """, (account_id, entry_id, account_id))
            if cursor.rowcount == 0:
                row = conn.execute(
                    "SELECT linked_account_id FROM manual_entries WHERE id = ?", (entry_id,)
                ).fetchone()
                if row is None:
                    raise NotFoundError("Manual entry", entry_id)
                raise AlreadyLinkedError(entry_id, row["linked_account_id"])

            for edge in implied_pair or ():
                conn.execute("""
                    INSERT OR IGNORE INTO relationships (id, initiator_id, target_id, type, created_at)
                    VALUES (?, ?, ?, ?, ?)
                """, self._relationship_values(edge))

            row = conn.execute(
                "SELECT * FROM manual_entries WHERE id = ?", (entry_id,)
            ).fetchone()
            return self._row_to_manual_entry(row)

    # =========================================================================
    # RELATIONSHIPS
    # =========================================================================

    async def find_relationship_by_id(self, relationship_id: str) -> Optional[Relationship]:
        return await self._run(self._fetch_relationship_by_id, relationship_id)

    def _fetch_relationship_by_id(self, relationship_id: str) -> Optional[Relationship]:
        with self._get_conn() as conn:
            row = conn.execute(
                "SELECT * FROM relationships WHERE id = ?", (relationship_id,)
            ).fetchone()
            return self._row_to_relationship(row) if row else None

    async def find_relationship(
        self,
        initiator_id: str,
        target_id: str,
        rel_type: RelationshipType,
    ) -> Optional[Relationship]:
        return await self._run(self._fetch_relationship, initiator_id, target_id, rel_type)

    def _fetch_relationship(
        self,
        initiator_id: str,
        target_id: str,
        rel_type: RelationshipType,
    ) -> Optional[Relationship]:
        with self._get_conn() as conn:
            row = conn.execute("""
                SELECT * FROM relationships
                WHERE initiator_id = ? AND target_id = ? AND type = ?
            """, (initiator_id, target_id, rel_type.value)).fetchone()
            return self._row_to_relationship(row) if row else None

    async def find_relationships_by_account(self, account_id: str) -> AccountRelationships:
        return await self._run(self._fetch_relationships_by_account, account_id)

    def _fetch_relationships_by_account(self, account_id: str) -> AccountRelationships:
        with self._get_conn() as conn:
            initiated = conn.execute(
                "SELECT * FROM relationships WHERE initiator_id = ? ORDER BY rowid",
                (account_id,)
            ).fetchall()
            received = conn.execute(
                "SELECT * FROM relationships WHERE target_id = ? ORDER BY rowid",
                (account_id,)
            ).fetchall()
            return AccountRelationships(
                as_initiator=[self._row_to_relationship(row) for row in initiated],
                as_target=[self._row_to_relationship(row) for row in received],
            )

    async def create_relationship_pair(
        self,
        primary: Relationship,
        reciprocal: Relationship,
    ) -> RelationshipPair:
        await self._run(self._insert_relationship_pair, primary, reciprocal)
        return primary, reciprocal

    def _insert_relationship_pair(self, primary: Relationship, reciprocal: Relationship) -> None:
        with self._get_conn() as conn:
            try:
                with conn:
                    for edge in (primary, reciprocal):
                        conn.execute("""
                            INSERT INTO relationships (id, initiator_id, target_id, type, created_at)
                            VALUES (?, ?, ?, ?, ?)
                        """, self._relationship_values(edge))
            except sqlite3.IntegrityError as e:
                if "UNIQUE" not in str(e):
                    raise
                raise DuplicateRelationshipError(
                    primary.initiator_id, primary.target_id, primary.type.value
                ) from e

    async def delete_relationship_pair(
        self,
        primary_id: str,
        reciprocal_id: Optional[str] = None,
    ) -> None:
        await self._run(self._delete_relationship_pair, primary_id, reciprocal_id)

    def _delete_relationship_pair(self, primary_id: str, reciprocal_id: Optional[str]) -> None:
        with self._get_conn() as conn, conn:
            cursor = conn.execute("DELETE FROM relationships WHERE id = ?", (primary_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Relationship", primary_id)
            if reciprocal_id:
                conn.execute("DELETE FROM relationships WHERE id = ?", (reciprocal_id,))

    # =========================================================================
    # ROW CONVERSION
    # =========================================================================

    def _account_values(self, account: Account) -> tuple:
        return (
            account.id,
            account.display_name,
            account.gender.value,
            account.date_of_birth.isoformat() if account.date_of_birth else None,
            account.image_url,
            int(account.is_profile_public),
            account.invite_code,
            account.invited_by_id,
            account.created_at.isoformat(),
        )

    def _relationship_values(self, edge: Relationship) -> tuple:
        return (
            edge.id,
            edge.initiator_id,
            edge.target_id,
            edge.type.value,
            edge.created_at.isoformat(),
        )

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        """Convert database row to Account."""
        return Account(
            id=row["id"],
            display_name=row["display_name"],
            gender=Gender(row["gender"]),
            date_of_birth=date.fromisoformat(row["date_of_birth"]) if row["date_of_birth"] else None,
            image_url=row["image_url"],
            is_profile_public=bool(row["is_profile_public"]),
            invite_code=row["invite_code"],
            invited_by_id=row["invited_by_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_manual_entry(self, row: sqlite3.Row) -> ManualEntry:
        """Convert database row to ManualEntry."""
        return ManualEntry(
            id=row["id"],
            added_by_id=row["added_by_id"],
            display_name=row["display_name"],
            gender=Gender(row["gender"]) if row["gender"] else None,
            date_of_birth=date.fromisoformat(row["date_of_birth"]) if row["date_of_birth"] else None,
            relationship_to_adder=(
                RelationshipType(row["relationship_to_adder"])
                if row["relationship_to_adder"] else None
            ),
            linked_account_id=row["linked_account_id"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_relationship(self, row: sqlite3.Row) -> Relationship:
        """Convert database row to Relationship."""
        return Relationship(
            id=row["id"],
            initiator_id=row["initiator_id"],
            target_id=row["target_id"],
            type=RelationshipType(row["type"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
