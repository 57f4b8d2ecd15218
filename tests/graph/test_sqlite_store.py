"""Test SQLite persistence for the family store."""

import asyncio
import sqlite3
import time
from contextlib import contextmanager

import pytest

from familytree.errors import (
    AlreadyLinkedError,
    DuplicateRelationshipError,
    InternalError,
    NotFoundError,
)
from familytree.graph.relations import reciprocal_edge
from familytree.graph.sqlite_store import SQLiteFamilyStore
from familytree.models import Account, Gender, ManualEntry, Relationship, RelationshipType


class SlowLinkConnection(sqlite3.Connection):
    """Holds the write lock briefly after linking a manual entry."""

    def execute(self, sql, *args):
        cursor = super().execute(sql, *args)
        if sql.lstrip().startswith("UPDATE manual_entries"):
            time.sleep(0.3)
        return cursor


class SlowLinkStore(SQLiteFamilyStore):
    """SQLite store whose link writes overlap when run concurrently."""

    @contextmanager
    def _get_conn(self):
        conn = sqlite3.connect(self.db_path, factory=SlowLinkConnection)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON;")
        conn.execute("PRAGMA busy_timeout=5000;")
        try:
            yield conn
        finally:
            conn.close()


class TestSQLiteFamilyStore:
    """Tests for SQLiteFamilyStore."""

    def test_tables_created(self, sqlite_store):
        """Should create the three tables on init."""
        conn = sqlite3.connect(sqlite_store.db_path)
        try:
            names = {
                row[0] for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type = 'table'"
                )
            }
        finally:
            conn.close()
        assert {"accounts", "manual_entries", "relationships"} <= names

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        """A second store on the same file sees earlier writes."""
        path = str(tmp_path / "family.db")
        first = SQLiteFamilyStore(db_path=path)
        alice = await first.create_account(Account(display_name="Alice", gender=Gender.FEMALE))
        bob = await first.create_account(Account(display_name="Bob"))
        primary = Relationship(initiator_id=alice.id, target_id=bob.id, type=RelationshipType.PARENT)
        await first.create_relationship_pair(primary, reciprocal_edge(primary))

        second = SQLiteFamilyStore(db_path=path)
        loaded = await second.find_account_by_id(alice.id)
        assert loaded == alice
        edges = await second.find_relationships_by_account(bob.id)
        assert [r.type for r in edges.as_initiator] == [RelationshipType.CHILD]
        assert [r.type for r in edges.as_target] == [RelationshipType.PARENT]

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path):
        """Missing directories are created for the database file."""
        path = tmp_path / "nested" / "dir" / "family.db"
        SQLiteFamilyStore(db_path=str(path))
        assert path.exists()

    @pytest.mark.asyncio
    async def test_duplicate_pair_rolls_back(self, sqlite_store):
        """A pair with a duplicate half writes neither edge."""
        alice = await sqlite_store.create_account(Account(display_name="Alice"))
        bob = await sqlite_store.create_account(Account(display_name="Bob"))
        existing = Relationship(initiator_id=bob.id, target_id=alice.id, type=RelationshipType.CHILD)
        await sqlite_store.create_relationship_pair(existing, reciprocal_edge(existing))
        orphan = await sqlite_store.find_relationship(alice.id, bob.id, RelationshipType.PARENT)
        await sqlite_store.delete_relationship_pair(orphan.id)

        primary = Relationship(initiator_id=alice.id, target_id=bob.id, type=RelationshipType.PARENT)
        with pytest.raises(DuplicateRelationshipError):
            await sqlite_store.create_relationship_pair(primary, reciprocal_edge(primary))

        assert await sqlite_store.find_relationship_by_id(primary.id) is None
        edges = await sqlite_store.find_relationships_by_account(alice.id)
        assert len(edges.all()) == 1

    @pytest.mark.asyncio
    async def test_store_failure_is_internal_error(self, sqlite_store):
        """Constraint failures other than uniqueness surface as InternalError."""
        alice = await sqlite_store.create_account(Account(display_name="Alice"))
        primary = Relationship(initiator_id=alice.id, target_id="ghost", type=RelationshipType.SPOUSE)

        with pytest.raises(InternalError):
            await sqlite_store.create_relationship_pair(primary, reciprocal_edge(primary))

    @pytest.mark.asyncio
    async def test_link_inserts_missing_edges_only(self, sqlite_store):
        """Linking ignores halves of the implied pair that already exist."""
        alice = await sqlite_store.create_account(Account(display_name="Alice"))
        gran = await sqlite_store.create_account(Account(display_name="Gran"))
        entry = await sqlite_store.create_manual_entry(ManualEntry(
            added_by_id=alice.id,
            display_name="Grandma",
            relationship_to_adder=RelationshipType.PARENT,
        ))
        existing = Relationship(initiator_id=gran.id, target_id=alice.id, type=RelationshipType.PARENT)
        await sqlite_store.create_relationship_pair(existing, reciprocal_edge(existing))

        implied = Relationship(initiator_id=gran.id, target_id=alice.id, type=RelationshipType.PARENT)
        linked = await sqlite_store.update_manual_entry_link(
            entry.id, gran.id, (implied, reciprocal_edge(implied))
        )

        assert linked.linked_account_id == gran.id
        edges = await sqlite_store.find_relationships_by_account(alice.id)
        assert len(edges.all()) == 2
        assert await sqlite_store.find_relationship_by_id(implied.id) is None

    @pytest.mark.asyncio
    async def test_link_conflicts(self, sqlite_store):
        """Linking a missing or already linked entry fails."""
        alice = await sqlite_store.create_account(Account(display_name="Alice"))
        gran = await sqlite_store.create_account(Account(display_name="Gran"))
        other = await sqlite_store.create_account(Account(display_name="Other"))
        entry = await sqlite_store.create_manual_entry(
            ManualEntry(added_by_id=alice.id, display_name="Grandma")
        )
        await sqlite_store.update_manual_entry_link(entry.id, gran.id)

        with pytest.raises(AlreadyLinkedError):
            await sqlite_store.update_manual_entry_link(entry.id, other.id)
        with pytest.raises(NotFoundError):
            await sqlite_store.update_manual_entry_link("missing", gran.id)

    @pytest.mark.asyncio
    async def test_concurrent_links_keep_first(self, tmp_path):
        """Overlapping links to different accounts: one wins, the other fails."""
        store = SlowLinkStore(db_path=str(tmp_path / "family.db"))
        alice = await store.create_account(Account(display_name="Alice"))
        gran = await store.create_account(Account(display_name="Gran"))
        other = await store.create_account(Account(display_name="Other"))
        entry = await store.create_manual_entry(ManualEntry(
            added_by_id=alice.id,
            display_name="Grandma",
            relationship_to_adder=RelationshipType.PARENT,
        ))

        def pair(account_id):
            edge = Relationship(initiator_id=account_id, target_id=alice.id, type=RelationshipType.PARENT)
            return edge, reciprocal_edge(edge)

        results = await asyncio.gather(
            store.update_manual_entry_link(entry.id, gran.id, pair(gran.id)),
            store.update_manual_entry_link(entry.id, other.id, pair(other.id)),
            return_exceptions=True,
        )

        linked = [r for r in results if not isinstance(r, Exception)]
        failed = [r for r in results if isinstance(r, Exception)]
        assert len(linked) == 1
        assert len(failed) == 1
        assert isinstance(failed[0], AlreadyLinkedError)

        winner = linked[0].linked_account_id
        stored = await store.find_manual_entry_by_id(entry.id)
        assert stored.linked_account_id == winner
        edges = await store.find_relationships_by_account(alice.id)
        assert {r.other_party(alice.id) for r in edges.all()} == {winner}
        assert len(edges.all()) == 2

    @pytest.mark.asyncio
    async def test_save_missing_account(self, sqlite_store):
        """Saving an unknown account is NotFound."""
        with pytest.raises(NotFoundError):
            await sqlite_store.save_account(Account(display_name="Nobody"))

    @pytest.mark.asyncio
    async def test_search_public_accounts(self, sqlite_store):
        """Search matches public names case-insensitively."""
        alice = await sqlite_store.create_account(
            Account(display_name="Alice Sharma", is_profile_public=True)
        )
        await sqlite_store.create_account(Account(display_name="Arjun Sharma", is_profile_public=True))
        await sqlite_store.create_account(Account(display_name="Hidden Sharma"))

        found = await sqlite_store.search_public_accounts("sharma", exclude_id=alice.id)

        assert [a.display_name for a in found] == ["Arjun Sharma"]

    @pytest.mark.asyncio
    async def test_manual_entries_in_insert_order(self, sqlite_store):
        """Entries of an adder come back in insertion order."""
        alice = await sqlite_store.create_account(Account(display_name="Alice"))
        for name in ("First", "Second", "Third"):
            await sqlite_store.create_manual_entry(
                ManualEntry(added_by_id=alice.id, display_name=name)
            )

        entries = await sqlite_store.find_manual_entries_added_by(alice.id)
        assert [e.display_name for e in entries] == ["First", "Second", "Third"]
