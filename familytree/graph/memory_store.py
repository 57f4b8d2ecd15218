"""In-memory FamilyStore for tests and embedding."""

from typing import Optional

from familytree.errors import AlreadyLinkedError, DuplicateRelationshipError, NotFoundError
from familytree.graph.store import FamilyStore, RelationshipPair
from familytree.models import (
    Account,
    AccountRelationships,
    ManualEntry,
    Relationship,
    RelationshipType,
)


class InMemoryFamilyStore(FamilyStore):
    """
    Dict-backed store.

    Methods never await internally, so each call is atomic under asyncio.
    Records are copied on the way in and out.
    """

    def __init__(self):
        self.accounts: dict[str, Account] = {}
        self.manual_entries: dict[str, ManualEntry] = {}
        self.relationships: dict[str, Relationship] = {}

    # ─────────────────────────────────────────
    # Accounts
    # ─────────────────────────────────────────

    async def find_account_by_id(self, account_id: str) -> Optional[Account]:
        account = self.accounts.get(account_id)
        return account.model_copy() if account else None

    async def find_account_by_invite_code(self, invite_code: str) -> Optional[Account]:
        for account in self.accounts.values():
            if invite_code and account.invite_code == invite_code:
                return account.model_copy()
        return None

    async def create_account(self, account: Account) -> Account:
        self.accounts[account.id] = account.model_copy()
        return account

    async def save_account(self, account: Account) -> Account:
        if account.id not in self.accounts:
            raise NotFoundError("Account", account.id)
        self.accounts[account.id] = account.model_copy()
        return account

    async def search_public_accounts(
        self,
        term: str,
        exclude_id: Optional[str] = None,
        limit: int = 10,
    ) -> list[Account]:
        needle = term.lower()
        matches = [
            a.model_copy()
            for a in self.accounts.values()
            if a.is_profile_public and a.id != exclude_id and needle in a.display_name.lower()
        ]
        matches.sort(key=lambda a: a.display_name)
        return matches[:limit]

    # ─────────────────────────────────────────
    # Manual entries
    # ─────────────────────────────────────────

    async def find_manual_entry_by_id(self, entry_id: str) -> Optional[ManualEntry]:
        entry = self.manual_entries.get(entry_id)
        return entry.model_copy() if entry else None

    async def create_manual_entry(self, entry: ManualEntry) -> ManualEntry:
        self.manual_entries[entry.id] = entry.model_copy()
        return entry

    async def find_manual_entries_added_by(self, account_id: str) -> list[ManualEntry]:
        return [
            e.model_copy() for e in self.manual_entries.values()
            if e.added_by_id == account_id
        ]

    async def update_manual_entry_link(
        self,
        entry_id: str,
        account_id: str,
        implied_pair: Optional[RelationshipPair] = None,
    ) -> ManualEntry:
        entry = self.manual_entries.get(entry_id)
        if entry is None:
            raise NotFoundError("Manual entry", entry_id)
        if entry.linked_account_id and entry.linked_account_id != account_id:
            raise AlreadyLinkedError(entry_id, entry.linked_account_id)

        entry.linked_account_id = account_id
        if implied_pair:
            for edge in implied_pair:
                if self._find_by_key(edge.initiator_id, edge.target_id, edge.type) is None:
                    self.relationships[edge.id] = edge.model_copy()
        return entry.model_copy()

    # ─────────────────────────────────────────
    # Relationships
    # ─────────────────────────────────────────

    def _find_by_key(self, initiator_id: str, target_id: str, rel_type: RelationshipType) -> Optional[Relationship]:
        for rel in self.relationships.values():
            if rel.key == (initiator_id, target_id, rel_type):
                return rel
        return None

    async def find_relationship_by_id(self, relationship_id: str) -> Optional[Relationship]:
        rel = self.relationships.get(relationship_id)
        return rel.model_copy() if rel else None

    async def find_relationship(
        self,
        initiator_id: str,
        target_id: str,
        rel_type: RelationshipType,
    ) -> Optional[Relationship]:
        rel = self._find_by_key(initiator_id, target_id, rel_type)
        return rel.model_copy() if rel else None

    async def find_relationships_by_account(self, account_id: str) -> AccountRelationships:
        result = AccountRelationships()
        for rel in self.relationships.values():
            if rel.initiator_id == account_id:
                result.as_initiator.append(rel.model_copy())
            if rel.target_id == account_id:
                result.as_target.append(rel.model_copy())
        return result

    async def create_relationship_pair(
        self,
        primary: Relationship,
        reciprocal: Relationship,
    ) -> RelationshipPair:
        for edge in (primary, reciprocal):
            if self._find_by_key(edge.initiator_id, edge.target_id, edge.type) is not None:
                raise DuplicateRelationshipError(edge.initiator_id, edge.target_id, edge.type.value)
        self.relationships[primary.id] = primary.model_copy()
        self.relationships[reciprocal.id] = reciprocal.model_copy()
        return primary, reciprocal

    async def delete_relationship_pair(
        self,
        primary_id: str,
        reciprocal_id: Optional[str] = None,
    ) -> None:
        if primary_id not in self.relationships:
            raise NotFoundError("Relationship", primary_id)
        del self.relationships[primary_id]
        if reciprocal_id:
            self.relationships.pop(reciprocal_id, None)
