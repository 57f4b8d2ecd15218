"""
Family Store - storage interface for accounts, manual entries and relationships.

This is a DATA LAYER contract:
- Lookups and writes only, NO business rules (mutations decide)
- Paired relationship writes are one atomic unit
- Every call is awaitable so backends may do real I/O

Implementations: InMemoryFamilyStore (tests, embedding), SQLiteFamilyStore.
"""

from abc import ABC, abstractmethod
from typing import Optional

from familytree.models import (
    Account,
    AccountRelationships,
    ManualEntry,
    Relationship,
    RelationshipType,
)


RelationshipPair = tuple[Relationship, Relationship]


class FamilyStore(ABC):
    """Abstract person and relationship store."""

    # =========================================================================
    # ACCOUNTS
    # =========================================================================

    @abstractmethod
    async def find_account_by_id(self, account_id: str) -> Optional[Account]:
        """Get account by ID."""

    @abstractmethod
    async def find_account_by_invite_code(self, invite_code: str) -> Optional[Account]:
        """Get account owning an invite code."""

    @abstractmethod
    async def create_account(self, account: Account) -> Account:
        """Insert a new account."""

    @abstractmethod
    async def save_account(self, account: Account) -> Account:
        """Replace all fields of an existing account."""

    @abstractmethod
    async def search_public_accounts(
        self,
        term: str,
        exclude_id: Optional[str] = None,
        limit: int = 10,
    ) -> list[Account]:
        """Case-insensitive name search over public profiles."""

    # =========================================================================
    # MANUAL ENTRIES
    # =========================================================================

    @abstractmethod
    async def find_manual_entry_by_id(self, entry_id: str) -> Optional[ManualEntry]:
        """Get manual entry by ID."""

    @abstractmethod
    async def create_manual_entry(self, entry: ManualEntry) -> ManualEntry:
        """Insert a new manual entry."""

    @abstractmethod
    async def find_manual_entries_added_by(self, account_id: str) -> list[ManualEntry]:
        """Manual entries created by an account, oldest first."""

    @abstractmethod
    async def update_manual_entry_link(
        self,
        entry_id: str,
        account_id: str,
        implied_pair: Optional[RelationshipPair] = None,
    ) -> ManualEntry:
        """
        Link a manual entry to an account in one atomic unit.

        Both halves of implied_pair are inserted unless an edge with the same
        (initiator, target, type) already exists. Raises AlreadyLinkedError if
        the entry is linked to a different account.
        """

    # =========================================================================
    # RELATIONSHIPS
    # =========================================================================

    @abstractmethod
    async def find_relationship_by_id(self, relationship_id: str) -> Optional[Relationship]:
        """Get relationship by ID."""

    @abstractmethod
    async def find_relationship(
        self,
        initiator_id: str,
        target_id: str,
        rel_type: RelationshipType,
    ) -> Optional[Relationship]:
        """Get relationship by its (initiator, target, type) key."""

    @abstractmethod
    async def find_relationships_by_account(self, account_id: str) -> AccountRelationships:
        """Edges where the account is initiator and where it is target."""

    @abstractmethod
    async def create_relationship_pair(
        self,
        primary: Relationship,
        reciprocal: Relationship,
    ) -> RelationshipPair:
        """
        Insert an edge and its reciprocal atomically.

        Raises DuplicateRelationshipError (and writes nothing) if either key
        already exists.
        """

    @abstractmethod
    async def delete_relationship_pair(
        self,
        primary_id: str,
        reciprocal_id: Optional[str] = None,
    ) -> None:
        """
        Delete an edge and, when given, its reciprocal atomically.

        Raises NotFoundError if the primary edge no longer exists.
        """
