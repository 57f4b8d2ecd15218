"""Main FamilyGraph facade combining all operations."""

from datetime import date
from typing import Optional, Union

from familytree.config import Settings, settings as default_settings
from familytree.graph.family.accounts import AccountOperations
from familytree.graph.family.mutations import RelationshipMutations
from familytree.graph.family.placeholders import PlaceholderAugmenter
from familytree.graph.family.queries import FamilyQueries
from familytree.graph.family.tree import FamilyTreeBuilder
from familytree.graph.sqlite_store import SQLiteFamilyStore
from familytree.graph.store import FamilyStore
from familytree.models import (
    Account,
    AddManualMemberInput,
    CreateRelationshipInput,
    FamilyTree,
    Gender,
    LinkManualMemberInput,
    ManualEntry,
    RegisterAccountInput,
    Relationship,
    RelationshipType,
    UpdateProfileInput,
)


class FamilyGraph:
    """
    Main interface for family graph operations.

    Combines account, relationship, and tree operations over one store.

    Usage:
        graph = FamilyGraph()
        alice = await graph.register(RegisterAccountInput(display_name="Alice"))
        bob = await graph.register(RegisterAccountInput(display_name="Bob"))
        await graph.create_relationship(alice.id, bob.id, RelationshipType.PARENT)
        tree = await graph.get_family_tree(bob.id)
    """

    def __init__(self, store: Optional[FamilyStore] = None, config: Optional[Settings] = None):
        self.config = config or default_settings
        self.store = store or SQLiteFamilyStore(self.config.database.db_path)

        # Compose operations
        self.accounts = AccountOperations(self.store)
        self.mutations = RelationshipMutations(self.store)
        self.builder = FamilyTreeBuilder(self.store)
        self.augmenter = PlaceholderAugmenter(
            father_label=self.config.tree.father_label,
            mother_label=self.config.tree.mother_label,
        )
        self.queries = FamilyQueries(self.store, self.builder, self.augmenter)

    # ─────────────────────────────────────────
    # Account operations (delegated)
    # ─────────────────────────────────────────

    async def register(self, data: RegisterAccountInput) -> Account:
        return await self.accounts.register(data)

    async def update_profile(self, account_id: str, data: UpdateProfileInput) -> Account:
        return await self.accounts.update_profile(account_id, data)

    async def generate_invite_code(self, account_id: str) -> str:
        return await self.accounts.generate_invite_code(account_id)

    async def get_profile(self, requesting_account_id: Optional[str], account_id: str) -> Account:
        return await self.accounts.get_profile(requesting_account_id, account_id)

    async def search_accounts(self, requesting_account_id: str, term: str) -> list[Account]:
        return await self.accounts.search(requesting_account_id, term)

    # ─────────────────────────────────────────
    # Relationship operations (delegated)
    # ─────────────────────────────────────────

    async def create_relationship(
        self,
        initiator_id: str,
        target_id: str,
        rel_type: Union[RelationshipType, str],
    ) -> Relationship:
        return await self.mutations.create_relationship(initiator_id, target_id, rel_type)

    async def delete_relationship(self, relationship_id: str, requesting_account_id: str) -> bool:
        return await self.mutations.delete_relationship(relationship_id, requesting_account_id)

    async def add_manual_member(
        self,
        adder_id: str,
        name: Optional[str],
        relationship_to_adder: Optional[Union[RelationshipType, str]],
        gender: Optional[Union[Gender, str]] = None,
        date_of_birth: Optional[Union[date, str]] = None,
    ) -> ManualEntry:
        return await self.mutations.add_manual_member(
            adder_id, name, relationship_to_adder, gender=gender, date_of_birth=date_of_birth
        )

    async def link_manual_member_to_account(
        self,
        manual_member_id: str,
        target_account_id: str,
        requesting_account_id: str,
    ) -> bool:
        return await self.mutations.link_manual_member_to_account(
            manual_member_id, target_account_id, requesting_account_id
        )

    async def apply(
        self,
        requesting_account_id: str,
        data: Union[CreateRelationshipInput, AddManualMemberInput, LinkManualMemberInput],
    ) -> Union[Relationship, ManualEntry, bool]:
        """Dispatch an explicit mutation input on behalf of an account."""
        if isinstance(data, CreateRelationshipInput):
            return await self.mutations.create_relationship_from_input(requesting_account_id, data)
        if isinstance(data, AddManualMemberInput):
            return await self.mutations.add_manual_member_from_input(requesting_account_id, data)
        if isinstance(data, LinkManualMemberInput):
            return await self.mutations.link_manual_member_from_input(requesting_account_id, data)
        raise TypeError(f"Unsupported mutation input: {type(data).__name__}")

    # ─────────────────────────────────────────
    # Query operations (delegated)
    # ─────────────────────────────────────────

    async def build_family_tree(self, start_account_id: str) -> FamilyTree:
        """Raw tree without placeholders."""
        return await self.builder.build(start_account_id)

    async def get_family_tree(
        self,
        account_id: str,
        with_placeholders: Optional[bool] = None,
    ) -> FamilyTree:
        if with_placeholders is None:
            with_placeholders = self.config.tree.add_placeholders
        return await self.queries.get_tree_data(account_id, with_placeholders)

    async def get_manual_members(self, account_id: str) -> list[ManualEntry]:
        return await self.queries.get_manual_members(account_id)

    async def get_relationships(self, account_id: str) -> list[Relationship]:
        return await self.queries.get_relationships(account_id)
