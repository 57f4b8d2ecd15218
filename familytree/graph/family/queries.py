"""Family tree queries."""

from typing import Optional

from familytree.graph.family.placeholders import PlaceholderAugmenter
from familytree.graph.family.tree import FamilyTreeBuilder
from familytree.graph.store import FamilyStore
from familytree.models import FamilyTree, ManualEntry, Relationship


class FamilyQueries:
    """Read-only queries over the family graph."""

    def __init__(
        self,
        store: FamilyStore,
        builder: Optional[FamilyTreeBuilder] = None,
        augmenter: Optional[PlaceholderAugmenter] = None,
    ):
        self.store = store
        self.builder = builder or FamilyTreeBuilder(store)
        self.augmenter = augmenter or PlaceholderAugmenter()

    async def get_manual_members(self, account_id: str) -> list[ManualEntry]:
        """Manual entries added by an account, newest first."""
        entries = await self.store.find_manual_entries_added_by(account_id)
        return sorted(reversed(entries), key=lambda e: e.created_at, reverse=True)

    async def get_relationships(self, account_id: str) -> list[Relationship]:
        """Relationships where the account is initiator or target, newest first."""
        edges = await self.store.find_relationships_by_account(account_id)
        unique = {rel.id: rel for rel in edges.all()}
        return sorted(reversed(unique.values()), key=lambda r: r.created_at, reverse=True)

    async def get_tree_data(self, account_id: str, with_placeholders: bool = True) -> FamilyTree:
        """Tree for an account, with placeholder parents for the root if requested."""
        tree = await self.builder.build(account_id)
        if with_placeholders:
            tree = self.augmenter.augment(tree, account_id)
        return tree
