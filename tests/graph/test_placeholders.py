"""Test placeholder parent augmentation."""

import pytest

from familytree.graph.family.placeholders import (
    PlaceholderAugmenter,
    father_placeholder_key,
    mother_placeholder_key,
)
from familytree.graph.family.tree import user_key
from familytree.models import FamilyTree, Gender, NodeKind, RelationshipType, TreeNode


def _tree(root_id: str = "alice", parents: list[str] | None = None) -> FamilyTree:
    root = TreeNode(
        id=root_id,
        node_key=user_key(root_id),
        kind=NodeKind.USER,
        display_name="Alice",
        parents=parents or [],
    )
    return FamilyTree(root_key=root.node_key, nodes=[root])


class TestPlaceholderAugmenter:
    """Tests for synthetic Father/Mother nodes."""

    def test_adds_father_and_mother(self):
        """Root without parents gets two placeholder parents."""
        result = PlaceholderAugmenter().augment(_tree(), "alice")

        father = result.get(father_placeholder_key("alice"))
        mother = result.get(mother_placeholder_key("alice"))
        assert result.root.parents == [father.node_key, mother.node_key]

        assert father.kind == NodeKind.PLACEHOLDER
        assert father.is_placeholder
        assert father.display_name == "Father"
        assert father.gender == Gender.MALE
        assert mother.display_name == "Mother"
        assert mother.gender == Gender.FEMALE

        assert father.spouses == [mother.node_key]
        assert mother.spouses == [father.node_key]
        assert father.children == [result.root_key]
        assert mother.children == [result.root_key]

    def test_keys_derive_from_root(self):
        """Placeholder keys are stable for the same root."""
        assert father_placeholder_key("abc") == "placeholder-father-abc"
        assert mother_placeholder_key("abc") == "placeholder-mother-abc"

        first = PlaceholderAugmenter().augment(_tree(), "alice")
        second = PlaceholderAugmenter().augment(_tree(), "alice")
        assert first == second

    def test_input_not_mutated(self):
        """The raw tree is left unchanged."""
        tree = _tree()
        PlaceholderAugmenter().augment(tree, "alice")
        assert len(tree.nodes) == 1
        assert tree.root.parents == []

    def test_idempotent(self):
        """Augmenting twice adds nothing more."""
        augmenter = PlaceholderAugmenter()
        once = augmenter.augment(_tree(), "alice")
        twice = augmenter.augment(once, "alice")
        assert twice == once
        assert len(twice.nodes) == 3

    def test_root_with_parents_unchanged(self):
        """Recorded parents suppress placeholders."""
        tree = _tree(parents=["user-mom"])
        result = PlaceholderAugmenter().augment(tree, "alice")
        assert result == tree
        assert all(not node.is_placeholder for node in result.nodes)

    def test_missing_root_unchanged(self):
        """Unknown root leaves the tree as is."""
        tree = _tree()
        result = PlaceholderAugmenter().augment(tree, "someone-else")
        assert result == tree

    def test_custom_labels(self):
        """Labels are configurable."""
        result = PlaceholderAugmenter(father_label="Papa", mother_label="Mama").augment(_tree(), "alice")
        assert result.get(father_placeholder_key("alice")).display_name == "Papa"
        assert result.get(mother_placeholder_key("alice")).display_name == "Mama"


class TestTreeWithPlaceholders:
    """Tests for the query-level tree with placeholders."""

    @pytest.mark.asyncio
    async def test_orphan_root(self, graph, make_account):
        """Account with no parents shows Father and Mother placeholders."""
        alice = await make_account("Alice")

        tree = await graph.get_family_tree(alice.id)

        assert tree.root.parents == [
            father_placeholder_key(alice.id),
            mother_placeholder_key(alice.id),
        ]
        assert len(tree.nodes) == 3

    @pytest.mark.asyncio
    async def test_without_placeholders(self, graph, make_account):
        """Placeholders can be switched off per call."""
        alice = await make_account("Alice")
        tree = await graph.get_family_tree(alice.id, with_placeholders=False)
        assert tree.root.parents == []
        assert len(tree.nodes) == 1

    @pytest.mark.asyncio
    async def test_only_root_is_augmented(self, graph, make_account):
        """Relatives without parents are not given placeholders."""
        alice = await make_account("Alice")
        kid = await make_account("Kid")
        await graph.create_relationship(alice.id, kid.id, RelationshipType.PARENT)

        tree = await graph.get_family_tree(kid.id)
        assert tree.root.parents == [user_key(alice.id)]
        assert not any(node.is_placeholder for node in tree.nodes)

        tree = await graph.get_family_tree(alice.id)
        placeholders = [node for node in tree.nodes if node.is_placeholder]
        assert len(placeholders) == 2
        assert all(node.children == [user_key(alice.id)] for node in placeholders)
