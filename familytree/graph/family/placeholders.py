"""Placeholder parents for a viewing root without recorded parents."""

from familytree.models import FamilyTree, Gender, NodeKind, TreeNode
from familytree.graph.family.tree import user_key


def father_placeholder_key(root_account_id: str) -> str:
    return f"placeholder-father-{root_account_id}"


def mother_placeholder_key(root_account_id: str) -> str:
    return f"placeholder-mother-{root_account_id}"


class PlaceholderAugmenter:
    """
    Adds synthetic Father/Mother nodes above a root that has no parents.

    Keys derive from the root id only, so repeated builds for the same root
    produce the same placeholders. Placeholders are tagged
    NodeKind.PLACEHOLDER and never persisted.
    """

    def __init__(self, father_label: str = "Father", mother_label: str = "Mother"):
        self.father_label = father_label
        self.mother_label = mother_label

    def _placeholder(self, key: str, label: str, gender: Gender, spouse_key: str, root_key: str) -> TreeNode:
        return TreeNode(
            id=key,
            node_key=key,
            kind=NodeKind.PLACEHOLDER,
            display_name=label,
            gender=gender,
            children=[root_key],
            spouses=[spouse_key],
        )

    def augment(self, tree: FamilyTree, root_account_id: str) -> FamilyTree:
        """Return a copy of tree with placeholder parents for the root, if needed."""
        result = tree.model_copy(deep=True)
        root_key = user_key(root_account_id)
        root = result.get(root_key)
        if root is None or root.parents:
            return result

        father_key = father_placeholder_key(root_account_id)
        mother_key = mother_placeholder_key(root_account_id)
        result.nodes.append(
            self._placeholder(father_key, self.father_label, Gender.MALE, mother_key, root_key)
        )
        result.nodes.append(
            self._placeholder(mother_key, self.mother_label, Gender.FEMALE, father_key, root_key)
        )
        root.parents = [father_key, mother_key]
        return result
