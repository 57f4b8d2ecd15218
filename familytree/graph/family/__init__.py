"""Family graph package."""
from familytree.graph.family.accounts import AccountOperations
from familytree.graph.family.mutations import RelationshipMutations
from familytree.graph.family.tree import FamilyTreeBuilder
from familytree.graph.family.placeholders import PlaceholderAugmenter
from familytree.graph.family.queries import FamilyQueries
from familytree.graph.family.graph import FamilyGraph

__all__ = [
    "AccountOperations",
    "RelationshipMutations",
    "FamilyTreeBuilder",
    "PlaceholderAugmenter",
    "FamilyQueries",
    "FamilyGraph",
]
