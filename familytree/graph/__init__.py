"""Graph package - stores and family graph operations."""

from familytree.graph.store import FamilyStore
from familytree.graph.memory_store import InMemoryFamilyStore
from familytree.graph.sqlite_store import SQLiteFamilyStore
from familytree.graph.family.graph import FamilyGraph

__all__ = [
    "FamilyStore",
    "InMemoryFamilyStore",
    "SQLiteFamilyStore",
    "FamilyGraph"
]
