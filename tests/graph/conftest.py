"""Pytest fixtures for graph tests."""

import pytest

from familytree.config import Settings
from familytree.graph.family.graph import FamilyGraph
from familytree.graph.memory_store import InMemoryFamilyStore
from familytree.graph.sqlite_store import SQLiteFamilyStore
from familytree.models import Account, Gender


@pytest.fixture
def store():
    """In-memory store."""
    return InMemoryFamilyStore()


@pytest.fixture
def sqlite_store(tmp_path):
    """SQLite store in a temporary directory."""
    return SQLiteFamilyStore(db_path=str(tmp_path / "family.db"))


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path):
    """Both store implementations."""
    if request.param == "memory":
        return InMemoryFamilyStore()
    return SQLiteFamilyStore(db_path=str(tmp_path / "family.db"))


@pytest.fixture
def graph(any_store):
    """FamilyGraph over each store implementation."""
    return FamilyGraph(store=any_store, config=Settings())


@pytest.fixture
def make_account(any_store):
    """Factory inserting an account directly into the store."""
    async def _make(name: str, gender: Gender = Gender.UNSPECIFIED, **kwargs) -> Account:
        return await any_store.create_account(Account(display_name=name, gender=gender, **kwargs))
    return _make


@pytest.fixture
def make_memory_account(store):
    """Factory inserting an account into the in-memory store."""
    async def _make(name: str, gender: Gender = Gender.UNSPECIFIED, **kwargs) -> Account:
        return await store.create_account(Account(display_name=name, gender=gender, **kwargs))
    return _make
