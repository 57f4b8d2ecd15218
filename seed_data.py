"""
Seed script for the Family Tree Engine - populates the database with a sample family.

This script:
1. Removes the existing SQLite database
2. Registers sample accounts
3. Connects them with reciprocal relationships
4. Adds manual entries for relatives without accounts and links one of them

Run this script to start with a clean slate:
    python seed_data.py
"""

import asyncio
from pathlib import Path

from familytree.config import settings
from familytree.graph.family.graph import FamilyGraph
from familytree.graph.sqlite_store import SQLiteFamilyStore
from familytree.logging import configure_logging
from familytree.models import RegisterAccountInput, RelationshipType, UpdateProfileInput


def clear_database(db_path: str):
    """Remove the database file to start fresh."""
    print("=" * 80)
    print("CLEARING DATABASE")
    print("=" * 80)

    path = Path(db_path)
    if path.exists():
        path.unlink()
        print(f"✅ Deleted: {path}")
    else:
        print(f"⚠️  Not found: {path}")


async def seed_sample_data(graph: FamilyGraph) -> dict:
    """Create sample family data."""
    print("=" * 80)
    print("SEEDING SAMPLE FAMILY DATA")
    print("=" * 80)

    people = {}
    for name, gender, dob in [
        ("Ramesh Sharma", "M", "1955-03-14"),
        ("Padma Sharma", "F", "1958-07-02"),
        ("Arjun Sharma", "M", "1984-11-20"),
        ("Kavya Sharma", "F", "1987-01-09"),
        ("Meera Sharma", "F", "1986-05-30"),
        ("Lakshmi Rao", "F", "1932-08-15"),
    ]:
        account = await graph.register(
            RegisterAccountInput(display_name=name, gender=gender, date_of_birth=dob)
        )
        await graph.update_profile(account.id, UpdateProfileInput(is_profile_public=True))
        people[name] = account
        print(f"✅ Registered: {name} ({account.id})")

    pairs = [
        ("Ramesh Sharma", "Padma Sharma", RelationshipType.SPOUSE),
        ("Ramesh Sharma", "Arjun Sharma", RelationshipType.PARENT),
        ("Padma Sharma", "Arjun Sharma", RelationshipType.PARENT),
        ("Ramesh Sharma", "Kavya Sharma", RelationshipType.PARENT),
        ("Padma Sharma", "Kavya Sharma", RelationshipType.PARENT),
        ("Arjun Sharma", "Kavya Sharma", RelationshipType.SIBLING),
        ("Arjun Sharma", "Meera Sharma", RelationshipType.SPOUSE),
    ]
    for initiator, target, rel_type in pairs:
        await graph.create_relationship(people[initiator].id, people[target].id, rel_type)
        print(f"🔗 {initiator} is {rel_type.value} of {target}")

    arjun = people["Arjun Sharma"]
    child = await graph.add_manual_member(arjun.id, "Dev Sharma", "CHILD", gender="M", date_of_birth="2015-06-01")
    print(f"📝 Manual entry: {child.display_name} (CHILD of Arjun)")

    padma = people["Padma Sharma"]
    mother = await graph.add_manual_member(padma.id, "Lakshmi", "PARENT", gender="F")
    print(f"📝 Manual entry: {mother.display_name} (PARENT of Padma)")

    await graph.link_manual_member_to_account(mother.id, people["Lakshmi Rao"].id, padma.id)
    print("🔗 Linked manual entry Lakshmi -> Lakshmi Rao")

    return people


async def main():
    configure_logging(settings.logging.level, settings.logging.json_output)
    db_path = settings.database.db_path
    clear_database(db_path)

    graph = FamilyGraph(store=SQLiteFamilyStore(db_path))
    people = await seed_sample_data(graph)

    tree = await graph.get_family_tree(people["Arjun Sharma"].id)
    print(f"\n🌳 Tree for Arjun Sharma: {len(tree.nodes)} nodes")
    print("\n✅ Seeding complete!\n")


if __name__ == "__main__":
    asyncio.run(main())
