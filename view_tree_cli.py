"""Command-line family tree viewer - works without a web server.

Usage:
    python view_tree_cli.py               # every account
    python view_tree_cli.py <account_id>  # one account's tree
"""

import asyncio
import sys

from familytree.config import settings
from familytree.errors import NotFoundError
from familytree.graph.family.graph import FamilyGraph
from familytree.graph.relations import relation_term, visual_gender
from familytree.logging import configure_logging
from familytree.models import FamilyTree, NodeKind, RelationshipType

KIND_ICONS = {
    NodeKind.USER: "👤",
    NodeKind.MANUAL: "📝",
    NodeKind.PLACEHOLDER: "❔",
}


def relative_labels(tree: FamilyTree, keys: list[str], rel_type: RelationshipType) -> str:
    """Render relatives as "Name (mother)" using each relative's own gender."""
    labels = []
    for key in keys:
        relative = tree.get(key)
        if relative is None:
            labels.append(key)
        else:
            labels.append(f"{relative.display_name} ({relation_term(rel_type, relative.gender)})")
    return ", ".join(labels) or "-"


def print_tree(tree: FamilyTree):
    """Print every node with its adjacency lists."""
    for node in tree.nodes:
        marker = " (root)" if node.node_key == tree.root_key else ""
        print(f"\n   {KIND_ICONS[node.kind]} {node.display_name}{marker}")
        print(f"      Key: {node.node_key}")
        print(f"      Gender: {visual_gender(node.gender)}")
        if node.date_of_birth:
            print(f"      Born: {node.date_of_birth.isoformat()}")
        print(f"      Parents: {relative_labels(tree, node.parents, RelationshipType.PARENT)}")
        print(f"      Spouses: {relative_labels(tree, node.spouses, RelationshipType.SPOUSE)}")
        print(f"      Children: {relative_labels(tree, node.children, RelationshipType.CHILD)}")
        if node.siblings:
            print(f"      Siblings: {relative_labels(tree, node.siblings, RelationshipType.SIBLING)}")


async def show(graph: FamilyGraph, account_id: str):
    tree = await graph.get_family_tree(account_id)
    print(f"\n{'=' * 80}")
    print(f"🌳 Tree rooted at {tree.root.display_name if tree.root else account_id}")
    print(f"   {len(tree.nodes)} nodes")
    print_tree(tree)


async def main(argv: list[str]):
    print("=" * 80)
    print("🌳 FAMILY TREE - Command Line Viewer")
    print("=" * 80)

    configure_logging(settings.logging.level, settings.logging.json_output)
    graph = FamilyGraph()

    if len(argv) > 1:
        try:
            await show(graph, argv[1])
        except NotFoundError as e:
            print(f"\n❌ {e.message}")
            return 1
    else:
        accounts = await graph.store.search_public_accounts("", limit=1000)
        print(f"\n📊 {len(accounts)} public accounts")
        for account in accounts:
            await show(graph, account.id)

    print(f"\n{'=' * 80}")
    print("✅ Done!")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv)))
