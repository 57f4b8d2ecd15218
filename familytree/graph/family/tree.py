"""Family tree builder: breadth-first traversal into a unified node list."""

from collections import deque
from enum import Enum
from typing import Optional

from familytree.errors import NotFoundError
from familytree.graph.store import FamilyStore
from familytree.logging import get_logger
from familytree.models import (
    Account,
    FamilyTree,
    ManualEntry,
    NodeKind,
    RelationshipType,
    TreeNode,
)

logger = get_logger(__name__)


def user_key(account_id: str) -> str:
    return f"user-{account_id}"


def manual_key(entry_id: str) -> str:
    return f"manual-{entry_id}"


def _append_unique(keys: list[str], key: str) -> None:
    if key not in keys:
        keys.append(key)


def link_nodes(holder: TreeNode, other: TreeNode, rel_type: RelationshipType) -> None:
    """
    Record "holder IS rel_type OF other" on both nodes.

    PARENT/CHILD fill parents and children, SPOUSE and SIBLING are symmetric.
    """
    if rel_type == RelationshipType.PARENT:
        _append_unique(other.parents, holder.node_key)
        _append_unique(holder.children, other.node_key)
    elif rel_type == RelationshipType.CHILD:
        _append_unique(holder.parents, other.node_key)
        _append_unique(other.children, holder.node_key)
    elif rel_type == RelationshipType.SPOUSE:
        _append_unique(holder.spouses, other.node_key)
        _append_unique(other.spouses, holder.node_key)
    elif rel_type == RelationshipType.SIBLING:
        _append_unique(holder.siblings, other.node_key)
        _append_unique(other.siblings, holder.node_key)


def account_to_node(account: Account) -> TreeNode:
    """Convert an account to a USER node."""
    return TreeNode(
        id=account.id,
        node_key=user_key(account.id),
        kind=NodeKind.USER,
        display_name=account.display_name or "Unknown User",
        gender=account.gender,
        date_of_birth=account.date_of_birth,
        image_url=account.image_url,
    )


def manual_entry_to_node(entry: ManualEntry) -> TreeNode:
    """Convert a manual entry to a MANUAL node."""
    return TreeNode(
        id=entry.id,
        node_key=manual_key(entry.id),
        kind=NodeKind.MANUAL,
        display_name=entry.display_name,
        gender=entry.gender,
        date_of_birth=entry.date_of_birth,
    )


class VisitState(str, Enum):
    """Traversal state of an account."""
    UNVISITED = "unvisited"
    QUEUED = "queued"
    PROCESSED = "processed"


class Traversal:
    """Work queue plus per-account visit state."""

    def __init__(self):
        self._queue: deque[str] = deque()
        self._states: dict[str, VisitState] = {}

    def __bool__(self) -> bool:
        return bool(self._queue)

    def state(self, account_id: str) -> VisitState:
        return self._states.get(account_id, VisitState.UNVISITED)

    def enqueue(self, account_id: str) -> bool:
        """Queue an account once; returns False if already queued or processed."""
        if self.state(account_id) != VisitState.UNVISITED:
            return False
        self._states[account_id] = VisitState.QUEUED
        self._queue.append(account_id)
        return True

    def pop(self) -> str:
        return self._queue.popleft()

    def mark_processed(self, account_id: str) -> None:
        self._states[account_id] = VisitState.PROCESSED

    @property
    def processed(self) -> set[str]:
        return {k for k, v in self._states.items() if v == VisitState.PROCESSED}


class NodeIndex:
    """Insertion-ordered nodes by node key."""

    def __init__(self):
        self.by_key: dict[str, TreeNode] = {}

    def get(self, key: str) -> Optional[TreeNode]:
        return self.by_key.get(key)

    def add_account(self, account: Account) -> TreeNode:
        """Materialize or reuse the USER node of an account."""
        key = user_key(account.id)
        if key not in self.by_key:
            self.by_key[key] = account_to_node(account)
        return self.by_key[key]

    def add_manual_entry(self, entry: ManualEntry) -> TreeNode:
        key = manual_key(entry.id)
        if key not in self.by_key:
            self.by_key[key] = manual_entry_to_node(entry)
        return self.by_key[key]

    def dedupe(self) -> None:
        """Remove repeated keys from every adjacency list."""
        for node in self.by_key.values():
            node.parents = list(dict.fromkeys(node.parents))
            node.spouses = list(dict.fromkeys(node.spouses))
            node.children = list(dict.fromkeys(node.children))
            node.siblings = list(dict.fromkeys(node.siblings))

    def nodes(self) -> list[TreeNode]:
        return list(self.by_key.values())


class FamilyTreeBuilder:
    """
    Builds a FamilyTree from the current store state.

    Starting at one account, the builder walks relationship edges breadth
    first. Every reachable account becomes a USER node exactly once;
    manual entries become MANUAL nodes attached to the account that added
    them and are never traversed further. A manual entry linked to an
    existing account is folded into that account's USER node.

    Reads are issued sequentially per dequeued account and are not a
    snapshot: concurrent writes may be partially visible.
    """

    def __init__(self, store: FamilyStore):
        self.store = store

    async def build(self, start_account_id: str) -> FamilyTree:
        """Build the tree reachable from start_account_id."""
        start = await self.store.find_account_by_id(start_account_id)
        if start is None:
            raise NotFoundError("Account", start_account_id)

        index = NodeIndex()
        traversal = Traversal()
        accounts: dict[str, Account] = {start.id: start}
        traversal.enqueue(start.id)

        while traversal:
            account_id = traversal.pop()
            account = accounts.pop(account_id, None) or await self.store.find_account_by_id(account_id)
            if account is None:
                logger.warning("tree_account_missing", account_id=account_id)
                traversal.mark_processed(account_id)
                continue

            node = index.add_account(account)
            await self._visit_relationships(account, node, index, traversal, accounts)
            await self._visit_manual_entries(account, node, index, traversal, accounts)
            traversal.mark_processed(account_id)

        index.dedupe()
        tree = FamilyTree(root_key=user_key(start.id), nodes=index.nodes())
        logger.info(
            "family_tree_built",
            start_account_id=start.id,
            nodes=len(tree.nodes),
            accounts=len(traversal.processed),
        )
        return tree

    async def _account_node(
        self,
        account_id: str,
        index: NodeIndex,
        traversal: Traversal,
        accounts: dict[str, Account],
    ) -> Optional[TreeNode]:
        """Reuse or fetch an account's node and queue it for traversal."""
        node = index.get(user_key(account_id))
        if node is None:
            account = await self.store.find_account_by_id(account_id)
            if account is None:
                return None
            node = index.add_account(account)
            if traversal.state(account_id) == VisitState.UNVISITED:
                accounts[account_id] = account
        traversal.enqueue(account_id)
        return node

    async def _visit_relationships(
        self,
        account: Account,
        node: TreeNode,
        index: NodeIndex,
        traversal: Traversal,
        accounts: dict[str, Account],
    ) -> None:
        edges = await self.store.find_relationships_by_account(account.id)
        for rel in edges.all():
            if rel.initiator_id == rel.target_id:
                logger.warning("tree_self_loop_skipped", relationship_id=rel.id)
                continue
            other_id = rel.other_party(account.id)
            other = await self._account_node(other_id, index, traversal, accounts)
            if other is None:
                logger.warning(
                    "tree_dangling_relationship",
                    relationship_id=rel.id,
                    missing_account_id=other_id,
                )
                continue

            if rel.initiator_id == account.id:
                link_nodes(node, other, rel.type)
            else:
                link_nodes(other, node, rel.type)

    async def _visit_manual_entries(
        self,
        account: Account,
        node: TreeNode,
        index: NodeIndex,
        traversal: Traversal,
        accounts: dict[str, Account],
    ) -> None:
        entries = await self.store.find_manual_entries_added_by(account.id)
        for entry in entries:
            member = None
            if entry.linked_account_id and entry.linked_account_id != account.id:
                member = await self._account_node(entry.linked_account_id, index, traversal, accounts)
            if member is None:
                member = index.add_manual_entry(entry)

            if entry.relationship_to_adder:
                link_nodes(member, node, entry.relationship_to_adder)
