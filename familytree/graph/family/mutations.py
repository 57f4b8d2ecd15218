"""Relationship mutations: reciprocal pairs, manual members and linking."""

from datetime import date, datetime
from typing import Optional, Union

from familytree.errors import (
    AlreadyLinkedError,
    ForbiddenError,
    NotFoundError,
    SelfRelationshipError,
    ValidationError,
)
from familytree.graph.relations import (
    map_gender,
    parse_relationship_type,
    reciprocal_edge,
)
from familytree.graph.store import FamilyStore
from familytree.logging import get_logger
from familytree.models import (
    Account,
    AddManualMemberInput,
    CreateRelationshipInput,
    Gender,
    LinkManualMemberInput,
    ManualEntry,
    Relationship,
    RelationshipType,
)

logger = get_logger(__name__)


def parse_date(value: Optional[Union[date, str]], field: str = "date_of_birth") -> Optional[date]:
    """Parse an optional calendar date from a date or ISO string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValidationError(
            f"Invalid date format for {field}: {value!r}", field=field
        ) from None


def require_text(value: Optional[str], field: str) -> str:
    """Return stripped text or raise ValidationError naming the field."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"Missing required field: {field}", field=field)
    return text


class RelationshipMutations:
    """
    Mutations that keep relationship edges paired.

    Every edge (A, T, B) is written and removed together with
    (B, reciprocal(T), A) through a single store call.
    """

    def __init__(self, store: FamilyStore):
        self.store = store

    async def _require_account(self, account_id: str) -> Account:
        account = await self.store.find_account_by_id(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

    # ─────────────────────────────────────────
    # Relationship pairs
    # ─────────────────────────────────────────

    async def create_relationship(
        self,
        initiator_id: str,
        target_id: str,
        rel_type: Union[RelationshipType, str],
    ) -> Relationship:
        """Create initiator -> target edge plus its reciprocal; returns the primary edge."""
        if initiator_id == target_id:
            raise SelfRelationshipError(initiator_id)
        rel_type = parse_relationship_type(rel_type)
        await self._require_account(initiator_id)
        await self._require_account(target_id)

        primary = Relationship(initiator_id=initiator_id, target_id=target_id, type=rel_type)
        reciprocal = reciprocal_edge(primary)
        await self.store.create_relationship_pair(primary, reciprocal)

        logger.info(
            "relationship_created",
            relationship_id=primary.id,
            initiator_id=initiator_id,
            target_id=target_id,
            type=rel_type.value,
            reciprocal_type=reciprocal.type.value,
        )
        return primary

    async def create_relationship_from_input(
        self,
        initiator_id: str,
        data: CreateRelationshipInput,
    ) -> Relationship:
        return await self.create_relationship(initiator_id, data.target_id, data.type)

    async def delete_relationship(self, relationship_id: str, requesting_account_id: str) -> bool:
        """Delete an edge and its reciprocal. Only the initiator may delete."""
        relationship = await self.store.find_relationship_by_id(relationship_id)
        if relationship is None:
            raise NotFoundError("Relationship", relationship_id)
        if relationship.initiator_id != requesting_account_id:
            raise ForbiddenError("You can only delete relationships you initiated")

        mirror = reciprocal_edge(relationship)
        reciprocal = await self.store.find_relationship(
            mirror.initiator_id, mirror.target_id, mirror.type
        )
        if reciprocal is None:
            logger.warning(
                "reciprocal_relationship_missing",
                relationship_id=relationship_id,
                expected_initiator_id=mirror.initiator_id,
                expected_target_id=mirror.target_id,
                expected_type=mirror.type.value,
            )

        await self.store.delete_relationship_pair(
            relationship_id, reciprocal.id if reciprocal else None
        )
        logger.info(
            "relationship_deleted",
            relationship_id=relationship_id,
            reciprocal_id=reciprocal.id if reciprocal else None,
        )
        return True

    # ─────────────────────────────────────────
    # Manual members
    # ─────────────────────────────────────────

    async def add_manual_member(
        self,
        adder_id: str,
        name: Optional[str],
        relationship_to_adder: Optional[Union[RelationshipType, str]],
        gender: Optional[Union[Gender, str]] = None,
        date_of_birth: Optional[Union[date, str]] = None,
    ) -> ManualEntry:
        """
        Create a manual entry owned by adder_id.

        No relationship edges are created; the connection lives in
        relationship_to_adder until the entry is linked to an account.
        """
        name = require_text(name, "name")
        if relationship_to_adder is None or not str(relationship_to_adder).strip():
            raise ValidationError(
                "Missing required field: relationship_to_adder", field="relationship_to_adder"
            )
        rel_type = parse_relationship_type(relationship_to_adder)
        dob = parse_date(date_of_birth)
        await self._require_account(adder_id)

        entry = ManualEntry(
            added_by_id=adder_id,
            display_name=name,
            gender=map_gender(gender),
            date_of_birth=dob,
            relationship_to_adder=rel_type,
        )
        await self.store.create_manual_entry(entry)
        logger.info(
            "manual_member_added",
            manual_entry_id=entry.id,
            added_by_id=adder_id,
            relationship_to_adder=rel_type.value,
        )
        return entry

    async def add_manual_member_from_input(
        self,
        adder_id: str,
        data: AddManualMemberInput,
    ) -> ManualEntry:
        return await self.add_manual_member(
            adder_id,
            data.name,
            data.relationship_to_adder,
            gender=data.gender,
            date_of_birth=data.date_of_birth,
        )

    async def link_manual_member_to_account(
        self,
        manual_member_id: str,
        target_account_id: str,
        requesting_account_id: str,
    ) -> bool:
        """
        Link a manual entry to a registered account.

        The adder may link its own entry; the target account may claim it.
        When the entry records its relation to the adder, the matching real
        relationship pair between adder and target is ensured in the same
        store call. Re-linking to the same account is a no-op.
        """
        entry = await self.store.find_manual_entry_by_id(manual_member_id)
        if entry is None:
            raise NotFoundError("Manual entry", manual_member_id)
        if requesting_account_id not in (entry.added_by_id, target_account_id):
            raise ForbiddenError("You do not have permission to link this member")

        if entry.linked_account_id:
            if entry.linked_account_id == target_account_id:
                return True
            raise AlreadyLinkedError(manual_member_id, entry.linked_account_id)

        await self._require_account(target_account_id)

        if entry.added_by_id == target_account_id:
            raise SelfRelationshipError(target_account_id)

        implied_pair = None
        if entry.relationship_to_adder:
            # Entry is `relationship_to_adder` of the adder, so the target
            # account now stands in that relation to the adder.
            primary = Relationship(
                initiator_id=target_account_id,
                target_id=entry.added_by_id,
                type=entry.relationship_to_adder,
            )
            implied_pair = (primary, reciprocal_edge(primary))
        else:
            logger.warning(
                "manual_member_without_relationship",
                manual_entry_id=manual_member_id,
            )

        await self.store.update_manual_entry_link(manual_member_id, target_account_id, implied_pair)
        logger.info(
            "manual_member_linked",
            manual_entry_id=manual_member_id,
            account_id=target_account_id,
            added_by_id=entry.added_by_id,
            relationship_to_adder=(
                entry.relationship_to_adder.value if entry.relationship_to_adder else None
            ),
        )
        return True

    async def link_manual_member_from_input(
        self,
        requesting_account_id: str,
        data: LinkManualMemberInput,
    ) -> bool:
        return await self.link_manual_member_to_account(
            data.manual_member_id, data.account_id, requesting_account_id
        )
