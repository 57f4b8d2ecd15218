"""Data models for the family tree engine."""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, Field


def new_id() -> str:
    """Generate a stable unique identifier."""
    return uuid.uuid4().hex


class Gender(str, Enum):
    """Gender of a person."""
    MALE = "male"
    FEMALE = "female"
    NON_BINARY = "non_binary"
    OTHER = "other"
    UNSPECIFIED = "unspecified"


class RelationshipType(str, Enum):
    """Edge type: the initiator IS this type OF the target."""
    PARENT = "PARENT"
    CHILD = "CHILD"
    SPOUSE = "SPOUSE"
    SIBLING = "SIBLING"


class NodeKind(str, Enum):
    """Provenance of a tree node."""
    USER = "USER"
    MANUAL = "MANUAL"
    PLACEHOLDER = "PLACEHOLDER"


# ─────────────────────────────────────────
# Stored records
# ─────────────────────────────────────────

class Account(BaseModel):
    """Registered account."""

    id: str = Field(default_factory=new_id)
    display_name: str
    gender: Gender = Gender.UNSPECIFIED
    date_of_birth: Optional[date] = None
    image_url: Optional[str] = None
    is_profile_public: bool = False
    invite_code: Optional[str] = None
    invited_by_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)


class ManualEntry(BaseModel):
    """Person entered by an account, optionally claimed later by a real account."""

    id: str = Field(default_factory=new_id)
    added_by_id: str
    display_name: str
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None
    relationship_to_adder: Optional[RelationshipType] = None
    linked_account_id: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_linked(self) -> bool:
        return self.linked_account_id is not None


class Relationship(BaseModel):
    """Directed typed edge between two accounts."""

    id: str = Field(default_factory=new_id)
    initiator_id: str
    target_id: str
    type: RelationshipType
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def key(self) -> tuple[str, str, RelationshipType]:
        """Composite uniqueness key."""
        return (self.initiator_id, self.target_id, self.type)

    def other_party(self, account_id: str) -> str:
        """Return the id on the opposite end of the edge from account_id."""
        return self.target_id if self.initiator_id == account_id else self.initiator_id


class AccountRelationships(BaseModel):
    """All edges touching one account."""

    as_initiator: list[Relationship] = Field(default_factory=list)
    as_target: list[Relationship] = Field(default_factory=list)

    def all(self) -> list[Relationship]:
        return [*self.as_initiator, *self.as_target]


# ─────────────────────────────────────────
# Mutation inputs
# ─────────────────────────────────────────

class RegisterAccountInput(BaseModel):
    """Input for registering an account."""

    display_name: Optional[str] = None
    gender: Optional[Union[Gender, str]] = None
    date_of_birth: Optional[Union[date, str]] = None
    image_url: Optional[str] = None
    invite_code: Optional[str] = None


class UpdateProfileInput(BaseModel):
    """Partial profile update; unset fields are left unchanged."""

    display_name: Optional[str] = None
    gender: Optional[Union[Gender, str]] = None
    date_of_birth: Optional[Union[date, str]] = None
    image_url: Optional[str] = None
    is_profile_public: Optional[bool] = None


class CreateRelationshipInput(BaseModel):
    """Input for creating a reciprocal relationship pair."""

    target_id: str
    type: Union[RelationshipType, str]


class AddManualMemberInput(BaseModel):
    """Input for adding a manual family member."""

    name: Optional[str] = None
    relationship_to_adder: Optional[Union[RelationshipType, str]] = None
    gender: Optional[Union[Gender, str]] = None
    date_of_birth: Optional[Union[date, str]] = None


class LinkManualMemberInput(BaseModel):
    """Input for linking a manual entry to a registered account."""

    manual_member_id: str
    account_id: str


# ─────────────────────────────────────────
# Tree view
# ─────────────────────────────────────────

class TreeNode(BaseModel):
    """Renderable node combining accounts, manual entries and placeholders."""

    id: str
    node_key: str
    kind: NodeKind
    display_name: str
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None
    image_url: Optional[str] = None
    parents: list[str] = Field(default_factory=list)
    spouses: list[str] = Field(default_factory=list)
    children: list[str] = Field(default_factory=list)
    siblings: list[str] = Field(default_factory=list)

    @property
    def is_placeholder(self) -> bool:
        return self.kind == NodeKind.PLACEHOLDER


class FamilyTree(BaseModel):
    """Result of a tree build: ordered nodes plus the root key."""

    root_key: str
    nodes: list[TreeNode] = Field(default_factory=list)

    def get(self, node_key: str) -> Optional[TreeNode]:
        """Get node by key."""
        for node in self.nodes:
            if node.node_key == node_key:
                return node
        return None

    @property
    def root(self) -> Optional[TreeNode]:
        return self.get(self.root_key)

    def keys(self) -> list[str]:
        return [node.node_key for node in self.nodes]
