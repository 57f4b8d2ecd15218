"""Error kinds raised by the family tree engine.

Each error carries a stable ``code`` so a transport layer can map it to a
user-facing message without inspecting the exception type.
"""

from typing import Optional


class FamilyTreeError(Exception):
    """Base class for all engine errors."""
    
    code = "INTERNAL_SERVER_ERROR"
    
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(FamilyTreeError):
    """Referenced account, manual entry or relationship does not exist."""
    
    code = "NOT_FOUND"
    
    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class ForbiddenError(FamilyTreeError):
    """Requester lacks permission for the mutation."""
    
    code = "FORBIDDEN"


class SelfRelationshipError(FamilyTreeError):
    """Initiator and target are the same identity."""
    
    code = "BAD_USER_INPUT"
    
    def __init__(self, account_id: str):
        super().__init__(f"Cannot create a relationship between {account_id} and itself")
        self.account_id = account_id


class DuplicateRelationshipError(FamilyTreeError):
    """An edge with the same (initiator, target, type) already exists."""
    
    code = "BAD_REQUEST"
    
    def __init__(self, initiator_id: str, target_id: str, rel_type: str):
        super().__init__(
            f"A {rel_type} relationship from {initiator_id} to {target_id} already exists"
        )
        self.initiator_id = initiator_id
        self.target_id = target_id
        self.rel_type = rel_type


class AlreadyLinkedError(FamilyTreeError):
    """Manual entry is already linked to a different account."""
    
    code = "BAD_REQUEST"
    
    def __init__(self, manual_entry_id: str, linked_account_id: str):
        super().__init__(
            f"Manual entry {manual_entry_id} is already linked to account {linked_account_id}"
        )
        self.manual_entry_id = manual_entry_id
        self.linked_account_id = linked_account_id


class UnsupportedTypeError(FamilyTreeError):
    """Relationship type has no defined reciprocal."""
    
    code = "BAD_USER_INPUT"
    
    def __init__(self, rel_type):
        super().__init__(f"Unsupported or non-reciprocal relationship type: {rel_type}")
        self.rel_type = rel_type


class ValidationError(FamilyTreeError):
    """Missing required field or malformed value."""
    
    code = "BAD_USER_INPUT"
    
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InternalError(FamilyTreeError):
    """Underlying store failure not classified above."""
    
    code = "INTERNAL_SERVER_ERROR"
