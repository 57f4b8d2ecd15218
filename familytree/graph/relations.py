"""Relationship type and gender helpers shared by mutations and tree building."""

from typing import Optional, Union

from familytree.errors import UnsupportedTypeError
from familytree.models import Gender, Relationship, RelationshipType, new_id


RECIPROCAL_TYPES = {
    RelationshipType.PARENT: RelationshipType.CHILD,
    RelationshipType.CHILD: RelationshipType.PARENT,
    RelationshipType.SPOUSE: RelationshipType.SPOUSE,
    RelationshipType.SIBLING: RelationshipType.SIBLING,
}

# Gendered labels: (male, female, neutral)
RELATION_TERMS = {
    RelationshipType.PARENT: ("father", "mother", "parent"),
    RelationshipType.CHILD: ("son", "daughter", "child"),
    RelationshipType.SPOUSE: ("husband", "wife", "spouse"),
    RelationshipType.SIBLING: ("brother", "sister", "sibling"),
}

GENDER_ALIASES = {
    "m": Gender.MALE,
    "male": Gender.MALE,
    "f": Gender.FEMALE,
    "female": Gender.FEMALE,
    "nb": Gender.NON_BINARY,
    "non_binary": Gender.NON_BINARY,
    "non-binary": Gender.NON_BINARY,
    "nonbinary": Gender.NON_BINARY,
    "o": Gender.OTHER,
    "other": Gender.OTHER,
    "unspecified": Gender.UNSPECIFIED,
    "unknown": Gender.UNSPECIFIED,
    "prefer_not_say": Gender.UNSPECIFIED,
}


def parse_relationship_type(value: Union[RelationshipType, str]) -> RelationshipType:
    """Normalize a relationship type name; unknown names are unsupported."""
    if isinstance(value, RelationshipType):
        return value
    if isinstance(value, str):
        try:
            return RelationshipType(value.strip().upper())
        except ValueError:
            pass
    raise UnsupportedTypeError(value)


def reciprocal_type(rel_type: Union[RelationshipType, str]) -> RelationshipType:
    """Relationship type seen from the other party's side."""
    reciprocal = RECIPROCAL_TYPES.get(parse_relationship_type(rel_type))
    if reciprocal is None:
        raise UnsupportedTypeError(rel_type)
    return reciprocal


def reciprocal_edge(relationship: Relationship) -> Relationship:
    """Build the (target -> initiator) counterpart of an edge."""
    return Relationship(
        id=new_id(),
        initiator_id=relationship.target_id,
        target_id=relationship.initiator_id,
        type=reciprocal_type(relationship.type),
        created_at=relationship.created_at,
    )


def map_gender(value: Optional[Union[Gender, str]]) -> Optional[Gender]:
    """
    Normalize gender values from forms and legacy records.

    Accepts enum members, names such as ``MALE`` or ``PREFER_NOT_SAY`` and
    short codes (M, F, O). Empty values map to None, anything unrecognised
    to Gender.OTHER.
    """
    if value is None:
        return None
    if isinstance(value, Gender):
        return value
    text = str(value).strip().lower()
    if not text:
        return None
    return GENDER_ALIASES.get(text, Gender.OTHER)


def visual_gender(gender: Optional[Gender]) -> str:
    """Collapse gender to the male/female/unknown set tree renderers understand."""
    if gender == Gender.MALE:
        return "male"
    if gender == Gender.FEMALE:
        return "female"
    return "unknown"


def relation_term(rel_type: Union[RelationshipType, str], gender: Optional[Gender] = None) -> str:
    """Gendered label for a relationship, e.g. PARENT + female -> mother."""
    male, female, neutral = RELATION_TERMS[parse_relationship_type(rel_type)]
    if gender == Gender.MALE:
        return male
    if gender == Gender.FEMALE:
        return female
    return neutral
