"""Registered account operations: registration, profiles, invites and search."""

import secrets
from typing import Optional

from familytree.errors import ForbiddenError, NotFoundError, ValidationError
from familytree.graph.family.mutations import parse_date, require_text
from familytree.graph.relations import map_gender
from familytree.graph.store import FamilyStore
from familytree.logging import get_logger
from familytree.models import Account, Gender, RegisterAccountInput, UpdateProfileInput

logger = get_logger(__name__)

MIN_SEARCH_LENGTH = 2
SEARCH_LIMIT = 10


def new_invite_code() -> str:
    """16 hex characters."""
    return secrets.token_hex(8)


class AccountOperations:
    """Account lifecycle outside of authentication."""

    def __init__(self, store: FamilyStore):
        self.store = store

    async def _require_account(self, account_id: str) -> Account:
        account = await self.store.find_account_by_id(account_id)
        if account is None:
            raise NotFoundError("Account", account_id)
        return account

    async def register(self, data: RegisterAccountInput) -> Account:
        """
        Register a new account.

        An invite code, if given and known, records who invited the account;
        unknown codes are logged and ignored. Every new account receives its
        own invite code and starts with a private profile.
        """
        name = require_text(data.display_name, "display_name")
        dob = parse_date(data.date_of_birth)

        invited_by_id: Optional[str] = None
        if data.invite_code:
            inviter = await self.store.find_account_by_invite_code(data.invite_code)
            if inviter:
                invited_by_id = inviter.id
            else:
                logger.warning("invite_code_not_found", invite_code=data.invite_code)

        account = Account(
            display_name=name,
            gender=map_gender(data.gender) or Gender.UNSPECIFIED,
            date_of_birth=dob,
            image_url=data.image_url,
            is_profile_public=False,
            invite_code=new_invite_code(),
            invited_by_id=invited_by_id,
        )
        await self.store.create_account(account)
        logger.info("account_registered", account_id=account.id, invited_by_id=invited_by_id)
        return account

    async def update_profile(self, account_id: str, data: UpdateProfileInput) -> Account:
        """Apply the fields set in data; at least one field is required."""
        if not data.model_fields_set:
            raise ValidationError("No update data provided")

        account = await self._require_account(account_id)
        fields = data.model_fields_set

        if "display_name" in fields:
            account.display_name = require_text(data.display_name, "display_name")
        if "gender" in fields:
            account.gender = map_gender(data.gender) or Gender.UNSPECIFIED
        if "date_of_birth" in fields:
            account.date_of_birth = parse_date(data.date_of_birth)
        if "image_url" in fields:
            account.image_url = data.image_url
        if "is_profile_public" in fields and data.is_profile_public is not None:
            account.is_profile_public = data.is_profile_public

        await self.store.save_account(account)
        logger.info("profile_updated", account_id=account_id, fields=sorted(fields))
        return account

    async def generate_invite_code(self, account_id: str) -> str:
        """Return the account's invite code, creating one if missing."""
        account = await self._require_account(account_id)
        if not account.invite_code:
            account.invite_code = new_invite_code()
            await self.store.save_account(account)
            logger.info("invite_code_generated", account_id=account_id)
        return account.invite_code

    async def get_profile(self, requesting_account_id: Optional[str], account_id: str) -> Account:
        """Owner or public profiles only."""
        account = await self._require_account(account_id)
        if requesting_account_id != account_id and not account.is_profile_public:
            raise ForbiddenError("Access denied: profile is private")
        return account

    async def search(self, requesting_account_id: str, term: str) -> list[Account]:
        """Search public profiles by name, excluding the requester."""
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            return []
        return await self.store.search_public_accounts(
            term, exclude_id=requesting_account_id, limit=SEARCH_LIMIT
        )
