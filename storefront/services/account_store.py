"""Account persistence: the store interface the auth flows talk to, and its SQL implementation."""

import logging
import uuid
from datetime import datetime
from typing import Any, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from storefront.core.exceptions import DuplicateEmail
from storefront.db.models.account import Account

logger = logging.getLogger(__name__)


class AccountStore(Protocol):
    async def create(self, **fields: Any) -> Account: ...

    async def find_by_id(self, account_id: uuid.UUID, *, include_password: bool = False) -> Optional[Account]: ...

    async def find_by_email(self, email: str, *, include_password: bool = False) -> Optional[Account]: ...

    async def find_by_provider_id(self, provider: str, provider_id: str) -> Optional[Account]: ...

    async def find_by_reset_token(self, token_hash: str, now: datetime) -> Optional[Account]: ...

    async def save(self, account: Account) -> Account: ...


class SqlAccountStore:
    """AccountStore over an AsyncSession. Each write commits immediately."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, **fields: Any) -> Account:
        account = Account(**fields)
        self.db.add(account)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateEmail() from e
        return account

    async def _first(self, stmt) -> Optional[Account]:
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def find_by_id(self, account_id: uuid.UUID, *, include_password: bool = False) -> Optional[Account]:
        stmt = select(Account).where(Account.id == account_id)
        if include_password:
            stmt = stmt.options(undefer(Account.password_hash)).execution_options(populate_existing=True)
        return await self._first(stmt)

    async def find_by_email(self, email: str, *, include_password: bool = False) -> Optional[Account]:
        stmt = select(Account).where(Account.email == email)
        if include_password:
            stmt = stmt.options(undefer(Account.password_hash)).execution_options(populate_existing=True)
        return await self._first(stmt)

    async def find_by_provider_id(self, provider: str, provider_id: str) -> Optional[Account]:
        return await self._first(
            select(Account).where(Account.provider == provider, Account.provider_id == provider_id)
        )

    async def find_by_reset_token(self, token_hash: str, now: datetime) -> Optional[Account]:
        return await self._first(
            select(Account).where(
                Account.password_reset_token == token_hash,
                Account.password_reset_expires > now,
            )
        )

    async def save(self, account: Account) -> Account:
        self.db.add(account)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("Save rejected for account %s: %s", account.id, e.orig)
            raise
        return account
