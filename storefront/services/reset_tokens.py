"""Password reset secrets: issue, consume (single use), revoke."""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from storefront.core.exceptions import InvalidOrExpiredToken
from storefront.core.security import fast_hash
from storefront.db.models.account import Account
from storefront.services.account_store import AccountStore

logger = logging.getLogger(__name__)


class ResetTokenService:
    def __init__(self, store: AccountStore, expire_minutes: int = 10):
        self.store = store
        self.window = timedelta(minutes=expire_minutes)

    async def issue(self, account: Account) -> str:
        """Store the hash of a fresh secret on the account and return the plaintext.

        Any earlier pending secret is overwritten.
        """
        secret = secrets.token_hex(32)
        account.set_password_reset(fast_hash(secret), datetime.now(timezone.utc) + self.window)
        await self.store.save(account)
        logger.info("Password reset issued for account %s", account.id)
        return secret

    async def consume(self, secret: str) -> Account:
        """Return the account owning an unexpired secret.

        Wrong and expired secrets fail the same way. The caller clears the
        reset fields when it completes the password change.
        """
        account = await self.store.find_by_reset_token(fast_hash(secret), datetime.now(timezone.utc))
        if account is None:
            raise InvalidOrExpiredToken()
        return account

    async def revoke(self, account: Account) -> None:
        account.clear_password_reset()
        await self.store.save(account)
        logger.info("Password reset revoked for account %s", account.id)
