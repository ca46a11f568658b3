"""Auth flows: sign-up, sign-in, sign-out, gates, role restriction, password reset/update, OAuth login."""

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional, Union

from storefront.config import Settings
from storefront.core.exceptions import (
    AccountGone,
    AccountNotFound,
    AuthError,
    DeliveryFailed,
    Forbidden,
    InvalidCredentials,
    MissingCredentials,
    StalePassword,
    Unauthenticated,
    WrongCurrentPassword,
)
from storefront.core.security import TokenCodec, TokenError, hash_password, verify_password
from storefront.db.models.account import Account, AccountRole
from storefront.schemas.auth import ExternalProfile
from storefront.services.account_store import AccountStore
from storefront.services.email_service import EmailDeliveryError, EmailSender, password_reset_email
from storefront.services.reset_tokens import ResetTokenService
from storefront.services.session import Session, SessionCookie, clear_session, issue_session

logger = logging.getLogger(__name__)

# Values a client stores in place of a real token
NULL_TOKENS = frozenset({"", "null", "undefined"})


@dataclass(frozen=True)
class AuthResult:
    account: Optional[Account] = None
    error: Optional[AuthError] = None


@dataclass(frozen=True)
class EmailLookup:
    email: str


@dataclass(frozen=True)
class ProviderIdLookup:
    provider: str
    provider_id: str


LookupKey = Union[EmailLookup, ProviderIdLookup]


def lookup_key_for(profile: ExternalProfile) -> LookupKey:
    """Match on the provider-supplied email when there is one, else on the provider's id."""
    if profile.email:
        return EmailLookup(profile.email.lower())
    return ProviderIdLookup(profile.provider, profile.id)


def restrict_to(allowed_roles: Iterable[AccountRole], account: Account) -> None:
    if account.role not in set(allowed_roles):
        raise Forbidden()


class AuthService:
    def __init__(
        self,
        store: AccountStore,
        codec: TokenCodec,
        settings: Settings,
        mailer: EmailSender,
    ):
        self.store = store
        self.codec = codec
        self.settings = settings
        self.mailer = mailer
        self.resets = ResetTokenService(store, settings.password_reset_expire_minutes)

    def _session(self, account: Account, secure: bool) -> Session:
        return issue_session(account, self.codec, self.settings, secure=secure)

    async def sign_up(self, username: str, email: str, password: str, secure: bool = False) -> Session:
        account = await self.store.create(
            username=username,
            email=email.lower(),
            password_hash=hash_password(password),
            role=AccountRole.USER,
        )
        logger.info("Account %s signed up", account.id)
        return self._session(account, secure)

    async def sign_in(self, email: Optional[str], password: Optional[str], secure: bool = False) -> Session:
        if not email or not password:
            raise MissingCredentials()
        account = await self.store.find_by_email(email.lower(), include_password=True)
        if account is None or not verify_password(password, account.password_hash):
            logger.info("Failed sign-in attempt")
            raise InvalidCredentials()
        return self._session(account, secure)

    def sign_out(self) -> SessionCookie:
        return clear_session(self.settings)

    async def authenticate(self, token: Optional[str]) -> AuthResult:
        """Resolve a bearer token to its account.

        Shared by the required and optional gates; failures are returned, not raised.
        """
        if token is None or token in NULL_TOKENS:
            return AuthResult(error=Unauthenticated())
        try:
            claims = self.codec.verify(token)
            account_id = uuid.UUID(claims.subject)
        except (TokenError, ValueError) as e:
            logger.debug("Rejected bearer token: %s", type(e).__name__)
            return AuthResult(error=Unauthenticated())
        account = await self.store.find_by_id(account_id)
        if account is None:
            return AuthResult(error=AccountGone())
        if account.changed_password_after(claims.issued_at):
            logger.info("Stale token presented for account %s", account.id)
            return AuthResult(error=StalePassword())
        return AuthResult(account=account)

    async def protect(self, token: Optional[str]) -> Account:
        result = await self.authenticate(token)
        if result.error is not None:
            raise result.error
        return result.account

    async def optional_account(self, token: Optional[str]) -> Optional[Account]:
        result = await self.authenticate(token)
        return result.account

    async def forgot_password(self, email: str, reset_url_base: str) -> None:
        account = await self.store.find_by_email(email.lower())
        if account is None:
            raise AccountNotFound()
        secret = await self.resets.issue(account)
        reset_url = f"{reset_url_base.rstrip('/')}/{secret}"
        subject, body = password_reset_email(reset_url, self.settings.password_reset_expire_minutes)
        try:
            await self.mailer.send(account.email, subject, body)
        except EmailDeliveryError as e:
            logger.error("Reset email to account %s failed: %s", account.id, e)
            await self.resets.revoke(account)
            raise DeliveryFailed() from e

    async def reset_password(self, secret: str, password: str, secure: bool = False) -> Session:
        account = await self.resets.consume(secret)
        account.set_password(password)
        account.clear_password_reset()
        await self.store.save(account)
        logger.info("Password reset completed for account %s", account.id)
        return self._session(account, secure)

    async def update_password(
        self, account: Account, current_password: str, new_password: str, secure: bool = False
    ) -> Session:
        fresh = await self.store.find_by_id(account.id, include_password=True)
        if fresh is None:
            raise AccountGone()
        if not verify_password(current_password, fresh.password_hash):
            raise WrongCurrentPassword()
        fresh.set_password(new_password)
        await self.store.save(fresh)
        logger.info("Password updated for account %s", fresh.id)
        return self._session(fresh, secure)

    async def _find(self, key: LookupKey) -> Optional[Account]:
        if isinstance(key, EmailLookup):
            return await self.store.find_by_email(key.email)
        return await self.store.find_by_provider_id(key.provider, key.provider_id)

    async def external_login(self, profile: ExternalProfile, secure: bool = False) -> Session:
        key = lookup_key_for(profile)
        account = await self._find(key)
        if account is None:
            account = await self.store.create(
                username=profile.displayName,
                email=profile.email.lower() if profile.email else None,
                photo_url=profile.photo or self.settings.default_avatar_url,
                provider=profile.provider,
                provider_id=profile.id,
                role=AccountRole.USER,
            )
            logger.info("Account %s created from %s login", account.id, profile.provider)
        return self._session(account, secure)
