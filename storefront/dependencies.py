"""FastAPI dependency injection: settings, store, auth service, current account."""

from typing import Annotated, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.config import Settings, get_settings
from storefront.core.security import TokenCodec
from storefront.db.base import get_db
from storefront.db.models.account import Account, AccountRole
from storefront.services.account_store import AccountStore, SqlAccountStore
from storefront.services.auth_service import AuthService, restrict_to
from storefront.services.email_service import EmailSender

SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_account_store(db: Annotated[AsyncSession, Depends(get_db)]) -> AccountStore:
    return SqlAccountStore(db)


def get_token_codec(settings: SettingsDep) -> TokenCodec:
    return TokenCodec.from_settings(settings)


def get_email_sender(settings: SettingsDep) -> EmailSender:
    return EmailSender(settings)


def get_auth_service(
    settings: SettingsDep,
    store: Annotated[AccountStore, Depends(get_account_store)],
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    mailer: Annotated[EmailSender, Depends(get_email_sender)],
) -> AuthService:
    return AuthService(store, codec, settings, mailer)


Auth = Annotated[AuthService, Depends(get_auth_service)]


def extract_token(request: Request, settings: Settings) -> Optional[str]:
    """Token from the session cookie, else from an `Authorization: Bearer` header."""
    cookie = request.cookies.get(settings.jwt_cookie_name)
    if cookie:
        return cookie
    header = request.headers.get("authorization", "")
    if header.startswith("Bearer"):
        parts = header.split(" ", 1)
        return parts[1].strip() if len(parts) == 2 else None
    return None


async def get_current_account(request: Request, settings: SettingsDep, auth: Auth) -> Account:
    """Require an authenticated account; attach it to request.state."""
    account = await auth.protect(extract_token(request, settings))
    request.state.account = account
    return account


async def get_current_account_optional(request: Request, settings: SettingsDep, auth: Auth) -> Optional[Account]:
    """Return the signed-in account if any; every auth failure yields None."""
    account = await auth.optional_account(extract_token(request, settings))
    request.state.account = account
    return account


CurrentAccount = Annotated[Account, Depends(get_current_account)]
CurrentAccountOptional = Annotated[Optional[Account], Depends(get_current_account_optional)]


def require_roles(*roles: AccountRole):
    """Dependency factory: allow only accounts whose role is in `roles`."""

    def _check(account: CurrentAccount) -> Account:
        restrict_to(roles, account)
        return account

    return _check
