"""Session artifacts: the `jwt` cookie carrying a bearer token."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from fastapi import Request, Response

from storefront.config import Settings
from storefront.core.security import TokenCodec
from storefront.db.models.account import Account

LOGGED_OUT = "loggedout"
LOGOUT_COOKIE_SECONDS = 10


@dataclass(frozen=True)
class SessionCookie:
    name: str
    value: str
    max_age: int
    httponly: bool = True
    secure: bool = False

    def apply(self, response: Response) -> None:
        response.set_cookie(
            key=self.name,
            value=self.value,
            max_age=self.max_age,
            expires=self.max_age,
            httponly=self.httponly,
            secure=self.secure,
            samesite="lax",
        )


@dataclass(frozen=True)
class Session:
    account: Account
    token: str
    cookie: SessionCookie


def is_secure_request(request: Optional[Request]) -> bool:
    if request is None:
        return False
    return request.url.scheme == "https" or request.headers.get("x-forwarded-proto") == "https"


def issue_session(account: Account, codec: TokenCodec, settings: Settings, secure: bool = False) -> Session:
    token = codec.mint(str(account.id))
    lifetime = timedelta(days=settings.jwt_cookie_expires_in_days)
    cookie = SessionCookie(
        name=settings.jwt_cookie_name,
        value=token,
        max_age=int(lifetime.total_seconds()),
        secure=secure,
    )
    return Session(account=account, token=token, cookie=cookie)


def clear_session(settings: Settings) -> SessionCookie:
    return SessionCookie(name=settings.jwt_cookie_name, value=LOGGED_OUT, max_age=LOGOUT_COOKIE_SECONDS)
