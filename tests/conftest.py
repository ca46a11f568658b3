import re
import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext

from storefront.config import Settings, get_settings
from storefront.core import security
from storefront.core.exceptions import DuplicateEmail
from storefront.core.security import TokenCodec
from storefront.db.models.account import Account, AccountRole, as_utc
from storefront.dependencies import get_account_store, get_email_sender
from storefront.main import create_app
from storefront.services.auth_service import AuthService
from storefront.services.email_service import EmailDeliveryError

RESET_LINK = re.compile(r"/reset-password/([0-9a-f]{64})")


class InMemoryAccountStore:
    """AccountStore kept in a dict; records every call for assertions."""

    def __init__(self):
        self.accounts: dict[uuid.UUID, Account] = {}
        self.calls: list[str] = []

    async def create(self, **fields) -> Account:
        self.calls.append("create")
        email = fields.get("email")
        if email and any(a.email == email for a in self.accounts.values()):
            raise DuplicateEmail()
        account = Account(**fields)
        account.id = uuid.uuid4()
        account.role = account.role or AccountRole.USER
        account.created_at = datetime.now(timezone.utc)
        self.accounts[account.id] = account
        return account

    async def find_by_id(self, account_id, *, include_password=False):
        self.calls.append("find_by_id")
        return self.accounts.get(account_id)

    async def find_by_email(self, email, *, include_password=False):
        self.calls.append("find_by_email")
        return next((a for a in self.accounts.values() if a.email == email), None)

    async def find_by_provider_id(self, provider, provider_id):
        self.calls.append("find_by_provider_id")
        return next(
            (a for a in self.accounts.values() if a.provider == provider and a.provider_id == provider_id),
            None,
        )

    async def find_by_reset_token(self, token_hash, now):
        self.calls.append("find_by_reset_token")
        for account in self.accounts.values():
            if (
                account.password_reset_token == token_hash
                and account.password_reset_expires is not None
                and as_utc(account.password_reset_expires) > now
            ):
                return account
        return None

    async def save(self, account):
        self.calls.append("save")
        self.accounts[account.id] = account
        return account

    def lookups(self) -> list[str]:
        return [c for c in self.calls if c.startswith("find_")]


class FakeMailer:
    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    async def send(self, to_email, subject, body):
        if self.fail:
            raise EmailDeliveryError("SMTP connection refused")
        self.sent.append((to_email, subject, body))

    def last_secret(self) -> str:
        return RESET_LINK.search(self.sent[-1][2]).group(1)


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(security, "pwd_context", CryptContext(schemes=["bcrypt"], bcrypt__rounds=4))


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        secret_key="test-secret-key",
        client_url="http://shop.test",
        smtp_host="",
        log_level="WARNING",
    )


@pytest.fixture
def store():
    return InMemoryAccountStore()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def codec(settings):
    return TokenCodec.from_settings(settings)


@pytest.fixture
def auth(store, codec, settings, mailer):
    return AuthService(store, codec, settings, mailer)


@pytest.fixture
def client(settings, store, mailer):
    app = create_app(settings)
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_account_store] = lambda: store
    app.dependency_overrides[get_email_sender] = lambda: mailer
    with TestClient(app) as c:
        yield c


@pytest.fixture
def api(settings):
    def _url(path: str) -> str:
        return f"{settings.api_v1_prefix}{path}"

    return _url
