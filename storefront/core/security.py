"""JWT minting/verification and password hashing."""

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from passlib.context import CryptContext
from pydantic import BaseModel

from storefront.config import Settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        # Malformed or unrecognised digest
        return False


def fast_hash(value: str) -> str:
    """Unsalted sha256 hex digest, for lookups of already high-entropy values."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


class TokenError(Exception):
    """Base for bearer token verification failures."""


class MalformedToken(TokenError):
    pass


class InvalidSignature(TokenError):
    pass


class TokenExpired(TokenError):
    pass


class TokenClaims(BaseModel):
    subject: str
    issued_at: datetime
    expires_at: datetime


class TokenCodec:
    """Signs and verifies time-limited bearer tokens carrying an account id."""

    _required_claims = frozenset({"sub", "iat", "exp"})

    def __init__(self, secret_key: str, algorithm: str = "HS256", lifetime: timedelta = timedelta(days=90)):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.lifetime = lifetime

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenCodec":
        return cls(
            settings.secret_key,
            algorithm=settings.algorithm,
            lifetime=timedelta(days=settings.jwt_expires_in_days),
        )

    def mint(self, subject_id: str, now: Optional[datetime] = None) -> str:
        issued = now or datetime.now(timezone.utc)
        return jwt.encode(
            {"sub": str(subject_id), "iat": issued, "exp": issued + self.lifetime},
            self.secret_key,
            algorithm=self.algorithm,
        )

    def verify(self, token: str) -> TokenClaims:
        try:
            jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise MalformedToken(str(exc)) from exc
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as exc:
            raise TokenExpired("Token has expired") from exc
        except JWTClaimsError as exc:
            raise MalformedToken(str(exc)) from exc
        except JWTError as exc:
            raise InvalidSignature(str(exc)) from exc
        missing = self._required_claims.difference(payload)
        if missing:
            raise MalformedToken(f"Missing claims: {', '.join(sorted(missing))}")
        return TokenClaims(
            subject=payload["sub"],
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
