"""Account model."""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import DateTime, Enum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from storefront.core.security import hash_password
from storefront.db.base import Base


class AccountRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True, index=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(
        "passwordHash", String(255), nullable=True, deferred=True
    )
    role: Mapped[AccountRole] = mapped_column(
        Enum(AccountRole, name="account_role", values_callable=lambda e: [m.value for m in e]),
        default=AccountRole.USER,
        nullable=False,
    )
    photo_url: Mapped[Optional[str]] = mapped_column("photoUrl", String(1024), nullable=True)
    provider: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    provider_id: Mapped[Optional[str]] = mapped_column("providerId", String(255), nullable=True, index=True)
    password_changed_at: Mapped[Optional[datetime]] = mapped_column(
        "passwordChangedAt", DateTime(timezone=True), nullable=True
    )
    password_reset_token: Mapped[Optional[str]] = mapped_column(
        "passwordResetToken", String(64), nullable=True, index=True
    )
    password_reset_expires: Mapped[Optional[datetime]] = mapped_column(
        "passwordResetExpires", DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        "createdAt",
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        "updatedAt",
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def set_password(self, password: str) -> None:
        """Hash and store a new password, stamping the change time.

        The stamp is backdated one second: token ``iat`` claims have second
        resolution and a token minted right after the change must stay valid.
        """
        self.password_hash = hash_password(password)
        self.password_changed_at = datetime.now(timezone.utc) - timedelta(seconds=1)

    def changed_password_after(self, issued_at: datetime) -> bool:
        if self.password_changed_at is None:
            return False
        changed = int(as_utc(self.password_changed_at).timestamp())
        return changed > int(as_utc(issued_at).timestamp())

    def set_password_reset(self, token_hash: str, expires_at: datetime) -> None:
        self.password_reset_token = token_hash
        self.password_reset_expires = expires_at

    def clear_password_reset(self) -> None:
        self.password_reset_token = None
        self.password_reset_expires = None

    @property
    def has_pending_reset(self) -> bool:
        return self.password_reset_token is not None
