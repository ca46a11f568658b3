"""SQLAlchemy models - import all for Alembic."""

from storefront.db.base import Base
from storefront.db.models.account import Account, AccountRole

__all__ = [
    "Base",
    "Account",
    "AccountRole",
]
