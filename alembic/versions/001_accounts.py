"""accounts

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

account_role = sa.Enum("user", "admin", name="account_role")


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("passwordHash", sa.String(255), nullable=True),
        sa.Column("role", account_role, nullable=False, server_default="user"),
        sa.Column("photoUrl", sa.String(1024), nullable=True),
        sa.Column("provider", sa.String(50), nullable=True),
        sa.Column("providerId", sa.String(255), nullable=True),
        sa.Column("passwordChangedAt", sa.DateTime(timezone=True), nullable=True),
        sa.Column("passwordResetToken", sa.String(64), nullable=True),
        sa.Column("passwordResetExpires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("createdAt", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updatedAt", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"], unique=True)
    op.create_index("ix_accounts_providerId", "accounts", ["providerId"])
    op.create_index("ix_accounts_passwordResetToken", "accounts", ["passwordResetToken"])


def downgrade() -> None:
    op.drop_index("ix_accounts_passwordResetToken", table_name="accounts")
    op.drop_index("ix_accounts_providerId", table_name="accounts")
    op.drop_index("ix_accounts_email", table_name="accounts")
    op.drop_table("accounts")
    account_role.drop(op.get_bind(), checkfirst=True)
