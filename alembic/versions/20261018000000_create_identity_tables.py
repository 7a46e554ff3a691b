"""Create users, authorities and user_authorities tables.

Revision ID: 20261018000000
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "20261018000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("username", sa.String(length=20), nullable=False),
        sa.Column("password", sa.String(length=60), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "account_non_expired", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column(
            "account_non_locked", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column(
            "credentials_non_expired", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("token_version", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("username"),
    )
    op.create_table(
        "authorities",
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )
    op.create_table(
        "user_authorities",
        sa.Column("username", sa.String(length=20), nullable=False),
        sa.Column("authority", sa.String(length=50), nullable=False),
        sa.ForeignKeyConstraint(["username"], ["users.username"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["authority"], ["authorities.name"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("username", "authority"),
    )
    op.create_index(
        op.f("ix_user_authorities_authority"),
        "user_authorities",
        ["authority"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_user_authorities_authority"), table_name="user_authorities")
    op.drop_table("user_authorities")
    op.drop_table("authorities")
    op.drop_table("users")
