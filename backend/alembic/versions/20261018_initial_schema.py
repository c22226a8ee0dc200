"""initial schema: vegetables, providers, signers, bills

Revision ID: 20261018_initial_schema
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_initial_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "vegetables",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("has_fixed_price", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("fixed_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="vegetables_name_unique"),
        sa.CheckConstraint(
            "NOT has_fixed_price OR (fixed_price IS NOT NULL AND fixed_price > 0)",
            name="vegetables_fixed_price_present",
        ),
    )
    op.create_table(
        "providers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("mobile", sa.String(), nullable=False),
        sa.Column("address", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "signers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "bills",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("provider_id", sa.String(length=36), nullable=False),
        sa.Column("provider_name", sa.String(), nullable=False),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("total", sa.Numeric(12, 2), nullable=False),
        sa.Column("date", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("signer", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["provider_id"], ["providers.id"]),
        sa.ForeignKeyConstraint(["signer"], ["signers.name"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bills_date", "bills", ["date"], unique=False)
    op.create_index("ix_bills_provider_name", "bills", ["provider_name"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_bills_provider_name", table_name="bills")
    op.drop_index("ix_bills_date", table_name="bills")
    op.drop_table("bills")
    op.drop_table("signers")
    op.drop_table("providers")
    op.drop_table("vegetables")
