"""create vendor bills table

Revision ID: 8b1e6d4c2f37
Revises: 3f9c2a7d1b04
Create Date: 2026-10-17 15:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "8b1e6d4c2f37"
down_revision = "3f9c2a7d1b04"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "vendor_bills",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("vendor_name", sa.String(length=150), nullable=False),
        sa.Column("bill_number", sa.String(length=40), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=50), nullable=False, server_default="general"),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("tax_amount_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False),
        sa.Column("amount_paid_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("payment_references", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(length=50)),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_vendor_bills_vendor_id", "vendor_bills", ["vendor_id"])
    op.create_index("ix_vendor_bills_due_date", "vendor_bills", ["due_date"])
    op.create_index("ix_vendor_bills_status", "vendor_bills", ["status"])


def downgrade() -> None:
    op.drop_table("vendor_bills")
