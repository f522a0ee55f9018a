"""create payment, proof, quarantine, audit and recurring tables

Revision ID: 3f9c2a7d1b04
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f9c2a7d1b04"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("transaction_id", sa.String(length=64), nullable=False, unique=True),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("payment_method", sa.String(length=30), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error", sa.JSON()),
        sa.Column("gateway_response", sa.JSON()),
        sa.Column("phone", sa.String(length=20)),
        sa.Column("card_last4", sa.String(length=4)),
        sa.Column("card_brand", sa.String(length=20)),
        sa.Column("original_transaction_id", sa.String(length=64)),
        sa.Column("proof_file_name", sa.String(length=255)),
        sa.Column("verified_at", sa.DateTime(timezone=True)),
        sa.Column("verification_data", sa.JSON()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_transactions_transaction_id", "transactions", ["transaction_id"], unique=True)
    op.create_index("ix_transactions_order_id", "transactions", ["order_id"])
    op.create_index("ix_transactions_status", "transactions", ["status"])
    op.create_index("ix_transactions_original_transaction_id", "transactions", ["original_transaction_id"])

    op.create_table(
        "wallet_accounts",
        sa.Column("account_id", sa.String(length=64), primary_key=True),
        sa.Column("balance_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "wallet_transactions",
        sa.Column("seq", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("id", sa.String(length=40), nullable=False, unique=True),
        sa.Column(
            "account_id",
            sa.String(length=64),
            sa.ForeignKey("wallet_accounts.account_id"),
            nullable=False,
        ),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("balance_after_cents", sa.Integer(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reference", sa.String(length=40), nullable=False),
        sa.Column("description", sa.String(length=255)),
        sa.Column("counterparty", sa.String(length=255)),
    )
    op.create_index("ix_wallet_transactions_account_id", "wallet_transactions", ["account_id"])

    op.create_table(
        "payment_proofs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("file_name", sa.String(length=255), nullable=False, unique=True),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("mime_type", sa.String(length=50), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("checksum", sa.String(length=64), nullable=False),
        sa.Column("order_id", sa.Integer(), nullable=False),
        sa.Column("transaction_id", sa.String(length=64)),
        sa.Column("user_id", sa.String(length=100), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("bucket", sa.String(length=100), nullable=False),
        sa.Column("storage_key", sa.String(length=512), nullable=False),
        sa.Column("thumbnail_key", sa.String(length=512), nullable=False),
        sa.Column("width", sa.Integer(), nullable=False),
        sa.Column("height", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("quarantine_status", sa.String(length=20), nullable=False, server_default="clean"),
        sa.Column("scan_result", sa.JSON()),
        sa.Column("reviewed_at", sa.DateTime(timezone=True)),
        sa.Column("reviewed_by", sa.String(length=50)),
        sa.Column("review_notes", sa.Text()),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
        sa.Column("deleted_by", sa.String(length=50)),
    )
    op.create_index("ix_payment_proofs_file_name", "payment_proofs", ["file_name"], unique=True)
    op.create_index("ix_payment_proofs_order_id", "payment_proofs", ["order_id"])
    op.create_index("ix_payment_proofs_transaction_id", "payment_proofs", ["transaction_id"])
    op.create_index("ix_payment_proofs_uploaded_at", "payment_proofs", ["uploaded_at"])
    op.create_index("ix_payment_proofs_storage_key", "payment_proofs", ["storage_key"])
    op.create_index("ix_payment_proofs_thumbnail_key", "payment_proofs", ["thumbnail_key"])
    op.create_index("ix_payment_proofs_status", "payment_proofs", ["status"])

    op.create_table(
        "quarantine_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("original_file_name", sa.String(length=255), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("mime_type", sa.String(length=50)),
        sa.Column("threats", sa.JSON(), nullable=False),
        sa.Column("risk_level", sa.String(length=20), nullable=False),
        sa.Column("scan_engine", sa.String(length=50), nullable=False),
        sa.Column("quarantined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("auto_delete_after", sa.DateTime(timezone=True), nullable=False),
        sa.Column("isolation_key", sa.String(length=512), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("source", sa.String(length=30), nullable=False),
        sa.Column("order_id", sa.Integer()),
        sa.Column("subject_id", sa.String(length=255)),
        sa.Column("reviewed_at", sa.DateTime(timezone=True)),
        sa.Column("reviewed_by", sa.String(length=50)),
        sa.Column("action", sa.String(length=30)),
        sa.Column("deleted_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_quarantine_entries_auto_delete_after", "quarantine_entries", ["auto_delete_after"])
    op.create_index("ix_quarantine_entries_status", "quarantine_entries", ["status"])

    op.create_table(
        "audit_entries",
        sa.Column("id", sa.String(length=40), primary_key=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("actor", sa.String(length=50), nullable=False),
        sa.Column("subject_id", sa.String(length=512), nullable=False),
        sa.Column("outcome", sa.String(length=20), nullable=False),
        sa.Column("order_id", sa.Integer()),
        sa.Column("client_ip", sa.String(length=45)),
        sa.Column("reason", sa.String(length=100)),
        sa.Column("details", sa.JSON()),
    )
    op.create_index("ix_audit_entries_timestamp", "audit_entries", ["timestamp"])
    op.create_index("ix_audit_entries_action", "audit_entries", ["action"])
    op.create_index("ix_audit_entries_order_id", "audit_entries", ["order_id"])

    op.create_table(
        "vendors",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("email", sa.String(length=150), nullable=False),
        sa.Column("phone", sa.String(length=30), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("tax_id", sa.String(length=50), nullable=False, server_default=""),
        sa.Column("bank_account", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("payment_terms", sa.String(length=30), nullable=False, server_default="Net 30"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("total_paid_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_owed_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_payment_date", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "recurring_payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=150), nullable=False),
        sa.Column("vendor_id", sa.Integer(), sa.ForeignKey("vendors.id"), nullable=False),
        sa.Column("vendor_name", sa.String(length=150), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("frequency", sa.String(length=20), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True)),
        sa.Column("next_payment_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("payment_method", sa.String(length=30), nullable=False),
        sa.Column("auto_retry", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("max_retries", sa.Integer(), nullable=False),
        sa.Column("retry_interval_hours", sa.Integer(), nullable=False),
        sa.Column("total_payments", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("successful_payments", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("failed_payments", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_payment_date", sa.DateTime(timezone=True)),
        sa.Column("last_payment_status", sa.String(length=20)),
        sa.Column("last_payment_amount_cents", sa.Integer()),
        sa.Column("created_by", sa.String(length=50)),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("paused_at", sa.DateTime(timezone=True)),
        sa.Column("resumed_at", sa.DateTime(timezone=True)),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.Column("failed_at", sa.DateTime(timezone=True)),
        sa.Column("failure_reason", sa.String(length=255)),
        sa.Column("meta", sa.JSON()),
    )
    op.create_index("ix_recurring_payments_vendor_id", "recurring_payments", ["vendor_id"])
    op.create_index("ix_recurring_payments_status", "recurring_payments", ["status"])

    op.create_table(
        "scheduled_payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "recurring_payment_id",
            sa.Integer(),
            sa.ForeignKey("recurring_payments.id"),
            nullable=False,
        ),
        sa.Column("scheduled_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_retry", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("original_scheduled_payment_id", sa.Integer()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True)),
        sa.Column("failure_reason", sa.String(length=255)),
        sa.Column("payment_reference", sa.String(length=64)),
    )
    op.create_index("ix_scheduled_payments_recurring_payment_id", "scheduled_payments", ["recurring_payment_id"])
    op.create_index("ix_scheduled_payments_scheduled_date", "scheduled_payments", ["scheduled_date"])
    op.create_index("ix_scheduled_payments_status", "scheduled_payments", ["status"])


def downgrade() -> None:
    op.drop_table("scheduled_payments")
    op.drop_table("recurring_payments")
    op.drop_table("vendors")
    op.drop_table("audit_entries")
    op.drop_table("quarantine_entries")
    op.drop_table("payment_proofs")
    op.drop_table("wallet_transactions")
    op.drop_table("wallet_accounts")
    op.drop_table("transactions")
