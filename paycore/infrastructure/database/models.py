"""SQLAlchemy ORM models.

Money columns hold integer cents; repositories convert to ``Decimal``.
"""

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, String, Text

from paycore.infrastructure.database.base import Base, UTCDateTime


class TransactionRecord(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    transaction_id = Column(String(64), unique=True, nullable=False, index=True)
    order_id = Column(Integer, nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    payment_method = Column(String(30), nullable=False)
    status = Column(String(30), nullable=False, index=True)
    timestamp = Column(UTCDateTime, nullable=False)
    retry_count = Column(Integer, nullable=False, default=0)
    error = Column(JSON)
    gateway_response = Column(JSON)
    phone = Column(String(20))
    card_last4 = Column(String(4))
    card_brand = Column(String(20))
    original_transaction_id = Column(String(64), index=True)
    proof_file_name = Column(String(255))
    verified_at = Column(UTCDateTime)
    verification_data = Column(JSON)
    updated_at = Column(UTCDateTime)


class WalletAccountRecord(Base):
    __tablename__ = "wallet_accounts"

    account_id = Column(String(64), primary_key=True)
    balance_cents = Column(Integer, nullable=False, default=0)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)


class WalletTransactionRecord(Base):
    __tablename__ = "wallet_transactions"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(40), unique=True, nullable=False)
    account_id = Column(String(64), ForeignKey("wallet_accounts.account_id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    amount_cents = Column(Integer, nullable=False)
    balance_after_cents = Column(Integer, nullable=False)
    timestamp = Column(UTCDateTime, nullable=False)
    reference = Column(String(40), nullable=False)
    description = Column(String(255))
    counterparty = Column(String(255))


class PaymentProofRecord(Base):
    __tablename__ = "payment_proofs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_name = Column(String(255), unique=True, nullable=False, index=True)
    original_name = Column(String(255), nullable=False)
    mime_type = Column(String(50), nullable=False)
    file_size = Column(Integer, nullable=False)
    checksum = Column(String(64), nullable=False)
    order_id = Column(Integer, nullable=False, index=True)
    transaction_id = Column(String(64), index=True)
    user_id = Column(String(100), nullable=False)
    uploaded_at = Column(UTCDateTime, nullable=False, index=True)
    expires_at = Column(UTCDateTime, nullable=False)
    bucket = Column(String(100), nullable=False)
    storage_key = Column(String(512), nullable=False, index=True)
    thumbnail_key = Column(String(512), nullable=False, index=True)
    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)
    status = Column(String(30), nullable=False, index=True)
    quarantine_status = Column(String(20), nullable=False, default="clean")
    scan_result = Column(JSON)
    reviewed_at = Column(UTCDateTime)
    reviewed_by = Column(String(50))
    review_notes = Column(Text)
    deleted_at = Column(UTCDateTime)
    deleted_by = Column(String(50))


class QuarantineRecord(Base):
    __tablename__ = "quarantine_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    original_file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(50))
    threats = Column(JSON, nullable=False)
    risk_level = Column(String(20), nullable=False)
    scan_engine = Column(String(50), nullable=False)
    quarantined_at = Column(UTCDateTime, nullable=False)
    auto_delete_after = Column(UTCDateTime, nullable=False, index=True)
    isolation_key = Column(String(512), nullable=False)
    status = Column(String(20), nullable=False, index=True)
    source = Column(String(30), nullable=False)
    order_id = Column(Integer)
    subject_id = Column(String(255))
    reviewed_at = Column(UTCDateTime)
    reviewed_by = Column(String(50))
    action = Column(String(30))
    deleted_at = Column(UTCDateTime)


class AuditRecord(Base):
    __tablename__ = "audit_entries"

    id = Column(String(40), primary_key=True)
    timestamp = Column(UTCDateTime, nullable=False, index=True)
    action = Column(String(50), nullable=False, index=True)
    actor = Column(String(50), nullable=False)
    subject_id = Column(String(512), nullable=False)
    outcome = Column(String(20), nullable=False)
    order_id = Column(Integer, index=True)
    client_ip = Column(String(45))
    reason = Column(String(100))
    details = Column(JSON)


class VendorRecord(Base):
    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    email = Column(String(150), nullable=False)
    phone = Column(String(30), nullable=False)
    address = Column(String(255), nullable=False, default="")
    tax_id = Column(String(50), nullable=False, default="")
    bank_account = Column(String(100), nullable=False, default="")
    payment_terms = Column(String(30), nullable=False, default="Net 30")
    status = Column(String(20), nullable=False, default="active")
    total_paid_cents = Column(Integer, nullable=False, default=0)
    total_owed_cents = Column(Integer, nullable=False, default=0)
    last_payment_date = Column(UTCDateTime)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)


class VendorBillRecord(Base):
    __tablename__ = "vendor_bills"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    vendor_name = Column(String(150), nullable=False)
    bill_number = Column(String(40), nullable=False)
    description = Column(String(255), nullable=False)
    category = Column(String(50), nullable=False, default="general")
    amount_cents = Column(Integer, nullable=False)
    tax_amount_cents = Column(Integer, nullable=False, default=0)
    total_amount_cents = Column(Integer, nullable=False)
    amount_paid_cents = Column(Integer, nullable=False, default=0)
    due_date = Column(UTCDateTime, nullable=False, index=True)
    status = Column(String(20), nullable=False, index=True)
    payment_references = Column(JSON, nullable=False, default=list)
    created_by = Column(String(50))
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)
    paid_at = Column(UTCDateTime)


class RecurringPaymentRecord(Base):
    __tablename__ = "recurring_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(150), nullable=False)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False, index=True)
    vendor_name = Column(String(150), nullable=False)
    amount_cents = Column(Integer, nullable=False)
    frequency = Column(String(20), nullable=False)
    start_date = Column(UTCDateTime, nullable=False)
    end_date = Column(UTCDateTime)
    next_payment_date = Column(UTCDateTime, nullable=False)
    status = Column(String(20), nullable=False, index=True)
    description = Column(String(255), nullable=False, default="")
    payment_method = Column(String(30), nullable=False)
    auto_retry = Column(Boolean, nullable=False, default=True)
    max_retries = Column(Integer, nullable=False)
    retry_interval_hours = Column(Integer, nullable=False)
    total_payments = Column(Integer, nullable=False, default=0)
    successful_payments = Column(Integer, nullable=False, default=0)
    failed_payments = Column(Integer, nullable=False, default=0)
    last_payment_date = Column(UTCDateTime)
    last_payment_status = Column(String(20))
    last_payment_amount_cents = Column(Integer)
    created_by = Column(String(50))
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)
    paused_at = Column(UTCDateTime)
    resumed_at = Column(UTCDateTime)
    cancelled_at = Column(UTCDateTime)
    completed_at = Column(UTCDateTime)
    failed_at = Column(UTCDateTime)
    failure_reason = Column(String(255))
    meta = Column(JSON)


class ScheduledPaymentRecord(Base):
    __tablename__ = "scheduled_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recurring_payment_id = Column(Integer, ForeignKey("recurring_payments.id"), nullable=False, index=True)
    scheduled_date = Column(UTCDateTime, nullable=False, index=True)
    amount_cents = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, index=True)
    retry_count = Column(Integer, nullable=False, default=0)
    is_retry = Column(Boolean, nullable=False, default=False)
    original_scheduled_payment_id = Column(Integer)
    created_at = Column(UTCDateTime, nullable=False)
    processed_at = Column(UTCDateTime)
    failure_reason = Column(String(255))
    payment_reference = Column(String(64))
