"""Transaction ledger use cases."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Optional, Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from paycore.core.errors import NotFoundError, StateError, ValidationError
from paycore.core.identifiers import Clock, generate_transaction_id, utcnow

from .models import (
    COMPLETED,
    FAILED,
    PROCESSING,
    VERIFICATION_FAILED,
    Transaction,
    TransactionDraft,
    TransactionErrorInfo,
    TransactionPage,
    VerificationResult,
)
from .repository import TransactionRepository

logger = logging.getLogger(__name__)

RETRY_OVERRIDABLE_FIELDS = frozenset({"payment_method", "phone", "amount", "card_last4", "card_brand"})


class TransactionVerifier(Protocol):
    async def decide(self, transaction: Transaction, evidence: Mapping[str, Any]) -> bool:
        ...


@dataclass(slots=True)
class SimulatedVerifier:
    """Approves a fixed share of verification requests."""

    approval_rate: float = 0.8
    rng: random.Random = field(default_factory=random.Random)

    async def decide(self, transaction: Transaction, evidence: Mapping[str, Any]) -> bool:
        return self.rng.random() < self.approval_rate


class TransactionLedger:
    """Append-only record of every payment attempt.

    Retries never rewrite history; they append a new entry linked to the one
    they retry through ``original_transaction_id``. Completed entries are frozen.
    """

    def __init__(
        self,
        repository: TransactionRepository,
        *,
        verifier: Optional[TransactionVerifier] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self._verifier = verifier or SimulatedVerifier()
        self._clock = clock

    @classmethod
    def with_session(cls, session: AsyncSession, **kwargs) -> "TransactionLedger":
        from paycore.infrastructure.database.repositories.transaction_repository import SqlTransactionRepository

        return cls(SqlTransactionRepository(session), **kwargs)

    async def record(
        self,
        *,
        order_id: int,
        amount: Decimal,
        payment_method: str,
        status: str,
        retry_count: int = 0,
        error: Optional[TransactionErrorInfo] = None,
        gateway_response: Optional[dict[str, Any]] = None,
        phone: Optional[str] = None,
        card_last4: Optional[str] = None,
        card_brand: Optional[str] = None,
        original_transaction_id: Optional[str] = None,
    ) -> Transaction:
        now = self._clock()
        draft = TransactionDraft(
            transaction_id=generate_transaction_id(now),
            order_id=order_id,
            amount=Decimal(str(amount)),
            payment_method=payment_method,
            status=status,
            timestamp=now,
            retry_count=retry_count,
            error=error,
            gateway_response=gateway_response,
            phone=phone,
            card_last4=card_last4,
            card_brand=card_brand,
            original_transaction_id=original_transaction_id,
        )
        transaction = await self._repository.create(draft)
        logger.info(
            "Recorded transaction %s for order %s: %s %s via %s",
            transaction.transaction_id,
            order_id,
            status,
            transaction.amount,
            payment_method,
        )
        return transaction

    async def retry(self, transaction_id: str, overrides: Optional[Mapping[str, Any]] = None) -> Transaction:
        """Append a processing entry that re-attempts ``transaction_id``."""
        original = await self.get(transaction_id)
        if original.is_completed:
            raise StateError(
                f"Transaction {transaction_id} is already completed",
                code="TRANSACTION_COMPLETED",
            )
        overrides = dict(overrides or {})
        unknown = set(overrides) - RETRY_OVERRIDABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Cannot override {', '.join(sorted(unknown))} on retry",
                code="INVALID_RETRY_FIELDS",
            )
        return await self.record(
            order_id=original.order_id,
            amount=overrides.get("amount", original.amount),
            payment_method=overrides.get("payment_method", original.payment_method),
            status=PROCESSING,
            retry_count=original.retry_count + 1,
            phone=overrides.get("phone", original.phone),
            card_last4=overrides.get("card_last4", original.card_last4),
            card_brand=overrides.get("card_brand", original.card_brand),
            original_transaction_id=original.transaction_id,
        )

    async def settle(
        self,
        transaction_id: str,
        *,
        success: bool,
        gateway_response: Optional[dict[str, Any]] = None,
        error: Optional[TransactionErrorInfo] = None,
    ) -> Transaction:
        """Resolve a processing entry to completed or failed."""
        transaction = await self.get(transaction_id)
        if transaction.status != PROCESSING:
            raise StateError(
                f"Transaction {transaction_id} is {transaction.status}, not processing",
                code="TRANSACTION_NOT_PROCESSING",
            )
        changes: dict[str, Any] = {
            "status": COMPLETED if success else FAILED,
            "gateway_response": gateway_response,
            "error": None if success else error,
            "updated_at": self._clock(),
        }
        return await self._update(transaction_id, changes)

    async def verify(
        self,
        transaction_id: str,
        evidence: Optional[Mapping[str, Any]] = None,
        *,
        approved: Optional[bool] = None,
    ) -> VerificationResult:
        """Decide a transaction's verification.

        ``approved`` records an operator decision; without it the configured
        verifier decides. Verifying a completed transaction is a no-op.
        """
        transaction = await self.get(transaction_id)
        if transaction.is_completed:
            return VerificationResult(verified=True, transaction=transaction)
        evidence = dict(evidence or {})
        if approved is None:
            approved = await self._verifier.decide(transaction, evidence)
        now = self._clock()
        changes: dict[str, Any] = {
            "status": COMPLETED if approved else VERIFICATION_FAILED,
            "verification_data": evidence,
            "updated_at": now,
        }
        if approved:
            changes["verified_at"] = now
            changes["error"] = None
        else:
            changes["error"] = TransactionErrorInfo(
                code="VERIFICATION_FAILED",
                message="Payment verification failed",
                category="validation",
            )
        updated = await self._update(transaction_id, changes)
        logger.info("Transaction %s verification %s", transaction_id, "approved" if approved else "rejected")
        return VerificationResult(verified=bool(approved), transaction=updated)

    async def mark_failed(self, transaction_id: str, error: TransactionErrorInfo) -> Transaction:
        transaction = await self.get(transaction_id)
        self._ensure_mutable(transaction)
        return await self._update(
            transaction_id,
            {"status": FAILED, "error": error, "updated_at": self._clock()},
        )

    async def attach_proof(self, transaction_id: str, file_name: str) -> Transaction:
        self._ensure_mutable(await self.get(transaction_id))
        return await self._update(
            transaction_id,
            {"proof_file_name": file_name, "updated_at": self._clock()},
        )

    async def exists(self, transaction_id: str) -> bool:
        return await self._repository.get_by_transaction_id(transaction_id) is not None

    async def find(self, transaction_id: str) -> Optional[Transaction]:
        return await self._repository.get_by_transaction_id(transaction_id)

    async def get(self, transaction_id: str) -> Transaction:
        transaction = await self._repository.get_by_transaction_id(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction {transaction_id} not found", code="TRANSACTION_NOT_FOUND")
        return transaction

    async def get_by_id(self, id: int) -> Transaction:
        transaction = await self._repository.get_by_id(id)
        if transaction is None:
            raise NotFoundError(f"Transaction #{id} not found", code="TRANSACTION_NOT_FOUND")
        return transaction

    async def list_by_order(self, order_id: int) -> Sequence[Transaction]:
        return await self._repository.list_by_order(order_id)

    async def list_page(self, offset: int = 0, limit: int = 50) -> TransactionPage:
        if offset < 0 or limit <= 0:
            raise ValidationError("offset must be >= 0 and limit > 0", code="INVALID_PAGINATION")
        items, total = await self._repository.list_page(offset, limit)
        return TransactionPage(total=total, items=list(items))

    @staticmethod
    def _ensure_mutable(transaction: Transaction) -> None:
        if transaction.is_completed:
            raise StateError(
                f"Transaction {transaction.transaction_id} is completed and cannot change",
                code="TRANSACTION_COMPLETED",
            )

    async def _update(self, transaction_id: str, changes: Mapping[str, Any]) -> Transaction:
        updated = await self._repository.update(transaction_id, changes)
        if updated is None:
            raise NotFoundError(f"Transaction {transaction_id} not found", code="TRANSACTION_NOT_FOUND")
        return updated


__all__ = ["SimulatedVerifier", "TransactionLedger", "TransactionVerifier"]
