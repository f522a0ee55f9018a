"""Store wallet ledger."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from paycore.core.errors import InsufficientBalanceError, NotFoundError, ValidationError
from paycore.core.identifiers import Clock, epoch_millis, random_token, utcnow
from paycore.core.locks import KeyedLocks
from paycore.core.money import AmountLike, to_amount

from .models import DEPOSIT, PAYMENT, TRANSFER, WITHDRAW, WalletAccount, WalletEntryDraft, WalletTransaction
from .repository import WalletRepository

logger = logging.getLogger(__name__)

_REFERENCE_PREFIX = {DEPOSIT: "DEP", WITHDRAW: "WDR", TRANSFER: "TRF", PAYMENT: "PAY"}


class WalletLedger:
    """Balance ledger for one wallet account.

    Every operation appends exactly one :class:`WalletTransaction` carrying the
    balance after it. Debits never take the balance below zero.
    """

    def __init__(
        self,
        repository: WalletRepository,
        *,
        account_id: str = "store",
        opening_balance: Decimal = Decimal("0"),
        locks: Optional[KeyedLocks] = None,
        clock: Clock = utcnow,
    ) -> None:
        self._repository = repository
        self.account_id = account_id
        self._opening_balance = Decimal(opening_balance)
        self._locks = locks or KeyedLocks()
        self._clock = clock

    @classmethod
    def with_session(cls, session: AsyncSession, **kwargs) -> "WalletLedger":
        from paycore.infrastructure.database.repositories.wallet_repository import SqlWalletRepository

        return cls(SqlWalletRepository(session), **kwargs)

    async def deposit(
        self,
        amount: AmountLike,
        *,
        reference: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WalletTransaction:
        return await self._apply(DEPOSIT, amount, reference=reference, description=description or "Wallet deposit")

    async def withdraw(
        self,
        amount: AmountLike,
        *,
        reference: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WalletTransaction:
        return await self._apply(WITHDRAW, amount, reference=reference, description=description or "Wallet withdrawal")

    async def transfer(
        self,
        amount: AmountLike,
        recipient: str,
        *,
        reference: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WalletTransaction:
        if not recipient or not recipient.strip():
            raise ValidationError("Transfer recipient is required", code="INVALID_RECIPIENT")
        return await self._apply(
            TRANSFER,
            amount,
            reference=reference,
            description=description or f"Transfer to {recipient}",
            counterparty=recipient.strip(),
        )

    async def payment(
        self,
        amount: AmountLike,
        *,
        payee: Optional[str] = None,
        reference: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WalletTransaction:
        return await self._apply(
            PAYMENT,
            amount,
            reference=reference,
            description=description or (f"Payment to {payee}" if payee else "Wallet payment"),
            counterparty=payee,
        )

    async def balance(self) -> Decimal:
        account = await self._account()
        return account.balance

    async def account(self) -> WalletAccount:
        return await self._account()

    async def history(self, limit: int = 50) -> Sequence[WalletTransaction]:
        """Most recent first, at most ``limit`` entries."""
        if limit <= 0:
            raise ValidationError("limit must be greater than zero", code="INVALID_LIMIT")
        await self._account()
        return await self._repository.history(self.account_id, limit)

    async def get_transaction(self, transaction_id: str) -> WalletTransaction:
        entry = await self._repository.get_transaction(self.account_id, transaction_id)
        if entry is None:
            raise NotFoundError(f"Wallet transaction {transaction_id} not found", code="WALLET_TRANSACTION_NOT_FOUND")
        return entry

    async def ledger_total(self) -> Decimal:
        return await self._repository.ledger_total(self.account_id)

    async def _apply(
        self,
        kind: str,
        amount: AmountLike,
        *,
        reference: Optional[str],
        description: Optional[str],
        counterparty: Optional[str] = None,
    ) -> WalletTransaction:
        value = to_amount(amount)
        async with self._locks.hold(f"wallet:{self.account_id}"):
            await self._ensure_account()
            entry = self._entry(kind, value, reference=reference, description=description, counterparty=counterparty)
            applied = await self._repository.apply(self.account_id, entry)
            if applied is None:
                current = await self._repository.get_account(self.account_id)
                available = current.balance if current else Decimal("0")
                logger.warning(
                    "Rejected %s of %s on wallet %s: balance %s",
                    kind,
                    value,
                    self.account_id,
                    available,
                )
                raise InsufficientBalanceError(
                    "Insufficient wallet balance",
                    details={"requested": str(value), "available": str(available)},
                )
        logger.info("Wallet %s %s %s, balance %s", self.account_id, kind, value, applied.balance_after)
        return applied

    def _entry(
        self,
        kind: str,
        amount: Decimal,
        *,
        reference: Optional[str],
        description: Optional[str],
        counterparty: Optional[str],
    ) -> WalletEntryDraft:
        now = self._clock()
        return WalletEntryDraft(
            id=f"WTX_{epoch_millis(now)}_{random_token(6)}",
            type=kind,
            amount=amount,
            timestamp=now,
            reference=reference or f"{_REFERENCE_PREFIX[kind]}_{epoch_millis(now)}",
            description=description,
            counterparty=counterparty,
        )

    async def _account(self) -> WalletAccount:
        account = await self._repository.get_account(self.account_id)
        if account is not None:
            return account
        async with self._locks.hold(f"wallet:{self.account_id}"):
            return await self._ensure_account()

    async def _ensure_account(self) -> WalletAccount:
        """Create the account on first use. Caller holds the wallet lock."""
        account = await self._repository.get_account(self.account_id)
        if account is not None:
            return account
        account = await self._repository.create_account(self.account_id, self._clock())
        if self._opening_balance > 0:
            entry = self._entry(
                DEPOSIT,
                self._opening_balance,
                reference=None,
                description="Opening balance",
                counterparty=None,
            )
            await self._repository.apply(self.account_id, entry)
            account = await self._repository.get_account(self.account_id)
        return account


__all__ = ["WalletLedger"]
