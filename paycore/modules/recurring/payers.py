"""Payment rails used to settle scheduled recurring payments."""

from __future__ import annotations

from typing import Protocol

from paycore.modules.wallets import WalletLedger

from .models import RecurringPayment, ScheduledPayment


class RecurringPayer(Protocol):
    async def pay(self, plan: RecurringPayment, scheduled: ScheduledPayment) -> str:
        """Settle ``scheduled`` and return the payment reference.

        Raises a :class:`paycore.core.errors.PaymentError` when the payment fails.
        """
        ...


class WalletRecurringPayer:
    """Pays vendors out of the store wallet."""

    def __init__(self, wallet: WalletLedger) -> None:
        self._wallet = wallet

    async def pay(self, plan: RecurringPayment, scheduled: ScheduledPayment) -> str:
        entry = await self._wallet.payment(
            scheduled.amount,
            payee=plan.vendor_name,
            description=f"Recurring payment: {plan.name}",
        )
        return entry.reference


__all__ = ["RecurringPayer", "WalletRecurringPayer"]
