import asyncio
from decimal import Decimal

import pytest

from paycore.core.errors import InsufficientBalanceError, InvalidAmountError, NotFoundError, ValidationError
from paycore.infrastructure.memory import InMemoryWalletRepository
from paycore.modules.wallets import DEPOSIT, PAYMENT, TRANSFER, WITHDRAW, WalletLedger


async def test_deposit_then_overdraw_leaves_balance(services):
    await services.wallet.deposit(5000)

    with pytest.raises(InsufficientBalanceError):
        await services.wallet.withdraw(6000)

    assert await services.wallet.balance() == Decimal("5000.00")
    assert len(await services.wallet.history()) == 1


async def test_operations_keep_balance_equal_to_ledger(funded_wallet):
    await funded_wallet.withdraw("1200.50")
    await funded_wallet.transfer(300, "supplier-42")
    await funded_wallet.payment(99.99, payee="Electric Co")
    await funded_wallet.deposit(1)

    balance = await funded_wallet.balance()
    assert balance == Decimal("8400.51")
    assert await funded_wallet.ledger_total() == balance
    history = await funded_wallet.history()
    assert [entry.type for entry in history] == [DEPOSIT, PAYMENT, TRANSFER, WITHDRAW, DEPOSIT]
    assert history[0].balance_after == balance
    assert history[2].counterparty == "supplier-42"


@pytest.mark.parametrize("amount", [0, -5, "abc", None, "0.001"])
async def test_invalid_amounts(services, amount):
    with pytest.raises(InvalidAmountError):
        await services.wallet.deposit(amount)


async def test_transfer_requires_recipient(funded_wallet):
    with pytest.raises(ValidationError):
        await funded_wallet.transfer(10, "  ")


async def test_references_and_lookup(funded_wallet):
    entry = await funded_wallet.payment(10, reference="INV-77")

    assert entry.reference == "INV-77"
    assert (await funded_wallet.get_transaction(entry.id)).amount == Decimal("10.00")
    with pytest.raises(NotFoundError):
        await funded_wallet.get_transaction("WTX_missing")


async def test_opening_balance_is_a_deposit():
    ledger = WalletLedger(InMemoryWalletRepository(), account_id="branch", opening_balance=Decimal("250"))

    history = await ledger.history()

    assert await ledger.balance() == Decimal("250")
    assert [entry.description for entry in history] == ["Opening balance"]


async def test_concurrent_debits_never_overdraw():
    ledger = WalletLedger(InMemoryWalletRepository(), account_id="race")
    await ledger.deposit(100)

    results = await asyncio.gather(*(ledger.withdraw(30) for _ in range(5)), return_exceptions=True)

    succeeded = [item for item in results if not isinstance(item, Exception)]
    assert len(succeeded) == 3
    assert all(isinstance(item, InsufficientBalanceError) for item in results if isinstance(item, Exception))
    assert await ledger.balance() == Decimal("10.00")
