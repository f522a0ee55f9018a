from datetime import date
from decimal import Decimal

import pytest

from paycore.core.container import ApplicationContainer
from paycore.core.errors import DeclinedError, GatewayError, ValidationError
from paycore.modules.checkout import CardDetails, CheckoutService, validate_card
from paycore.modules.gateways import GatewayResult, GatewayRouter, SimulatedCardGateway
from paycore.modules.transactions import COMPLETED, FAILED


class ScriptedGateway:
    """Returns queued results in order, repeating the last one."""

    def __init__(self, name: str, *results: GatewayResult) -> None:
        self.name = name
        self.results = list(results)
        self.calls = 0

    async def attempt(self, amount, phone) -> GatewayResult:
        self.calls += 1
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


def ok(name: str = "jazzcash") -> GatewayResult:
    return GatewayResult(gateway=name, success=True, code="SUCCESS", category="gateway", retryable=False, message="ok")


def timeout(name: str = "jazzcash") -> GatewayResult:
    return GatewayResult.failure(name, code="NETWORK_TIMEOUT", message="timeout", category="network", retryable=True)


def scripted_checkout(services, sleep, gateway: ScriptedGateway, **kwargs) -> CheckoutService:
    router = GatewayRouter({gateway.name: gateway}, SimulatedCardGateway(decline_rate=0.0, latency_scale=0.0))
    return CheckoutService(services.ledger, router, sleep=sleep, **kwargs)


VALID_CARD = CardDetails(number="4242 4242 4242 4242", expiry="12/99", cvv="123", holder_name="Ayesha Khan")


async def test_wallet_charge_with_no_failures(services):
    transaction = await services.checkout.charge_wallet("jazzcash", 1000, 55, "03001234567")

    assert transaction.status == COMPLETED
    assert transaction.amount == Decimal("1000.00")
    assert transaction.order_id == 55
    recorded = await services.ledger.list_by_order(55)
    assert [item.transaction_id for item in recorded] == [transaction.transaction_id]


async def test_retryable_failures_back_off_exponentially(services, sleep):
    gateway = ScriptedGateway("jazzcash", timeout(), timeout(), ok())
    checkout = scripted_checkout(services, sleep, gateway, backoff_base_seconds=1.0)

    transaction = await checkout.charge_wallet("jazzcash", 500, 9, "03001234567")

    assert transaction.status == COMPLETED
    assert transaction.retry_count == 2
    assert sleep.delays == [1.0, 2.0]
    attempts = await services.ledger.list_by_order(9)
    assert [item.status for item in attempts] == [FAILED, FAILED, COMPLETED]
    assert attempts[1].original_transaction_id == attempts[0].transaction_id
    assert attempts[2].original_transaction_id == attempts[0].transaction_id


async def test_exhausted_retries_return_failed_transaction(services, sleep):
    gateway = ScriptedGateway("jazzcash", timeout())
    checkout = scripted_checkout(services, sleep, gateway, max_retries=3)

    transaction = await checkout.charge_wallet("jazzcash", 500, 10, "03001234567")

    assert transaction.status == FAILED
    assert transaction.error.code == "NETWORK_TIMEOUT"
    assert gateway.calls == 4
    assert sleep.delays == [1.0, 2.0, 4.0]


async def test_non_retryable_failure_raises(services, sleep):
    declined = GatewayResult.failure("jazzcash", code="INSUFFICIENT_BALANCE", message="no funds", retryable=False)
    checkout = scripted_checkout(services, sleep, ScriptedGateway("jazzcash", declined))

    with pytest.raises(GatewayError) as caught:
        await checkout.charge_wallet("jazzcash", 500, 11, "03001234567")

    assert caught.value.code == "INSUFFICIENT_BALANCE"
    assert caught.value.retryable is False
    assert sleep.delays == []
    [failed] = await services.ledger.list_by_order(11)
    assert caught.value.details["transaction_id"] == failed.transaction_id


async def test_invalid_phone_is_recorded_and_raised(services):
    with pytest.raises(ValidationError) as caught:
        await services.checkout.charge_wallet("easypaisa", 100, 12, "12345")

    assert caught.value.code == "INVALID_PHONE"
    [failed] = await services.ledger.list_by_order(12)
    assert failed.status == FAILED
    assert failed.error.category == "validation"


async def test_card_payment(services):
    transaction = await services.checkout.charge_card(VALID_CARD, "49.99", 20)

    assert transaction.status == COMPLETED
    assert transaction.card_last4 == "4242"
    assert transaction.card_brand == "visa"
    assert transaction.amount == Decimal("49.99")


async def test_card_decline_is_recorded(services, sleep):
    router = GatewayRouter({}, SimulatedCardGateway(decline_rate=1.0, latency_scale=0.0))
    checkout = CheckoutService(services.ledger, router, sleep=sleep)

    with pytest.raises(DeclinedError):
        await checkout.charge_card(VALID_CARD, 10, 21)

    [declined] = await services.ledger.list_by_order(21)
    assert declined.status == FAILED


@pytest.mark.parametrize(
    "card, code",
    [
        (CardDetails("4242", "12/99", "123", "Ayesha Khan"), "INVALID_CARD_NUMBER"),
        (CardDetails("4242424242424242", "13/99", "123", "Ayesha Khan"), "INVALID_EXPIRY_DATE"),
        (CardDetails("4242424242424242", "12/99", "1", "Ayesha Khan"), "INVALID_CVV"),
        (CardDetails("4242424242424242", "12/99", "123", "A"), "INVALID_CARDHOLDER_NAME"),
        (CardDetails("4242424242424242", "01/20", "123", "Ayesha Khan"), "CARD_EXPIRED"),
    ],
)
def test_card_validation(card, code):
    with pytest.raises(ValidationError) as caught:
        validate_card(card, today=date(2026, 10, 17))
    assert caught.value.code == code


def test_card_valid_through_expiry_month():
    validate_card(CardDetails("5555555555554444", "10/26", "123", "Ayesha Khan"), today=date(2026, 10, 31))


async def test_retry_payment_settles_new_entry(services, sleep):
    declined = GatewayResult.failure("jazzcash", code="SERVICE_UNAVAILABLE", message="down", retryable=False)
    gateway = ScriptedGateway("jazzcash", declined, ok())
    checkout = scripted_checkout(services, sleep, gateway)
    with pytest.raises(GatewayError) as caught:
        await checkout.charge_wallet("jazzcash", 300, 30, "03001234567")

    retried = await checkout.retry_payment(caught.value.details["transaction_id"])

    assert retried.status == COMPLETED
    assert retried.original_transaction_id == caught.value.details["transaction_id"]
    assert retried.retry_count == 1


async def test_disabled_wallet_gateway_refuses_charges(container, services):
    container.router.disable("jazzcash")

    with pytest.raises(ValidationError) as caught:
        await services.checkout.charge_wallet("JazzCash", 100, 70, "03001234567")

    assert caught.value.code == "GATEWAY_DISABLED"
    assert await services.ledger.list_by_order(70) == []

    container.router.enable("jazzcash")
    transaction = await services.checkout.charge_wallet("jazzcash", 100, 70, "03001234567")
    assert transaction.status == COMPLETED


async def test_disabled_card_rail_refuses_charges(container, services):
    container.router.disable("card")

    with pytest.raises(ValidationError) as caught:
        await services.checkout.charge_card(VALID_CARD, 10, 71)

    assert caught.value.code == "GATEWAY_DISABLED"
    assert await services.ledger.list_by_order(71) == []


async def test_gateways_disabled_in_settings_start_off(settings, clock, sleep, storage):
    settings.gateways.disabled = ["easypaisa"]
    container = ApplicationContainer(settings=settings, clock=clock, sleep=sleep, storage=storage)
    container.init_infrastructure()

    async with container.unit_of_work() as services:
        with pytest.raises(ValidationError):
            await services.checkout.charge_wallet("easypaisa", 100, 72, "03001234567")

    assert "easypaisa" not in [method.name for method in container.router.payment_methods(enabled_only=True)]
