import asyncio
import random
from decimal import Decimal

import pytest

from paycore.core.errors import NotFoundError
from paycore.modules.gateways import GatewayResult, GatewayRouter, SimulatedCardGateway, build_simulated_router
from paycore.modules.gateways import adapters


class FixedRandom(random.Random):
    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value

    def uniform(self, a, b) -> float:
        return a


def quiet_router(roll: float = 0.99) -> GatewayRouter:
    return build_simulated_router(rng=FixedRandom(roll), latency_scale=0.0)


async def test_successful_attempt_carries_gateway_ids():
    result = await quiet_router().attempt("jazzcash", Decimal("1000"), "03001234567")

    assert result.success is True
    assert result.code == "SUCCESS"
    assert result.gateway_transaction_id.startswith("JC")
    assert result.reference.startswith("JAZZ_REF")
    assert result.gateway_response()["gateway_status"] == "success"


async def test_invalid_phone_is_a_validation_failure():
    result = await quiet_router().attempt("easypaisa", Decimal("10"), "12345")

    assert result.success is False
    assert result.code == "INVALID_PHONE_FORMAT"
    assert result.category == "validation"
    assert result.retryable is False


async def test_unsupported_network_is_never_retryable():
    upaisa_only_ufone = adapters.upaisa(
        rng=FixedRandom(0.99),
        latency_scale=0.0,
    )
    upaisa_only_ufone.supported_networks = frozenset({"UFONE"})

    result = await upaisa_only_ufone.attempt(Decimal("10"), "03001234567")

    assert result.code == "UNSUPPORTED_NETWORK_UPAISA"
    assert result.category == "validation"
    assert result.retryable is False


async def test_jazzcash_failure_bands():
    timeout = await quiet_router(roll=0.01).attempt("jazzcash", Decimal("10"), "03001234567")
    balance = await quiet_router(roll=0.06).attempt("jazzcash", Decimal("10"), "03001234567")

    assert (timeout.code, timeout.category, timeout.retryable) == ("NETWORK_TIMEOUT", "network", True)
    assert (balance.code, balance.retryable) == ("INSUFFICIENT_BALANCE", False)


async def test_unknown_gateway_uses_generic_adapter():
    router = quiet_router()

    result = await router.attempt("NayaPay", Decimal("10"), "03001234567")

    assert result.success is True
    assert result.code == "GENERIC_SUCCESS"
    assert result.gateway == "nayapay"
    assert "nayapay" not in router.names
    assert router.adapter_for("NayaPay") is not router.adapter_for("NayaPay")


async def test_attempt_timeout_becomes_retryable_network_failure():
    class SlowGateway:
        name = "slowpay"

        async def attempt(self, amount, phone) -> GatewayResult:
            await asyncio.sleep(5)
            raise AssertionError("attempt should have been cancelled")

    router = GatewayRouter({"slowpay": SlowGateway()}, SimulatedCardGateway(latency_scale=0.0))

    result = await router.attempt("slowpay", Decimal("10"), "03001234567", timeout=0.01)

    assert result.success is False
    assert result.code == "NETWORK_TIMEOUT"
    assert result.retryable is True


async def test_card_decline():
    card = SimulatedCardGateway(decline_rate=1.0, latency_scale=0.0)

    result = await card.authorize(Decimal("10"), "4242")

    assert result.success is False
    assert result.code == "PAYMENT_DECLINED"


def test_payment_methods_list_card_first_then_wallets():
    methods = quiet_router().payment_methods()

    assert [method.name for method in methods] == ["card", "easypaisa", "jazzcash", "sadapay", "upaisa"]
    assert methods[0].display_name == "Credit/Debit Card"
    assert methods[0].kind == "card"
    assert {method.kind for method in methods[1:]} == {"wallet"}
    assert all(method.enabled for method in methods)


def test_disabled_gateways_are_hidden_from_enabled_methods():
    router = build_simulated_router(latency_scale=0.0, disabled=["SadaPay"])

    disabled = router.disable("jazzcash")

    assert disabled.enabled is False
    assert router.is_enabled("JazzCash") is False
    assert [method.name for method in router.payment_methods(enabled_only=True)] == ["card", "easypaisa", "upaisa"]
    assert router.enable("jazzcash").enabled is True
    assert router.is_enabled("sadapay") is False


def test_unregistered_gateways_cannot_be_toggled():
    router = quiet_router()

    with pytest.raises(NotFoundError) as caught:
        router.disable("nayapay")

    assert caught.value.code == "GATEWAY_NOT_FOUND"
    assert router.is_enabled("nayapay") is True
