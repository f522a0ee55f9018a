"""Gateway selection with timeout-bounded attempts."""

from __future__ import annotations

import asyncio
import logging
import random
from decimal import Decimal
from typing import Callable, Iterable, Mapping, Optional

from paycore.core.errors import NotFoundError

from . import adapters
from .adapters import GatewayAdapter, SimulatedCardGateway
from .models import CARD_KIND, WALLET_KIND, GatewayResult, PaymentMethod

logger = logging.getLogger(__name__)

CARD_DISPLAY_NAME = "Credit/Debit Card"


class GatewayRouter:
    """Maps a gateway name to its adapter and runs one attempt against it.

    Registered gateways, the card rail included, can be switched off at
    runtime. Names outside the registry go to ``fallback`` per call and are
    never switched off.
    """

    def __init__(
        self,
        wallet_adapters: Mapping[str, GatewayAdapter],
        card: SimulatedCardGateway,
        *,
        fallback: Optional[Callable[[str], GatewayAdapter]] = None,
        disabled: Iterable[str] = (),
    ) -> None:
        self._adapters = {name.lower(): adapter for name, adapter in wallet_adapters.items()}
        self._fallback = fallback
        self.card = card
        self._disabled: set[str] = set()
        for name in disabled:
            self.disable(name)

    @property
    def names(self) -> list[str]:
        return sorted(self._adapters)

    def adapter_for(self, gateway: str) -> GatewayAdapter:
        adapter = self._adapters.get(gateway.lower())
        if adapter is not None:
            return adapter
        if self._fallback is None:
            raise KeyError(gateway)
        return self._fallback(gateway)

    def is_registered(self, gateway: str) -> bool:
        key = gateway.lower()
        return key == self.card.name or key in self._adapters

    def is_enabled(self, gateway: str) -> bool:
        return gateway.lower() not in self._disabled

    def enable(self, gateway: str) -> PaymentMethod:
        key = self._registered_key(gateway)
        self._disabled.discard(key)
        logger.info("Gateway %s enabled", key)
        return self.method(key)

    def disable(self, gateway: str) -> PaymentMethod:
        key = self._registered_key(gateway)
        self._disabled.add(key)
        logger.info("Gateway %s disabled", key)
        return self.method(key)

    def method(self, gateway: str) -> PaymentMethod:
        key = self._registered_key(gateway)
        if key == self.card.name:
            return PaymentMethod(key, CARD_DISPLAY_NAME, CARD_KIND, self.is_enabled(key))
        adapter = self._adapters[key]
        display_name = getattr(adapter, "display_name", adapter.name)
        return PaymentMethod(key, display_name, WALLET_KIND, self.is_enabled(key))

    def payment_methods(self, *, enabled_only: bool = False) -> list[PaymentMethod]:
        methods = [self.method(name) for name in [self.card.name, *self.names]]
        return [method for method in methods if method.enabled] if enabled_only else methods

    async def attempt(
        self,
        gateway: str,
        amount: Decimal,
        phone: str,
        timeout: Optional[float] = None,
    ) -> GatewayResult:
        adapter = self.adapter_for(gateway)
        try:
            if timeout is None:
                return await adapter.attempt(amount, phone)
            return await asyncio.wait_for(adapter.attempt(amount, phone), timeout)
        except asyncio.TimeoutError:
            logger.warning("%s attempt exceeded %.2fs timeout", gateway, timeout)
            return GatewayResult.failure(
                adapter.name,
                code="NETWORK_TIMEOUT",
                message="Network timeout. Please try again.",
                category="network",
                retryable=True,
            )

    def _registered_key(self, gateway: str) -> str:
        key = gateway.lower()
        if not self.is_registered(key):
            raise NotFoundError(f"Payment gateway {gateway} not found", code="GATEWAY_NOT_FOUND")
        return key


def build_simulated_router(
    *,
    rng: Optional[random.Random] = None,
    latency_scale: float = 1.0,
    failure_scale: float = 1.0,
    card_decline_rate: float = 0.1,
    disabled: Iterable[str] = (),
) -> GatewayRouter:
    rng = rng or random.Random()
    options = {"rng": rng, "latency_scale": latency_scale, "failure_scale": failure_scale}
    wallet_adapters = {
        "jazzcash": adapters.jazzcash(**options),
        "easypaisa": adapters.easypaisa(**options),
        "upaisa": adapters.upaisa(**options),
        "sadapay": adapters.sadapay(**options),
    }
    card = SimulatedCardGateway(decline_rate=card_decline_rate * failure_scale, rng=rng, latency_scale=latency_scale)
    return GatewayRouter(
        wallet_adapters,
        card,
        fallback=lambda name: adapters.generic(name, **options),
        disabled=disabled,
    )


__all__ = ["CARD_DISPLAY_NAME", "GatewayRouter", "build_simulated_router"]
