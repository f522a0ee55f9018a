"""Gateway adapters.

Each digital wallet rail is an adapter behind :class:`GatewayAdapter`. The simulated
adapters below reproduce the sandbox behaviour of the storefront: carrier allow-lists,
processing latency and per-gateway failure bands. A production adapter only has to
return the same :class:`GatewayResult` shape.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Protocol

from paycore.core.identifiers import epoch_millis, generate_auth_code, generate_reference, random_token
from paycore.modules import phones

from .models import FailureBand, GatewayResult

logger = logging.getLogger(__name__)

INVALID_PHONE_MESSAGE = (
    "Invalid phone number format. Please use a valid Pakistani mobile number "
    "(03xxxxxxxxx or +923xxxxxxxxx)"
)


class GatewayAdapter(Protocol):
    name: str

    async def attempt(self, amount: Decimal, phone: str) -> GatewayResult:
        ...


@dataclass(slots=True)
class SimulatedWalletGateway:
    name: str
    display_name: str
    id_prefix: str
    reference_prefix: str
    processing_delay: float
    failure_bands: tuple[FailureBand, ...]
    supported_networks: Optional[frozenset[str]] = None
    success_code: str = "SUCCESS"
    rng: random.Random = field(default_factory=random.Random)
    latency_scale: float = 1.0
    failure_scale: float = 1.0

    async def attempt(self, amount: Decimal, phone: str) -> GatewayResult:
        if not phones.is_valid(phone):
            return GatewayResult.failure(
                self.name,
                code="INVALID_PHONE_FORMAT",
                message=INVALID_PHONE_MESSAGE,
                category="validation",
            )

        network = phones.network_of(phone)
        if self.supported_networks is not None and network not in self.supported_networks:
            allowed = ", ".join(sorted(n.title() for n in self.supported_networks))
            return GatewayResult.failure(
                self.name,
                code=f"UNSUPPORTED_NETWORK_{self.name.upper()}",
                message=f"{self.display_name} is not supported for {network} numbers. Please use a {allowed} number.",
                category="validation",
            )

        network_delay = self.rng.uniform(0.5, 1.5)
        await asyncio.sleep((network_delay + self.processing_delay) * self.latency_scale)

        roll = self.rng.random()
        threshold = 0.0
        for band in self.failure_bands:
            threshold += band.probability * self.failure_scale
            if roll < threshold:
                logger.info("%s simulated failure %s for amount %s", self.display_name, band.code, amount)
                return GatewayResult.failure(
                    self.name,
                    code=band.code,
                    message=band.message,
                    category=band.category,
                    retryable=band.retryable,
                )

        return GatewayResult(
            gateway=self.name,
            success=True,
            code=self.success_code,
            category="gateway",
            retryable=False,
            message=f"{self.display_name} payment processed successfully",
            gateway_transaction_id=f"{self.id_prefix}{epoch_millis()}{random_token(9)}",
            reference=f"{self.reference_prefix}_{generate_reference()}",
            auth_code=generate_auth_code(),
        )


@dataclass(slots=True)
class SimulatedCardGateway:
    """Card network stand-in with a flat decline rate."""

    name: str = "card"
    decline_rate: float = 0.1
    processing_delay: float = 2.0
    rng: random.Random = field(default_factory=random.Random)
    latency_scale: float = 1.0

    async def authorize(self, amount: Decimal, card_last4: str) -> GatewayResult:
        await asyncio.sleep(self.processing_delay * self.latency_scale)
        if self.rng.random() < self.decline_rate:
            return GatewayResult.failure(
                self.name,
                code="PAYMENT_DECLINED",
                message="Payment declined. Please try again or use a different card.",
            )
        return GatewayResult(
            gateway=self.name,
            success=True,
            code="APPROVED",
            category="gateway",
            retryable=False,
            message=f"Card ending {card_last4} approved",
            reference=generate_reference(),
            auth_code=generate_auth_code(),
        )


_FIVE_CARRIERS = frozenset({"JAZZ", "TELENOR", "ZONG", "UFONE", "WARID"})


def jazzcash(**kwargs) -> SimulatedWalletGateway:
    return SimulatedWalletGateway(
        name="jazzcash",
        display_name="JazzCash",
        id_prefix="JC",
        reference_prefix="JAZZ",
        processing_delay=2.0,
        supported_networks=_FIVE_CARRIERS,
        failure_bands=(
            FailureBand(0.05, "NETWORK_TIMEOUT", "Network timeout. Please try again.", "network", True),
            FailureBand(0.02, "INSUFFICIENT_BALANCE", "Insufficient balance in your JazzCash account.", "gateway", False),
        ),
        **kwargs,
    )


def easypaisa(**kwargs) -> SimulatedWalletGateway:
    return SimulatedWalletGateway(
        name="easypaisa",
        display_name="EasyPaisa",
        id_prefix="EP",
        reference_prefix="EASY",
        processing_delay=1.8,
        supported_networks=_FIVE_CARRIERS,
        failure_bands=(
            FailureBand(0.03, "SERVICE_UNAVAILABLE", "EasyPaisa service temporarily unavailable.", "gateway", True),
        ),
        **kwargs,
    )


def upaisa(**kwargs) -> SimulatedWalletGateway:
    return SimulatedWalletGateway(
        name="upaisa",
        display_name="UPaisa",
        id_prefix="UP",
        reference_prefix="UPAISA",
        processing_delay=1.5,
        supported_networks=frozenset({"UFONE", "JAZZ", "TELENOR"}),
        success_code="UPAISA_SUCCESS",
        failure_bands=(
            FailureBand(0.2, "UPAISA_FAILED", "UPaisa payment failed. Please try again.", "gateway", True),
        ),
        **kwargs,
    )


def sadapay(**kwargs) -> SimulatedWalletGateway:
    return SimulatedWalletGateway(
        name="sadapay",
        display_name="SadaPay",
        id_prefix="SP",
        reference_prefix="SADAPAY",
        processing_delay=1.8,
        supported_networks=frozenset({"JAZZ", "TELENOR", "ZONG", "UFONE"}),
        success_code="SADAPAY_SUCCESS",
        failure_bands=(
            FailureBand(0.25, "SADAPAY_FAILED", "SadaPay payment failed. Please try again.", "gateway", True),
        ),
        **kwargs,
    )


def generic(name: str, **kwargs) -> SimulatedWalletGateway:
    return SimulatedWalletGateway(
        name=name.lower(),
        display_name=name,
        id_prefix=name.upper(),
        reference_prefix=name.upper(),
        processing_delay=2.5,
        success_code="GENERIC_SUCCESS",
        failure_bands=(
            FailureBand(0.3, "GENERIC_FAILED", f"{name} payment failed. Please try again.", "gateway", True),
        ),
        **kwargs,
    )


__all__ = [
    "GatewayAdapter",
    "INVALID_PHONE_MESSAGE",
    "SimulatedCardGateway",
    "SimulatedWalletGateway",
    "easypaisa",
    "generic",
    "jazzcash",
    "sadapay",
    "upaisa",
]
