"""Gateway exports"""

from .adapters import GatewayAdapter, SimulatedCardGateway, SimulatedWalletGateway
from .models import CARD_KIND, WALLET_KIND, FailureBand, GatewayResult, PaymentMethod
from .router import GatewayRouter, build_simulated_router

__all__ = [
    "CARD_KIND",
    "FailureBand",
    "GatewayAdapter",
    "GatewayResult",
    "GatewayRouter",
    "PaymentMethod",
    "SimulatedCardGateway",
    "SimulatedWalletGateway",
    "WALLET_KIND",
    "build_simulated_router",
]
