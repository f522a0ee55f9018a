"""Gateway attempt results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(slots=True, frozen=True)
class FailureBand:
    """A slice of the probability space mapped to one failure outcome."""

    probability: float
    code: str
    message: str
    category: str
    retryable: bool


@dataclass(slots=True, frozen=True)
class GatewayResult:
    gateway: str
    success: bool
    code: str
    category: str
    retryable: bool
    message: str
    gateway_transaction_id: Optional[str] = None
    reference: Optional[str] = None
    auth_code: Optional[str] = None

    @classmethod
    def failure(
        cls,
        gateway: str,
        *,
        code: str,
        message: str,
        category: str = "gateway",
        retryable: bool = False,
    ) -> "GatewayResult":
        return cls(
            gateway=gateway,
            success=False,
            code=code,
            category=category,
            retryable=retryable,
            message=message,
        )

    @property
    def gateway_status(self) -> str:
        return "success" if self.success else "failed"

    def gateway_response(self) -> dict[str, Any]:
        return {
            "gateway": self.gateway,
            "gateway_status": self.gateway_status,
            "code": self.code,
            "message": self.message,
            "gateway_transaction_id": self.gateway_transaction_id,
            "reference": self.reference,
            "auth_code": self.auth_code,
        }


WALLET_KIND = "wallet"
CARD_KIND = "card"


@dataclass(slots=True, frozen=True)
class PaymentMethod:
    """A checkout rail and whether it currently accepts payments."""

    name: str
    display_name: str
    kind: str
    enabled: bool
