"""Error taxonomy shared by every payment component.

Each error carries a machine readable ``code``, a user displayable ``message``, the
``kind`` it belongs to and whether a retry may succeed. Callers dispatch on the class
or on ``kind``; they never need to inspect the message text.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    GATEWAY = "gateway"
    NETWORK = "network"
    SECURITY = "security"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    STATE = "state"


class PaymentError(Exception):
    """Base class for payment domain errors."""

    kind: ErrorKind = ErrorKind.STATE
    default_code: str = "PAYMENT_ERROR"
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        retryable: Optional[bool] = None,
        kind: Optional[ErrorKind] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.retryable = self.default_retryable if retryable is None else retryable
        if kind is not None:
            self.kind = kind
        self.details: dict[str, Any] = dict(details or {})

    @property
    def category(self) -> str:
        return self.kind.value

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }


class ValidationError(PaymentError):
    """Bad input. Never retryable."""

    kind = ErrorKind.VALIDATION
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str, *, code: Optional[str] = None, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message, code=code, retryable=False, details=details)


class InvalidAmountError(ValidationError):
    default_code = "INVALID_AMOUNT"


class InsufficientBalanceError(ValidationError):
    default_code = "INSUFFICIENT_BALANCE"


class GatewayError(PaymentError):
    """Upstream payment rail failure; retryability is decided per error."""

    kind = ErrorKind.GATEWAY
    default_code = "PAYMENT_FAILED"


class DeclinedError(GatewayError):
    default_code = "PAYMENT_DECLINED"


class NetworkError(GatewayError):
    kind = ErrorKind.NETWORK
    default_code = "NETWORK_TIMEOUT"
    default_retryable = True


class SecurityError(PaymentError):
    """Scan or quarantine failure. Never retryable."""

    kind = ErrorKind.SECURITY
    default_code = "SECURITY_SCAN_FAILED"

    def __init__(self, message: str, *, code: Optional[str] = None, details: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(message, code=code, retryable=False, details=details)


class QuarantinedError(SecurityError):
    default_code = "FILE_QUARANTINED"


class IntegrityError(SecurityError):
    default_code = "INTEGRITY_CHECK_FAILED"


class AuthorizationError(PaymentError):
    kind = ErrorKind.AUTHORIZATION
    default_code = "UNAUTHORIZED"


class NotFoundError(PaymentError):
    kind = ErrorKind.NOT_FOUND
    default_code = "NOT_FOUND"


class StateError(PaymentError):
    """Invalid lifecycle transition."""

    kind = ErrorKind.STATE
    default_code = "INVALID_STATE"


class ExpiredError(StateError):
    default_code = "EXPIRED"


__all__ = [
    "AuthorizationError",
    "DeclinedError",
    "ErrorKind",
    "ExpiredError",
    "GatewayError",
    "InsufficientBalanceError",
    "IntegrityError",
    "InvalidAmountError",
    "NetworkError",
    "NotFoundError",
    "PaymentError",
    "QuarantinedError",
    "SecurityError",
    "StateError",
    "ValidationError",
]
