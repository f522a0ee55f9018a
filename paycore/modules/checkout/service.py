"""Checkout payment orchestration."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Mapping, Optional

from paycore.core.errors import (
    DeclinedError,
    GatewayError,
    InvalidAmountError,
    NetworkError,
    PaymentError,
    ValidationError,
)
from paycore.core.money import AmountLike, to_amount
from paycore.modules import phones
from paycore.modules.gateways import GatewayResult, GatewayRouter
from paycore.modules.transactions import (
    COMPLETED,
    FAILED,
    Transaction,
    TransactionErrorInfo,
    TransactionLedger,
)

from .cards import CardDetails, validate_card

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[Any]]

CARD_METHOD = "card"


def _error_info(result: GatewayResult) -> TransactionErrorInfo:
    return TransactionErrorInfo(code=result.code, message=result.message, category=result.category)


def _error_for(result: GatewayResult, transaction: Transaction) -> PaymentError:
    details = {"transaction_id": transaction.transaction_id, "gateway": result.gateway}
    if result.category == "validation":
        return ValidationError(result.message, code=result.code, details=details)
    if result.category == "network":
        return NetworkError(result.message, code=result.code, retryable=result.retryable, details=details)
    return GatewayError(result.message, code=result.code, retryable=result.retryable, details=details)


def _loose_amount(value: Any) -> Decimal:
    """Best-effort amount for recording a rejected attempt."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return amount if amount.is_finite() else Decimal("0")


class CheckoutService:
    """Runs card and digital wallet charges against the gateway router.

    Every gateway attempt is written to the ledger, successful or not.
    """

    def __init__(
        self,
        ledger: TransactionLedger,
        router: GatewayRouter,
        *,
        max_retries: int = 3,
        backoff_base_seconds: float = 1.0,
        attempt_timeout: Optional[float] = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._ledger = ledger
        self._router = router
        self.max_retries = max_retries
        self.backoff_base_seconds = backoff_base_seconds
        self.attempt_timeout = attempt_timeout
        self._sleep = sleep

    def backoff_delay(self, retry_count: int) -> float:
        return self.backoff_base_seconds * (2 ** retry_count)

    def ensure_enabled(self, gateway: str) -> None:
        if not self._router.is_enabled(gateway):
            raise ValidationError(
                f"Payment method {gateway} is currently unavailable",
                code="GATEWAY_DISABLED",
                details={"gateway": gateway},
            )

    async def charge_card(self, card: CardDetails, amount: AmountLike, order_id: int) -> Transaction:
        self.ensure_enabled(CARD_METHOD)
        validate_card(card)
        value = to_amount(amount)

        result = await self._router.card.authorize(value, card.last4)
        transaction = await self._ledger.record(
            order_id=order_id,
            amount=value,
            payment_method=CARD_METHOD,
            status=COMPLETED if result.success else FAILED,
            error=None if result.success else _error_info(result),
            gateway_response=result.gateway_response(),
            card_last4=card.last4,
            card_brand=card.brand,
        )
        if not result.success:
            logger.info("Card payment for order %s declined", order_id)
            raise DeclinedError(result.message, code=result.code, details={"transaction_id": transaction.transaction_id})
        return transaction

    async def charge_wallet(
        self,
        gateway: str,
        amount: AmountLike,
        order_id: int,
        phone: str,
        *,
        timeout: Optional[float] = None,
    ) -> Transaction:
        """Charge a digital wallet, retrying retryable failures with backoff.

        Non-retryable failures raise. When retries run out the last failed
        transaction is returned.
        """
        gateway = gateway.lower()
        timeout = timeout if timeout is not None else self.attempt_timeout
        self.ensure_enabled(gateway)

        if not phones.is_valid(phone):
            raise await self._reject(
                gateway, amount, order_id, phone,
                ValidationError("Please provide a valid Pakistani phone number", code="INVALID_PHONE"),
            )
        try:
            value = to_amount(amount)
        except InvalidAmountError:
            raise await self._reject(
                gateway, amount, order_id, phone,
                ValidationError("Invalid payment amount", code="INVALID_AMOUNT"),
            ) from None
        number = phones.normalize(phone)

        retry_count = 0
        first_attempt: Optional[str] = None
        while True:
            logger.info(
                "Processing %s payment of %s for order %s (retry %s)",
                gateway,
                value,
                order_id,
                retry_count,
            )
            result = await self._router.attempt(gateway, value, number, timeout=timeout)
            transaction = await self._ledger.record(
                order_id=order_id,
                amount=value,
                payment_method=gateway,
                status=COMPLETED if result.success else FAILED,
                retry_count=retry_count,
                error=None if result.success else _error_info(result),
                gateway_response=result.gateway_response(),
                phone=number,
                original_transaction_id=first_attempt,
            )
            if result.success:
                return transaction

            first_attempt = first_attempt or transaction.transaction_id
            if not result.retryable:
                logger.warning("%s payment for order %s failed: %s", gateway, order_id, result.code)
                raise _error_for(result, transaction)
            if retry_count >= self.max_retries:
                logger.warning(
                    "%s payment for order %s failed after %s retries: %s",
                    gateway,
                    order_id,
                    retry_count,
                    result.code,
                )
                return transaction

            delay = self.backoff_delay(retry_count)
            retry_count += 1
            logger.info(
                "Retrying %s payment (%s/%s) in %.2fs after %s",
                gateway,
                retry_count,
                self.max_retries,
                delay,
                result.code,
            )
            await self._sleep(delay)

    async def retry_payment(
        self,
        original_transaction_id: str,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> Transaction:
        """Append a retry entry for a failed transaction and settle it with a fresh attempt."""
        original = await self._ledger.get(original_transaction_id)
        overrides = dict(overrides or {})
        method = overrides.get("payment_method", original.payment_method)
        self.ensure_enabled(method)
        if method == CARD_METHOD and not overrides.get("card_last4", original.card_last4):
            raise ValidationError("Card details are required to retry a card payment", code="CARD_REQUIRED")
        if method != CARD_METHOD and not phones.is_valid(overrides.get("phone", original.phone)):
            raise ValidationError(
                f"A valid phone number is required to retry a {method} payment",
                code="INVALID_PHONE",
            )

        transaction = await self._ledger.retry(original_transaction_id, overrides)
        if transaction.payment_method == CARD_METHOD:
            result = await self._router.card.authorize(transaction.amount, transaction.card_last4)
        else:
            result = await self._router.attempt(
                transaction.payment_method,
                transaction.amount,
                phones.normalize(transaction.phone),
                timeout=self.attempt_timeout,
            )

        settled = await self._ledger.settle(
            transaction.transaction_id,
            success=result.success,
            gateway_response=result.gateway_response(),
            error=None if result.success else _error_info(result),
        )
        logger.info(
            "Retry %s of %s settled as %s",
            settled.transaction_id,
            original_transaction_id,
            settled.status,
        )
        return settled

    async def _reject(
        self,
        gateway: str,
        amount: Any,
        order_id: int,
        phone: Optional[str],
        error: ValidationError,
    ) -> ValidationError:
        transaction = await self._ledger.record(
            order_id=order_id,
            amount=_loose_amount(amount),
            payment_method=gateway,
            status=FAILED,
            error=TransactionErrorInfo(code=error.code, message=error.message, category=error.category),
            phone=phone,
        )
        error.details["transaction_id"] = transaction.transaction_id
        logger.info("Rejected %s payment for order %s: %s", gateway, order_id, error.code)
        return error


__all__ = ["CheckoutService", "Sleeper"]
