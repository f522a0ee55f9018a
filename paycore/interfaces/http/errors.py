"""Translation of domain errors into HTTP responses."""

from __future__ import annotations

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

from paycore.core.errors import ErrorKind, ExpiredError, PaymentError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.GATEWAY: status.HTTP_502_BAD_GATEWAY,
    ErrorKind.NETWORK: status.HTTP_504_GATEWAY_TIMEOUT,
    ErrorKind.SECURITY: status.HTTP_403_FORBIDDEN,
    ErrorKind.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.STATE: status.HTTP_409_CONFLICT,
}

# Missing or unusable credentials, as opposed to a role that is not allowed.
UNAUTHENTICATED_CODES = frozenset({"SESSION_REQUIRED", "INVALID_SESSION"})


def status_for(exc: PaymentError) -> int:
    if isinstance(exc, ExpiredError):
        return status.HTTP_410_GONE
    if exc.kind is ErrorKind.AUTHORIZATION and exc.code in UNAUTHENTICATED_CODES:
        return status.HTTP_401_UNAUTHORIZED
    return STATUS_BY_KIND.get(exc.kind, status.HTTP_400_BAD_REQUEST)


async def payment_error_handler(request: Request, exc: PaymentError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.warning("%s %s failed upstream: %s", request.method, request.url.path, exc.code)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=status_code, content={"error": exc.to_dict()}, headers=headers)


__all__ = ["STATUS_BY_KIND", "payment_error_handler", "status_for"]
