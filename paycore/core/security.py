"""Admin session tokens (JWT) and the central role/capability policy."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from paycore.core.errors import AuthorizationError

SUPERUSER_ROLE = "admin"
ADMIN_ROLES = frozenset({"admin", "finance_manager", "support_admin"})
PAYMENT_MANAGER_ROLES = frozenset({"admin", "finance_manager"})


@dataclass(slots=True, frozen=True)
class SessionClaims:
    subject: str
    role: str
    expires_at: datetime


class SessionTokenService:
    """Issues and decodes signed admin session tokens."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 480) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    def issue(self, subject: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=self._expire_minutes))
        payload = {"sub": subject, "role": role, "exp": expire}
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str) -> SessionClaims:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            raise AuthorizationError("Invalid or expired session token", code="INVALID_SESSION") from exc

        subject = payload.get("sub")
        role = payload.get("role")
        expires = payload.get("exp")
        if not all([subject, role, expires]):
            raise AuthorizationError("Invalid or expired session token", code="INVALID_SESSION")
        return SessionClaims(
            subject=subject,
            role=role,
            expires_at=datetime.fromtimestamp(expires, tz=timezone.utc),
        )


class Authorizer:
    """Single place that answers "may this role do that".

    A session token is mandatory for every admin role except the superuser
    ``admin`` role while ``allow_admin_token_bypass`` is enabled. That bypass is a
    known relaxation kept for parity with the storefront's mock admin flow.
    """

    def __init__(self, tokens: SessionTokenService, *, allow_admin_token_bypass: bool = True) -> None:
        self._tokens = tokens
        self.allow_admin_token_bypass = allow_admin_token_bypass

    @staticmethod
    def can_access_proofs(role: Optional[str]) -> bool:
        return role in ADMIN_ROLES

    @staticmethod
    def can_manage_quarantine(role: Optional[str]) -> bool:
        return role in ADMIN_ROLES

    @staticmethod
    def can_manage_payments(role: Optional[str]) -> bool:
        return role in PAYMENT_MANAGER_ROLES

    def authenticate(self, role: Optional[str], session_token: Optional[str]) -> str:
        """Return the effective role, verifying the token when one is presented."""
        if session_token:
            claims = self._tokens.decode(session_token)
            if role and claims.role != role:
                raise AuthorizationError("Session token does not match the requested role", code="ROLE_MISMATCH")
            return claims.role
        if role == SUPERUSER_ROLE and self.allow_admin_token_bypass:
            return role
        raise AuthorizationError("Admin authentication required", code="SESSION_REQUIRED")

    def require_proof_access(self, role: Optional[str], session_token: Optional[str]) -> str:
        if not self.can_access_proofs(role):
            raise AuthorizationError("Insufficient admin permissions to access payment proof", code="FORBIDDEN_ROLE")
        return self.authenticate(role, session_token)

    def require_quarantine_admin(self, role: Optional[str], session_token: Optional[str]) -> str:
        if not self.can_manage_quarantine(role):
            raise AuthorizationError("Admin authentication required for quarantine management", code="FORBIDDEN_ROLE")
        return self.authenticate(role, session_token)

    def require_admin(self, role: Optional[str], session_token: Optional[str]) -> str:
        if role not in ADMIN_ROLES:
            raise AuthorizationError("Admin authentication required", code="FORBIDDEN_ROLE")
        return self.authenticate(role, session_token)

    def require_payment_manager(self, role: Optional[str], session_token: Optional[str]) -> str:
        if not self.can_manage_payments(role):
            raise AuthorizationError("Insufficient permissions. Finance manager role required.", code="FORBIDDEN_ROLE")
        return self.authenticate(role, session_token)


__all__ = [
    "ADMIN_ROLES",
    "Authorizer",
    "PAYMENT_MANAGER_ROLES",
    "SUPERUSER_ROLE",
    "SessionClaims",
    "SessionTokenService",
]
