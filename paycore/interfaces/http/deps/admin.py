"""Admin identity taken from the bearer session token and role header."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from paycore.core.container import ApplicationContainer

from .services import get_app_container

bearer = HTTPBearer(auto_error=False)


@dataclass(slots=True)
class AdminIdentity:
    role: Optional[str]
    session_token: Optional[str]


def get_admin_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    x_admin_role: Optional[str] = Header(default=None),
    container: ApplicationContainer = Depends(get_app_container),
) -> AdminIdentity:
    """The role comes from ``X-Admin-Role`` or, failing that, from the token claims.

    Nothing is authorised here; services check the identity against their own policy.
    """
    token = credentials.credentials if credentials else None
    role = x_admin_role
    if role is None and token:
        role = container.tokens.decode(token).role
    return AdminIdentity(role=role, session_token=token)


def require_admin(
    identity: AdminIdentity = Depends(get_admin_identity),
    container: ApplicationContainer = Depends(get_app_container),
) -> str:
    return container.authorizer.require_admin(identity.role, identity.session_token)


def require_payment_manager(
    identity: AdminIdentity = Depends(get_admin_identity),
    container: ApplicationContainer = Depends(get_app_container),
) -> str:
    return container.authorizer.require_payment_manager(identity.role, identity.session_token)


__all__ = ["AdminIdentity", "get_admin_identity", "require_admin", "require_payment_manager"]
