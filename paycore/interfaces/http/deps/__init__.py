"""Reusable FastAPI dependencies."""

from .admin import AdminIdentity, get_admin_identity, require_admin, require_payment_manager
from .services import get_app_container, get_client_ip, get_services

__all__ = [
    "AdminIdentity",
    "get_admin_identity",
    "get_app_container",
    "get_client_ip",
    "get_services",
    "require_admin",
    "require_payment_manager",
]
