"""HTTP interface helpers shared by the API routers."""

from .errors import STATUS_BY_KIND, payment_error_handler, status_for

__all__ = ["STATUS_BY_KIND", "payment_error_handler", "status_for"]
