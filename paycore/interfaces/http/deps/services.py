"""Container and unit-of-work dependency providers."""

from collections.abc import AsyncIterator
from typing import Optional

from fastapi import Depends, Request

from paycore.core.container import ApplicationContainer, ServiceSet


def get_app_container(request: Request) -> ApplicationContainer:
    return request.app.state.container


async def get_services(container: ApplicationContainer = Depends(get_app_container)) -> AsyncIterator[ServiceSet]:
    async with container.unit_of_work() as services:
        yield services


def get_client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


__all__ = ["get_app_container", "get_client_ip", "get_services"]
