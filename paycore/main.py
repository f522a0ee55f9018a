import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from paycore import __version__
from paycore.api import create_api_router
from paycore.core.config import get_settings
from paycore.core.container import ApplicationContainer, get_container
from paycore.core.errors import PaymentError
from paycore.interfaces.http import payment_error_handler


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    container: ApplicationContainer = app.state.container
    await container.create_schema()
    container.start_jobs()
    try:
        yield
    finally:
        await container.dispose()


def create_app(container: Optional[ApplicationContainer] = None) -> FastAPI:
    container = container or get_container()
    settings = container.settings
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        description="Payment orchestration and settlement-proof service",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(PaymentError, payment_error_handler)
    app.include_router(create_api_router(settings.api_prefix))

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__, "backend": settings.database.backend}

    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "paycore.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.server.reload,
    )
