"""Shared fixtures: an in-memory container with a controllable clock."""

import io
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytest_asyncio
from PIL import Image

from paycore.core.config import DatabaseSettings, GatewaySettings, SecuritySettings, Settings
from paycore.core.container import ApplicationContainer
from paycore.infrastructure.storage import InMemoryObjectStorage
from paycore.modules.proofs import UploadedFile


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_image(width: int = 400, height: int = 400, fmt: str = "JPEG", pad_to: int = 0) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(40, 120, 200)).save(buffer, format=fmt)
    data = buffer.getvalue()
    if pad_to > len(data):
        # Decoders stop at the end-of-image marker, trailing bytes only add size.
        data += b"\x00" * (pad_to - len(data))
    return data


def jpeg_upload(file_name: str = "receipt.jpg", **kwargs) -> UploadedFile:
    return UploadedFile(file_name=file_name, content_type="image/jpeg", content=make_image(**kwargs))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime.now(timezone.utc).replace(microsecond=0))


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        database=DatabaseSettings(backend="memory"),
        security=SecuritySettings(secret_key="test-secret-key-123"),
        gateways=GatewaySettings(
            latency_scale=0.0,
            failure_rate_scale=0.0,
            card_decline_rate=0.0,
            verification_approval_rate=1.0,
            attempt_timeout_seconds=None,
        ),
    )


@pytest.fixture
def storage(settings) -> InMemoryObjectStorage:
    return InMemoryObjectStorage(bucket=settings.storage.bucket)


@pytest.fixture
def container(settings, clock, sleep, storage) -> ApplicationContainer:
    container = ApplicationContainer(settings=settings, clock=clock, sleep=sleep, storage=storage)
    container.init_infrastructure()
    return container


@pytest_asyncio.fixture
async def services(container):
    async with container.unit_of_work() as services:
        yield services


@pytest.fixture
def admin_token(container) -> str:
    return container.tokens.issue("finance-1", "finance_manager")


@pytest_asyncio.fixture
async def funded_wallet(services):
    await services.wallet.deposit(Decimal("10000"))
    return services.wallet
