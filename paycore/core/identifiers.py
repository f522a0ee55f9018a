"""Clock and identifier helpers."""

from __future__ import annotations

import secrets
import string
import time
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]

_BASE36 = string.digits + string.ascii_lowercase


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def epoch_millis(moment: datetime | None = None) -> int:
    if moment is None:
        return time.time_ns() // 1_000_000
    return int(moment.timestamp() * 1000)


def random_token(length: int = 6) -> str:
    """Lower-case base36 token drawn from the system CSPRNG."""
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def generate_transaction_id(moment: datetime | None = None) -> str:
    return f"TXN_{epoch_millis(moment)}_{random_token(9).upper()}"


def generate_reference(moment: datetime | None = None) -> str:
    return "REF" + str(epoch_millis(moment))[-8:]


def generate_auth_code() -> str:
    return random_token(6).upper()


def generate_audit_id(moment: datetime | None = None) -> str:
    return f"AUDIT_{epoch_millis(moment)}_{random_token(6)}"


__all__ = [
    "Clock",
    "epoch_millis",
    "generate_audit_id",
    "generate_auth_code",
    "generate_reference",
    "generate_transaction_id",
    "random_token",
    "utcnow",
]
