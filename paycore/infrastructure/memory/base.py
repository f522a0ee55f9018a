"""Shared plumbing for the in-memory repositories."""

from __future__ import annotations

import asyncio
import copy
from dataclasses import replace
from typing import Any, Mapping, TypeVar

T = TypeVar("T")


def detached(value: T) -> T:
    """Deep copy handed across the repository boundary."""
    return copy.deepcopy(value)


def with_changes(value: T, changes: Mapping[str, Any]) -> T:
    return replace(value, **copy.deepcopy(dict(changes)))


class InMemoryStore:
    """Base for repositories holding rows in process memory.

    Every read and write goes through ``self._lock`` and callers only ever see
    copies, so results cannot be mutated behind the repository's back.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._last_id = 0

    def _next_id(self) -> int:
        self._last_id += 1
        return self._last_id
