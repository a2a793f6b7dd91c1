"""Shared helpers for tlmode tests."""

from __future__ import annotations

import asyncio
from typing import Any


class Collector:
    """Records every value a callback receives."""

    def __init__(self) -> None:
        self.calls: list[Any] = []

    def __call__(self, value: Any) -> None:
        self.calls.append(value)


async def drain(ticks: int = 5) -> None:
    """Let ``call_soon`` callbacks, including nested ones, run."""
    for _ in range(ticks):
        await asyncio.sleep(0)
