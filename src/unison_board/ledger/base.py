from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Ledger(Protocol):
    """Durable key-value persistence. Each ``put`` replaces the whole value atomically."""

    async def get(self, key: str) -> Any | None: ...
    async def put(self, key: str, value: Any) -> None: ...
