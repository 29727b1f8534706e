from __future__ import annotations

import copy
from typing import Any


class InMemoryLedger:
    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    async def get(self, key: str) -> Any | None:
        if key not in self._data:
            return None
        return copy.deepcopy(self._data[key])

    async def put(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)
