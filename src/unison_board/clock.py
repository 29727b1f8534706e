from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta
from typing import Protocol, runtime_checkable
from uuid import uuid4


@runtime_checkable
class Clock(Protocol):
    def now_ms(self) -> int: ...
    def new_id(self) -> str: ...


class SystemClock:
    """Wall-clock milliseconds that never run backwards within one process."""

    def __init__(self) -> None:
        self._last_ms = 0

    def now_ms(self) -> int:
        self._last_ms = max(self._last_ms, time.time_ns() // 1_000_000)
        return self._last_ms

    def new_id(self) -> str:
        return str(uuid4())


def ms_to_iso(ms: int) -> str:
    seconds, millis = divmod(ms, 1000)
    moment = datetime.fromtimestamp(seconds, UTC) + timedelta(milliseconds=millis)
    return moment.isoformat(timespec="milliseconds")
