import asyncio
import itertools
import sqlite3
import unittest

from unison_board.board import BoardActor
from unison_board.ledger import InMemoryLedger

START_MS = 1_760_000_000_000
INTERVAL_MS = 5000
TTL_MS = 1_800_000
MAX_TOKENS = 100


class ManualClock:
    def __init__(self, start_ms: int = START_MS):
        self.current_ms = start_ms
        self._ids = itertools.count(1)

    def now_ms(self) -> int:
        return self.current_ms

    def new_id(self) -> str:
        return f"id-{next(self._ids):06d}"

    def advance(self, ms: int) -> None:
        self.current_ms += ms


class BoardTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._clock = ManualClock()
        self._ledger = InMemoryLedger()

    def _make_actor(self, **overrides) -> BoardActor:
        settings = {
            "rate_limit_interval_ms": INTERVAL_MS,
            "session_ttl_ms": TTL_MS,
            "max_active_tokens": MAX_TOKENS,
        }
        settings.update(overrides)
        return BoardActor(self._ledger, clock=self._clock, **settings)

    def _run(self, coro):
        return asyncio.run(coro)


class FailingLedger(InMemoryLedger):
    def __init__(self) -> None:
        super().__init__()
        self.fail_puts = False

    async def put(self, key, value):
        if self.fail_puts:
            raise sqlite3.OperationalError("disk I/O error")
        await super().put(key, value)
