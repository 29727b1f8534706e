from __future__ import annotations

from loguru import logger

from unison_board.clock import Clock
from unison_board.ledger import Ledger

RATE_LIMITS_KEY = "board:rate_limits"


class RateLimiter:
    def __init__(self, ledger: Ledger, clock: Clock, *, interval_ms: int):
        self._ledger = ledger
        self._clock = clock
        self._interval_ms = max(0, interval_ms)

    async def check(self, source_key: str) -> bool:
        limits: dict[str, int] = await self._ledger.get(RATE_LIMITS_KEY) or {}
        now = self._clock.now_ms()
        last = limits.get(source_key)
        if last is not None and now - int(last) < self._interval_ms:
            logger.warning(f"Rate limit hit for source: {source_key}")
            return False

        # Entries at least one interval old would accept anyway.
        pruned = {key: ts for key, ts in limits.items() if now - int(ts) < self._interval_ms}
        pruned[source_key] = now
        await self._ledger.put(RATE_LIMITS_KEY, pruned)
        return True
