from __future__ import annotations

from loguru import logger

from unison_board.board.models import Session
from unison_board.clock import Clock
from unison_board.ledger import Ledger

SESSIONS_KEY = "board:sessions"


class SessionManager:
    """Bounded table of anonymous bearer tokens with sliding expiry.

    The in-memory table mirrors ``board:sessions`` and is written through on
    every mutation. Callers must serialize access; the board actor does.
    """

    def __init__(self, ledger: Ledger, clock: Clock, *, ttl_ms: int, max_active_tokens: int):
        if ttl_ms <= 0:
            raise ValueError(f"Session TTL must be positive: {ttl_ms}")
        self._ledger = ledger
        self._clock = clock
        self._ttl_ms = ttl_ms
        self._max_active_tokens = max(0, max_active_tokens)
        self._sessions: dict[str, Session] = {}
        self._loaded = False

    @property
    def active_count(self) -> int:
        return self._live_count(self._clock.now_ms())

    async def load(self) -> None:
        records = await self._ledger.get(SESSIONS_KEY) or {}
        self._sessions = {token: Session.from_record(r) for token, r in records.items()}
        self._loaded = True
        await self._sweep()
        logger.info(f"Session table loaded: {len(self._sessions)} active")

    async def create_session(self) -> Session | None:
        await self._sweep()
        now = self._clock.now_ms()
        if self._live_count(now) >= self._max_active_tokens:
            logger.warning(f"Session capacity reached ({self._max_active_tokens}); rejecting new session")
            return None

        token = self._clock.new_id()
        while token in self._sessions:
            token = self._clock.new_id()
        session = Session(token=token, created_at=now, expires_at=now + self._ttl_ms)
        await self._commit({**self._sessions, token: session})
        return session

    async def validate_token(self, token: str) -> bool:
        await self._sweep()
        session = self._sessions.get(token)
        if session is None:
            return False
        if session.is_expired(self._clock.now_ms()):
            await self._commit({t: s for t, s in self._sessions.items() if t != token})
            return False
        return True

    async def refresh_token(self, token: str) -> Session | None:
        await self._sweep()
        session = self._sessions.get(token)
        now = self._clock.now_ms()
        if session is None or session.is_expired(now):
            return None
        refreshed = Session(token=token, created_at=session.created_at, expires_at=now + self._ttl_ms)
        await self._commit({**self._sessions, token: refreshed})
        return refreshed

    def _live_count(self, now_ms: int) -> int:
        return sum(1 for s in self._sessions.values() if not s.is_expired(now_ms))

    async def _sweep(self) -> None:
        self._ensure_loaded()
        now = self._clock.now_ms()
        remaining = {token: s for token, s in self._sessions.items() if s.expires_at >= now}
        removed = len(self._sessions) - len(remaining)
        if not removed:
            return
        await self._commit(remaining)
        logger.debug(f"Swept {removed} expired session(s)")

    async def _commit(self, sessions: dict[str, Session]) -> None:
        # The cache only changes once the ledger has accepted the new table.
        await self._ledger.put(
            SESSIONS_KEY,
            {token: s.to_record() for token, s in sessions.items()},
        )
        self._sessions = sessions

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            raise RuntimeError("Session table has not been loaded")
