from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger

from unison_board.board.message_store import MessageStore
from unison_board.board.models import Cursor, Message, Page, Session
from unison_board.board.rate_limiter import RateLimiter
from unison_board.board.session_manager import SessionManager
from unison_board.clock import Clock, SystemClock
from unison_board.ledger import Ledger

T = TypeVar("T")

_Operation = tuple[Callable[[], Awaitable[Any]], asyncio.Future]


class BoardActor:
    """Single owner of all board state.

    Every public call is queued and executed by one worker task, so no two
    operations ever interleave their ledger read-modify-write cycles.
    """

    def __init__(
        self,
        ledger: Ledger,
        *,
        clock: Clock | None = None,
        rate_limit_interval_ms: int = 5000,
        session_ttl_ms: int = 1_800_000,
        max_active_tokens: int = 100,
    ):
        self._clock = clock or SystemClock()
        self._messages = MessageStore(ledger, self._clock)
        self._rate_limiter = RateLimiter(ledger, self._clock, interval_ms=rate_limit_interval_ms)
        self._sessions = SessionManager(
            ledger,
            self._clock,
            ttl_ms=session_ttl_ms,
            max_active_tokens=max_active_tokens,
        )
        self._queue: asyncio.Queue[_Operation | None] = asyncio.Queue()
        self._task: asyncio.Task | None = None
        self._closed = False

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._closed

    async def start(self) -> None:
        if self._closed:
            raise RuntimeError("Board actor has been closed")
        if self._task is not None:
            return
        await self._sessions.load()
        self._task = asyncio.create_task(self._run())
        logger.info("Board actor started")

    async def close(self) -> None:
        if self._task is None or self._closed:
            self._closed = True
            return
        self._closed = True
        await self._queue.put(None)
        await self._task
        self._task = None
        logger.info("Board actor stopped")

    async def __aenter__(self) -> BoardActor:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def get_messages(
        self,
        limit: int,
        cursor_timestamp: str | None = None,
        cursor_id: str | None = None,
    ) -> Page:
        cursor = None
        if cursor_timestamp and cursor_id:
            cursor = Cursor(timestamp=cursor_timestamp, id=cursor_id)
        return await self._submit(lambda: self._messages.page(limit, cursor))

    async def add_message(self, text: str, author_tag: str | None = None) -> list[Message]:
        return await self._submit(lambda: self._messages.append(text, author_tag))

    async def check_and_apply_rate_limit(self, source_key: str) -> bool:
        return await self._submit(lambda: self._rate_limiter.check(source_key))

    async def create_session(self) -> Session | None:
        return await self._submit(self._sessions.create_session)

    async def validate_token(self, token: str) -> bool:
        return await self._submit(lambda: self._sessions.validate_token(token))

    async def refresh_token(self, token: str) -> Session | None:
        return await self._submit(lambda: self._sessions.refresh_token(token))

    async def _submit(self, operation: Callable[[], Awaitable[T]]) -> T:
        if not self.is_running:
            raise RuntimeError("Board actor is not running")
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        await self._queue.put((operation, future))
        # The worker runs the operation even if this caller is cancelled.
        return await future

    async def _run(self) -> None:
        while True:
            item = await self._queue.get()
            if item is None:
                return
            operation, future = item
            # Runs in its own task so a raised exception never carries this
            # loop's frame back to the caller.
            task = asyncio.ensure_future(operation())
            await asyncio.wait({task})
            ex = task.exception()
            if ex is None:
                if not future.cancelled():
                    future.set_result(task.result())
                continue
            if isinstance(ex, ValueError):
                logger.warning(f"Board operation rejected input: {ex}")
            else:
                logger.error(f"Board operation failed: {ex}")
            if not future.cancelled():
                future.set_exception(ex)
