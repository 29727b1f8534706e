from __future__ import annotations

from unison_board.board.models import Cursor, Message, Page
from unison_board.clock import Clock, ms_to_iso
from unison_board.ledger import Ledger

MESSAGES_KEY = "board:messages"


class MessageStore:
    """Append-only message log kept as one ledger document.

    Storage order is whatever ``append`` produced; every read re-sorts into
    canonical order (newest first, ties broken by id descending) so that
    cursors stay stable across restarts.
    """

    def __init__(self, ledger: Ledger, clock: Clock):
        self._ledger = ledger
        self._clock = clock

    async def append(self, text: str, author_tag: str | None = None) -> list[Message]:
        if not isinstance(text, str) or not text.strip():
            raise ValueError("Message text cannot be empty.")

        messages = await self._load()
        message = Message(
            id=self._clock.new_id(),
            text=text,
            created_at=ms_to_iso(self._clock.now_ms()),
            author_tag=author_tag,
        )
        messages.insert(0, message)
        await self._ledger.put(MESSAGES_KEY, [m.to_record() for m in messages])
        return self._canonical(messages)

    async def page(self, limit: int, cursor: Cursor | None = None) -> Page:
        if limit <= 0:
            return Page()

        ordered = self._canonical(await self._load())
        start = 0
        if cursor is not None:
            # A cursor that matches nothing restarts from the first item.
            for index, message in enumerate(ordered):
                if message.sort_key == cursor.sort_key:
                    start = index + 1
                    break

        items = ordered[start : start + limit]
        has_more = start + limit < len(ordered)
        next_cursor = None
        if has_more and items:
            last = items[-1]
            next_cursor = Cursor(timestamp=last.created_at, id=last.id)
        return Page(items=items, has_more=has_more, next_cursor=next_cursor)

    async def _load(self) -> list[Message]:
        records = await self._ledger.get(MESSAGES_KEY)
        if records is None:
            await self._ledger.put(MESSAGES_KEY, [])
            return []
        return [Message.from_record(r) for r in records]

    @staticmethod
    def _canonical(messages: list[Message]) -> list[Message]:
        return sorted(messages, key=lambda m: m.sort_key, reverse=True)
