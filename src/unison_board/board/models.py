from __future__ import annotations

from dataclasses import dataclass, field

from unison_board.clock import ms_to_iso


@dataclass(frozen=True)
class Message:
    id: str
    text: str
    created_at: str
    author_tag: str | None = None

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.created_at, self.id)

    def to_record(self) -> dict:
        record = {"id": self.id, "text": self.text, "timestamp": self.created_at}
        if self.author_tag is not None:
            record["authorTag"] = self.author_tag
        return record

    @classmethod
    def from_record(cls, record: dict) -> Message:
        return cls(
            id=str(record["id"]),
            text=str(record["text"]),
            created_at=str(record["timestamp"]),
            author_tag=record.get("authorTag"),
        )


@dataclass(frozen=True)
class Session:
    token: str
    created_at: int
    expires_at: int

    def is_expired(self, now_ms: int) -> bool:
        return self.expires_at <= now_ms

    def to_record(self) -> dict:
        return {"token": self.token, "createdAt": self.created_at, "expiresAt": self.expires_at}

    @classmethod
    def from_record(cls, record: dict) -> Session:
        return cls(
            token=str(record["token"]),
            created_at=int(record["createdAt"]),
            expires_at=int(record["expiresAt"]),
        )

    def to_wire(self) -> dict:
        return {
            "token": self.token,
            "createdAt": ms_to_iso(self.created_at),
            "expiresAt": ms_to_iso(self.expires_at),
        }


@dataclass(frozen=True)
class Cursor:
    timestamp: str
    id: str

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.timestamp, self.id)


@dataclass(frozen=True)
class Page:
    items: list[Message] = field(default_factory=list)
    has_more: bool = False
    next_cursor: Cursor | None = None

    def to_wire(self) -> dict:
        payload: dict = {
            "messages": [m.to_record() for m in self.items],
            "hasMore": self.has_more,
        }
        if self.next_cursor is not None:
            payload["nextCursorTimestamp"] = self.next_cursor.timestamp
            payload["nextCursorId"] = self.next_cursor.id
        return payload
