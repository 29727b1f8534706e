from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any


class SqliteLedger:
    def __init__(self, db_path: str):
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db_path = db_path
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._initialize_schema()

    def close(self) -> None:
        self._conn.close()

    async def get(self, key: str) -> Any | None:
        row = self._conn.execute(
            "SELECT value_json FROM ledger WHERE key = ? LIMIT 1",
            (key,),
        ).fetchone()
        if row is None:
            return None
        return json.loads(row["value_json"])

    async def put(self, key: str, value: Any) -> None:
        self._conn.execute(
            "INSERT OR REPLACE INTO ledger (key, value_json) VALUES (?, ?)",
            (key, json.dumps(value, ensure_ascii=True)),
        )
        self._conn.commit()

    def _initialize_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS ledger (
                key TEXT PRIMARY KEY,
                value_json TEXT NOT NULL
            );
            """
        )
        self._conn.commit()
