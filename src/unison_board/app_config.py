from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path


@dataclass
class AppConfig:
    rate_limit_interval_ms: int
    session_ttl_ms: int
    max_active_tokens: int
    ledger_backend: str
    ledger_path: str
    default_page_limit: int
    max_page_limit: int
    host: str
    port: int
    log_level: str
    log_consumers: list | None


def load_json_config(path: str | None = None) -> dict:
    config_path = Path(path or os.environ.get("BOARD_CONFIG_PATH") or Path.cwd() / "config.json")
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _to_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return bool(value)


def parse_app_config(config: dict) -> AppConfig:
    backend = str(config.get("LedgerBackend", "sqlite")).strip().lower()
    if _to_bool(config.get("Ephemeral", False)):
        backend = "memory"
    if backend not in {"sqlite", "memory"}:
        raise ValueError(f"Unknown ledger backend: {backend!r}")

    default_page_limit = max(1, int(config.get("DefaultPageLimit", 20)))
    max_page_limit = max(default_page_limit, int(config.get("MaxPageLimit", 100)))

    return AppConfig(
        rate_limit_interval_ms=int(config.get("RateLimitIntervalMs", 5000)),
        session_ttl_ms=int(config.get("SessionTtlMs", 30 * 60 * 1000)),
        max_active_tokens=int(config.get("MaxActiveTokens", 100)),
        ledger_backend=backend,
        ledger_path=str(os.environ.get("BOARD_LEDGER_PATH") or config.get("LedgerPath", ".unison/ledger.db")),
        default_page_limit=default_page_limit,
        max_page_limit=max_page_limit,
        host=str(config.get("Host", "127.0.0.1")),
        port=int(config.get("Port", 8787)),
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )
