import uvicorn
from dotenv import load_dotenv
from loguru import logger

from unison_board.api import create_app
from unison_board.app_config import AppConfig, load_json_config, parse_app_config
from unison_board.board import BoardActor
from unison_board.ledger import InMemoryLedger, Ledger, SqliteLedger
from unison_board.logging_config import setup_logging


def build_ledger(config: AppConfig) -> Ledger:
    if config.ledger_backend == "memory":
        return InMemoryLedger()
    return SqliteLedger(config.ledger_path)


def main() -> None:
    load_dotenv()

    config = parse_app_config(load_json_config())
    log_descriptions = setup_logging(level=config.log_level, consumers=config.log_consumers)
    for description in log_descriptions:
        logger.debug(f"Logging to {description}")

    ledger = build_ledger(config)
    actor = BoardActor(
        ledger,
        rate_limit_interval_ms=config.rate_limit_interval_ms,
        session_ttl_ms=config.session_ttl_ms,
        max_active_tokens=config.max_active_tokens,
    )
    app = create_app(
        actor,
        default_page_limit=config.default_page_limit,
        max_page_limit=config.max_page_limit,
    )

    logger.info(
        f"Serving board on http://{config.host}:{config.port} "
        f"(ledger={config.ledger_backend}, max_tokens={config.max_active_tokens})"
    )
    try:
        uvicorn.run(app, host=config.host, port=config.port, log_config=None)
    finally:
        if isinstance(ledger, SqliteLedger):
            ledger.close()


if __name__ == "__main__":
    main()
