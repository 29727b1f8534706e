from unison_board.ledger.base import Ledger
from unison_board.ledger.memory_ledger import InMemoryLedger
from unison_board.ledger.sqlite_ledger import SqliteLedger

__all__ = [
    "InMemoryLedger",
    "Ledger",
    "SqliteLedger",
]
