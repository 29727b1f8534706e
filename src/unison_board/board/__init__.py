from unison_board.board.actor import BoardActor
from unison_board.board.message_store import MessageStore
from unison_board.board.models import Cursor, Message, Page, Session
from unison_board.board.rate_limiter import RateLimiter
from unison_board.board.session_manager import SessionManager

__all__ = [
    "BoardActor",
    "Cursor",
    "Message",
    "MessageStore",
    "Page",
    "RateLimiter",
    "Session",
    "SessionManager",
]
