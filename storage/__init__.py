"""SQLite persistence for chat sessions."""
from .migrate import migrate
from .sessions import SessionStore

__all__ = ["SessionStore", "migrate"]
