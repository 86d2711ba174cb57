"""Per-user chat session persistence."""
from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from uuid import uuid4

from agents.types import Session, Turn
from errors import NotAuthenticatedError, TransportError

from .migrate import migrate
from .sqlite import get_conn

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _require_owner(owner_id: Optional[str]) -> str:
    if not owner_id or not str(owner_id).strip():
        raise NotAuthenticatedError("You must be signed in to save chats.")
    return str(owner_id)


def _dump_messages(messages: Sequence[Turn]) -> str:
    return json.dumps([turn.model_dump() for turn in messages], ensure_ascii=False)


def row_to_session(row: sqlite3.Row) -> Session:
    return Session(
        id=row["session_id"],
        owner_id=row["owner_id"],
        problem=row["problem"],
        code=row["code"],
        messages=[Turn(**item) for item in json.loads(row["messages_json"])],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class SessionStore:  # SQLite-backed chat session storage scoped by owner
    def __init__(self, db_path: Optional[str] = None) -> None:
        self._db_path = db_path
        migrate(db_path)

    def create_session(
        self,
        owner_id: Optional[str],
        problem: str,
        code: str,
        messages: Sequence[Turn],
    ) -> str:
        """Insert a new session and return its id; ``created_at`` is set here once."""

        owner = _require_owner(owner_id)
        if not messages:
            raise ValueError("A session needs at least one message")
        session_id = uuid4().hex
        now = _now()
        try:
            with get_conn(self._db_path) as conn:
                conn.execute(
                    """INSERT INTO chat_sessions
                       (session_id, owner_id, problem, code, messages_json, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (session_id, owner, problem, code, _dump_messages(messages), now, now),
                )
        except sqlite3.Error as exc:
            logger.error("Session create failed owner=%s: %s", owner, exc)
            raise TransportError(f"Could not save chat: {exc}") from exc
        logger.info("Session created owner=%s session=%s", owner, session_id)
        return session_id

    def append_and_persist(
        self,
        owner_id: Optional[str],
        session_id: str,
        messages: Sequence[Turn],
    ) -> None:
        """Replace the stored transcript with ``messages``; repeating the call is harmless."""

        owner = _require_owner(owner_id)
        payload = _dump_messages(messages)
        try:
            with get_conn(self._db_path) as conn:
                # updated_at only moves when the transcript actually changed
                cur = conn.execute(
                    """UPDATE chat_sessions
                       SET updated_at = CASE WHEN messages_json = ? THEN updated_at ELSE ? END,
                           messages_json = ?
                       WHERE session_id = ? AND owner_id = ?""",
                    (payload, _now(), payload, session_id, owner),
                )
                updated = cur.rowcount
        except sqlite3.Error as exc:
            logger.error("Session persist failed session=%s: %s", session_id, exc)
            raise TransportError(f"Could not save chat: {exc}") from exc
        if not updated:
            raise KeyError(f"Session not found: {session_id}")

    def list_sessions(self, owner_id: Optional[str]) -> List[Session]:
        """Return the owner's sessions, newest first."""

        owner = _require_owner(owner_id)
        try:
            with get_conn(self._db_path) as conn:
                rows = conn.execute(
                    """SELECT session_id, owner_id, problem, code, messages_json, created_at, updated_at
                       FROM chat_sessions
                       WHERE owner_id = ?
                       ORDER BY created_at DESC, rowid DESC""",
                    (owner,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise TransportError(f"Could not load chats: {exc}") from exc
        return [row_to_session(row) for row in rows]

    def get_session(self, owner_id: Optional[str], session_id: str) -> Optional[Session]:
        owner = _require_owner(owner_id)
        try:
            with get_conn(self._db_path) as conn:
                row = conn.execute(
                    """SELECT session_id, owner_id, problem, code, messages_json, created_at, updated_at
                       FROM chat_sessions
                       WHERE session_id = ? AND owner_id = ?""",
                    (session_id, owner),
                ).fetchone()
        except sqlite3.Error as exc:
            raise TransportError(f"Could not load chat: {exc}") from exc
        return row_to_session(row) if row else None


__all__ = ["SessionStore", "row_to_session"]
