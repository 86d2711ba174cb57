"""Lightweight CLI helpers for inspecting stored chat sessions."""
from __future__ import annotations

import argparse

from storage.sessions import row_to_session
from storage.sqlite import get_conn

_COLUMNS = "session_id, owner_id, problem, code, messages_json, created_at, updated_at"


def tail_sessions(limit: int = 20, owner_id: str | None = None) -> None:
    query = f"SELECT {_COLUMNS} FROM chat_sessions"
    params: tuple = ()
    if owner_id:
        query += " WHERE owner_id = ?"
        params = (owner_id,)
    query += " ORDER BY created_at DESC LIMIT ?"
    with get_conn() as conn:
        rows = conn.execute(query, params + (limit,)).fetchall()
    for chat in map(row_to_session, rows):
        print(
            f"[{chat.created_at}] {chat.owner_id}/{chat.id} turns={len(chat.messages)} "
            f"updated={chat.updated_at} title={chat.title}"
        )


def show_session(session_id: str) -> None:
    with get_conn() as conn:
        row = conn.execute(f"SELECT {_COLUMNS} FROM chat_sessions WHERE session_id = ?", (session_id,)).fetchone()
    if row is None:
        print(f"no session {session_id}")
        return
    chat = row_to_session(row)
    print(chat.problem.strip())
    print("-" * 40)
    for turn in chat.messages:
        print(f"{turn.role}: {turn.text}")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the latest saved chat sessions")
    parser.add_argument("--owner", help="Only show sessions of this user id")
    parser.add_argument("--show", help="Print the transcript of one session")
    args = parser.parse_args()

    if args.tail_sessions:
        tail_sessions(args.tail_sessions, args.owner)
    if args.show:
        show_session(args.show)


if __name__ == "__main__":
    main()
