import sqlite3

import pytest

from agents.types import Turn
from errors import NotAuthenticatedError
from storage.sessions import SessionStore


OPENING = [Turn(role="interviewer", text="Walk me through your approach.")]


def test_create_and_get_session(store):
    session_id = store.create_session("alice", "Two Sum", "def two_sum(): ...", OPENING)
    chat = store.get_session("alice", session_id)
    assert chat is not None
    assert chat.problem == "Two Sum"
    assert chat.messages == OPENING
    assert chat.created_at == chat.updated_at
    assert chat.title == "Two Sum"


def test_create_requires_owner(store):
    with pytest.raises(NotAuthenticatedError):
        store.create_session(None, "p", "c", OPENING)
    with pytest.raises(NotAuthenticatedError):
        store.create_session("   ", "p", "c", OPENING)


def test_create_requires_messages(store):
    with pytest.raises(ValueError):
        store.create_session("alice", "p", "c", [])


def test_list_sessions_newest_first_and_scoped(store):
    first = store.create_session("alice", "first problem", "c", OPENING)
    second = store.create_session("alice", "second problem", "c", OPENING)
    store.create_session("bob", "bob problem", "c", OPENING)
    chats = store.list_sessions("alice")
    assert [chat.id for chat in chats] == [second, first]
    assert all(chat.owner_id == "alice" for chat in chats)


def test_append_and_persist_replaces_transcript(store):
    session_id = store.create_session("alice", "p", "c", OPENING)
    transcript = OPENING + [
        Turn(role="candidate", text="Hash map."),
        Turn(role="interviewer", text="What is the space cost?"),
    ]
    store.append_and_persist("alice", session_id, transcript)
    assert store.get_session("alice", session_id).messages == transcript


def test_append_and_persist_is_idempotent(store, tmp_db):
    session_id = store.create_session("alice", "p", "c", OPENING)
    transcript = OPENING + [Turn(role="candidate", text="x"), Turn(role="interviewer", text="y")]
    store.append_and_persist("alice", session_id, transcript)
    once = store.get_session("alice", session_id)
    store.append_and_persist("alice", session_id, transcript)
    twice = store.get_session("alice", session_id)
    assert once == twice
    with sqlite3.connect(tmp_db) as conn:
        (count,) = conn.execute("SELECT COUNT(*) FROM chat_sessions").fetchone()
    assert count == 1


def test_created_at_never_changes(store):
    session_id = store.create_session("alice", "p", "c", OPENING)
    created = store.get_session("alice", session_id).created_at
    store.append_and_persist("alice", session_id, OPENING + [Turn(role="candidate", text="x")])
    assert store.get_session("alice", session_id).created_at == created


def test_append_to_unknown_or_foreign_session(store):
    session_id = store.create_session("alice", "p", "c", OPENING)
    with pytest.raises(KeyError):
        store.append_and_persist("alice", "missing", OPENING)
    with pytest.raises(KeyError):
        store.append_and_persist("bob", session_id, OPENING)
    assert store.get_session("bob", session_id) is None


def test_store_migrates_fresh_database(tmp_path):
    store = SessionStore(str(tmp_path / "fresh.db"))
    assert store.list_sessions("alice") == []


def test_untitled_chat_for_blank_problem(store):
    session_id = store.create_session("alice", "   ", "c", OPENING)
    assert store.get_session("alice", session_id).title == "Untitled Chat"


def test_title_uses_first_five_words(store):
    session_id = store.create_session("alice", "Find the longest palindromic substring quickly", "c", OPENING)
    assert store.get_session("alice", session_id).title == "Find the longest palindromic substring"
