import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

from agents.types import Identity
from config.settings import settings
from errors import PopupBlockedError
from identity import IdentityAdapter
from interview_session import InterviewSession
from storage.migrate import migrate
from storage.sessions import SessionStore


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


class FakeGateway:
    """Scripted interviewer: pops replies in order; an Exception entry is raised."""

    def __init__(self, replies: Optional[List[Any]] = None) -> None:
        self.replies: List[Any] = list(replies or [])
        self.calls: List[List[Dict[str, str]]] = []

    def __call__(self, history):
        self.calls.append([dict(item) for item in history])
        reply = self.replies.pop(0) if self.replies else "What else would you consider?"
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeProvider:
    """Auth provider that accepts any credential and can refuse popups."""

    def __init__(self, *, block_popup: bool = False) -> None:
        self.block_popup = block_popup
        self.redirect_states: List[str] = []
        self.signed_out: List[str] = []

    def popup_sign_in(self, credential):
        if self.block_popup or not credential:
            raise PopupBlockedError("auth/popup-blocked")
        return Identity(id=credential, display_name=f"User {credential}", avatar_url=None)

    def begin_redirect(self, state):
        self.redirect_states.append(state)
        return f"https://accounts.example.test/auth?state={state}"

    def complete_redirect(self, code):
        return Identity(id=f"redirect-{code}", display_name="Redirected User")

    def sign_out(self, identity):
        self.signed_out.append(identity.id)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def store(tmp_db):
    return SessionStore(tmp_db)


@pytest.fixture
def make_session(gateway, provider, store):
    created: List[InterviewSession] = []

    def _make(*, user: Optional[str] = "alice", **overrides) -> InterviewSession:
        identity = Identity(id=user, display_name=user.title()) if user else None
        adapter = IdentityAdapter(overrides.pop("provider", provider), identity=identity)
        session = InterviewSession(
            gateway=overrides.pop("gateway", gateway),
            store=overrides.pop("store", store),
            identity=adapter,
            **overrides,
        )
        created.append(session)
        return session

    yield _make
    for session in created:
        session.close()
