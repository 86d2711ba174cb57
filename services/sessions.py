"""Registry of per-client conversation controllers."""
from __future__ import annotations

import logging
import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from functools import partial
from typing import Callable, Dict, List, Optional

from config import route_from_settings
from config.settings import settings
from identity import GoogleIdentityProvider, IdentityAdapter
from interview_session import InterviewSession
from llm_gateway import send_turns
from storage import SessionStore

logger = logging.getLogger(__name__)

_CLIENTS: Dict[str, InterviewSession] = {}
_LAST_SEEN: Dict[str, datetime] = {}
_GUARD = threading.Lock()
_EXECUTOR = ThreadPoolExecutor(max_workers=settings.PERSIST_WORKERS, thread_name_prefix="persist")
_PROVIDER: Optional[GoogleIdentityProvider] = None
_STORE: Optional[SessionStore] = None


def _log_failure(future) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("Background persist crashed: %s", exc)


def defer(fn: Callable[[], None]) -> None:
    """Run ``fn`` on the persistence pool without waiting for it."""

    _EXECUTOR.submit(fn).add_done_callback(_log_failure)


def _provider() -> GoogleIdentityProvider:
    global _PROVIDER
    if _PROVIDER is None:
        _PROVIDER = GoogleIdentityProvider()
    return _PROVIDER


def _store() -> SessionStore:
    global _STORE
    if _STORE is None:
        _STORE = SessionStore()
    return _STORE


def build_session(client_id: str) -> InterviewSession:
    """Wire a controller to the Gemini gateway, the SQLite store and Google sign-in."""

    gateway = partial(send_turns, cfg=route_from_settings())
    return InterviewSession(
        gateway=gateway,
        store=_store(),
        identity=IdentityAdapter(_provider()),
        defer=defer,
        client_id=client_id,
    )


def new_client_id() -> str:
    return uuid.uuid4().hex


def _is_expired(last_seen: datetime, now: datetime) -> bool:
    return now - last_seen > timedelta(minutes=settings.CLIENT_IDLE_MINUTES)


def _take_expired(now: datetime) -> List[InterviewSession]:
    # Caller holds _GUARD
    expired = [client_id for client_id, seen in _LAST_SEEN.items() if _is_expired(seen, now)]
    evicted = []
    for client_id in expired:
        _LAST_SEEN.pop(client_id, None)
        session = _CLIENTS.pop(client_id, None)
        if session is not None:
            evicted.append(session)
    return evicted


def get_or_create(client_id: str, now: Optional[datetime] = None) -> InterviewSession:
    """Return the client's controller, evicting controllers idle for too long."""

    now = now or datetime.utcnow()
    with _GUARD:
        evicted = _take_expired(now)
        session = _CLIENTS.get(client_id)
        if session is None:
            session = build_session(client_id)
            _CLIENTS[client_id] = session
            logger.info("Client registered client=%s", client_id)
        _LAST_SEEN[client_id] = now
    for stale in evicted:
        logger.info("Client expired client=%s", stale.client_id)
        stale.close()
    return session


def drop(client_id: str) -> bool:
    """Forget a client and unsubscribe its controller from identity changes."""

    with _GUARD:
        _LAST_SEEN.pop(client_id, None)
        session = _CLIENTS.pop(client_id, None)
    if session is None:
        return False
    session.close()
    return True


__all__ = ["build_session", "defer", "drop", "get_or_create", "new_client_id"]
