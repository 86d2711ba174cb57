from __future__ import annotations

import logging
from threading import Lock, RLock
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from agents.prompt_builder import build_opening_prompt, to_request_history
from agents.types import ConversationState, Identity, Session, Turn
from errors import AuthError, InterviewError, NotAuthenticatedError, ValidationError
from identity import IdentityAdapter, SignInResult
from observability import log_event, span

logger = logging.getLogger(__name__)

APOLOGY_TEXT = "My apologies, I encountered an error. Please try again."
MISSING_INPUT_TEXT = "Please provide both the problem description and your code."

Gateway = Callable[[Sequence[Dict[str, str]]], str]
Defer = Callable[[Callable[[], None]], Any]


class SessionStoreLike(Protocol):  # Persistence interface the controller relies on
    def create_session(self, owner_id: Optional[str], problem: str, code: str, messages: Sequence[Turn]) -> str: ...

    def append_and_persist(self, owner_id: Optional[str], session_id: str, messages: Sequence[Turn]) -> None: ...

    def list_sessions(self, owner_id: Optional[str]) -> List[Session]: ...

    def get_session(self, owner_id: Optional[str], session_id: str) -> Optional[Session]: ...


def _run_inline(fn: Callable[[], None]) -> None:
    fn()


class InterviewSession:
    """In-memory conversation model for one open client.

    Owns the drafts, the transcript and the busy/error flags, and mediates
    between client intents and the prompt builder, the model gateway, the
    session store and the identity adapter. Every public operation records
    failures in ``last_error`` instead of raising, and returns a snapshot.

    Outbound calls run without the lock held. Operations that replace the
    conversation bump ``_generation`` so a reply that resolves afterwards is
    dropped instead of landing in the newer conversation.
    """

    def __init__(
        self,
        *,
        gateway: Gateway,
        store: SessionStoreLike,
        identity: IdentityAdapter,
        defer: Optional[Defer] = None,
        client_id: str = "local",
    ) -> None:
        self._gateway = gateway
        self._store = store
        self._identity_adapter = identity
        self._defer = defer or _run_inline
        self.client_id = client_id

        self._lock = RLock()
        self._state = ConversationState()
        self._identity: Optional[Identity] = None
        self._saved_chats: List[Session] = []
        self._generation = 0
        # Newest snapshot written per chat; older snapshots are skipped
        self._persist_lock = Lock()
        self._persist_seq = 0
        self._written_seq: Dict[str, int] = {}
        self._unsubscribe: Optional[Callable[[], None]] = identity.observe_identity(self._on_identity)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    def snapshot(self) -> ConversationState:
        with self._lock:
            return self._state.model_copy(deep=True)

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def saved_chats(self) -> List[Session]:
        with self._lock:
            return list(self._saved_chats)

    @property
    def store(self) -> SessionStoreLike:
        return self._store

    # ------------------------------------------------------------------
    # Conversation intents
    # ------------------------------------------------------------------
    def update_drafts(self, problem: Optional[str] = None, code: Optional[str] = None) -> ConversationState:
        with self._lock:
            if self._state.phase not in ("idle", "failed"):
                return self._record_error(ValidationError("Start a new chat to edit the problem or code."))
            if problem is not None:
                self._state.problem_draft = problem
            if code is not None:
                self._state.code_draft = code
            return self.snapshot()

    def start_interview(self, problem: str, code: str) -> ConversationState:
        with self._lock:
            if self._state.phase not in ("idle", "failed"):
                return self._record_error(ValidationError("An interview is already in progress. Start a new chat first."))
            if not (problem or "").strip() or not (code or "").strip():
                return self._record_error(ValidationError(MISSING_INPUT_TEXT))
            self._generation += 1
            generation = self._generation
            self._state = ConversationState(
                problem_draft=problem,
                code_draft=code,
                phase="awaiting_opening",
                is_busy=True,
            )
            identity = self._identity

        log_event("interview_start", self.client_id, phase="awaiting_opening")
        prompt = build_opening_prompt(problem, code)
        try:
            with span("opening_reply", self.client_id):
                reply = self._gateway([{"role": "user", "text": prompt}])
        except Exception as exc:  # noqa: BLE001
            self._log_gateway_failure(exc)
            with self._lock:
                if generation != self._generation:
                    return self.snapshot()
                self._state.phase = "failed"
                self._state.is_busy = False
                self._state.transcript = []
                self._state.last_error = f"Error starting interview: {exc}"
                return self.snapshot()

        with self._lock:
            if generation != self._generation:
                logger.info("Discarding stale opening reply client=%s", self.client_id)
                return self.snapshot()
            self._state.transcript = [Turn(role="interviewer", text=reply)]
            self._state.phase = "active"
            self._state.is_busy = False
            messages = list(self._state.transcript)

        if identity is not None:
            self._create_session(generation, identity, problem, code, messages)
        return self.snapshot()

    def send_message(self, text: str) -> ConversationState:
        with self._lock:
            if self._state.is_busy:
                return self._record_error(ValidationError("Please wait for the interviewer to respond."))
            if self._state.phase != "active":
                return self._record_error(ValidationError("Start an interview before sending a message."))
            if not (text or "").strip():
                return self._record_error(ValidationError("Message cannot be empty."))
            self._state.transcript.append(Turn(role="candidate", text=text))
            self._state.phase = "awaiting_reply"
            self._state.is_busy = True
            self._state.last_error = None
            generation = self._generation
            history = to_request_history(
                build_opening_prompt(self._state.problem_draft, self._state.code_draft),
                self._state.transcript,
            )
            session_id = self._state.active_session_id
            identity = self._identity

        error: Optional[str] = None
        try:
            with span("follow_up_reply", self.client_id, turns=len(history)):
                reply = self._gateway(history)
        except Exception as exc:  # noqa: BLE001
            self._log_gateway_failure(exc)
            reply = APOLOGY_TEXT
            error = f"Error fetching response: {exc}"

        with self._lock:
            if generation != self._generation:
                logger.info("Discarding stale reply client=%s", self.client_id)
                return self.snapshot()
            self._state.transcript.append(Turn(role="interviewer", text=reply))
            self._state.phase = "active"
            self._state.is_busy = False
            self._state.last_error = error
            messages = list(self._state.transcript)
            self._persist_seq += 1
            seq = self._persist_seq

        if session_id and identity is not None:
            self._defer(lambda: self._persist(generation, seq, identity.id, session_id, messages))
        return self.snapshot()

    def new_chat(self) -> ConversationState:
        with self._lock:
            self._generation += 1
            self._state = ConversationState()
        log_event("new_chat", self.client_id, phase="idle")
        return self.snapshot()

    def select_session(self, session_id: str) -> ConversationState:
        identity = self._identity
        if identity is None:
            return self._record_error(NotAuthenticatedError("Please sign in to open saved chats."))
        try:
            session = self._store.get_session(identity.id, session_id)
        except InterviewError as exc:
            return self._record_error(exc)
        if session is None:
            return self._record_error(KeyError(session_id), message="Chat not found.")

        with self._lock:
            self._generation += 1
            transcript = [turn.model_copy() for turn in session.messages]
            self._state = ConversationState(
                problem_draft=session.problem,
                code_draft=session.code,
                active_session_id=session.id,
                transcript=transcript,
                phase="active" if transcript else "idle",
            )
        log_event("chat_selected", self.client_id, chat_id=session.id, turns=len(transcript))
        return self.snapshot()

    def refresh_sessions(self) -> List[Session]:
        identity = self._identity
        if identity is None:
            with self._lock:
                self._saved_chats = []
            return []
        try:
            chats = self._store.list_sessions(identity.id)
        except InterviewError as exc:
            self._record_error(exc, message=f"Could not load saved chats: {exc}")
            return self.saved_chats
        with self._lock:
            self._saved_chats = chats
        return list(chats)

    # ------------------------------------------------------------------
    # Identity intents
    # ------------------------------------------------------------------
    def sign_in(self, credential: Optional[str] = None) -> SignInResult:
        try:
            return self._identity_adapter.sign_in(credential)
        except AuthError as exc:
            self._record_error(exc)
            return SignInResult()

    def complete_sign_in(self, code: str, state: Optional[str]) -> Optional[Identity]:
        try:
            return self._identity_adapter.complete_redirect(code, state)
        except AuthError as exc:
            self._record_error(exc)
            return None

    def sign_out(self) -> ConversationState:
        try:
            self._identity_adapter.sign_out()
        except AuthError as exc:
            return self._record_error(exc)
        return self.snapshot()

    def close(self) -> None:
        """Stop listening to identity changes."""

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _on_identity(self, identity: Optional[Identity]) -> None:
        with self._lock:
            previous = self._identity
            self._identity = identity
            switched_user = previous is not None and (identity is None or identity.id != previous.id)
            if switched_user:
                # Chats of the previous user must not stay on screen
                self._generation += 1
                self._state = ConversationState()
        self.refresh_sessions()

    def _create_session(
        self,
        generation: int,
        identity: Identity,
        problem: str,
        code: str,
        messages: List[Turn],
    ) -> None:
        try:
            session_id = self._store.create_session(identity.id, problem, code, messages)
        except InterviewError as exc:
            self._record_error(exc, message=f"Chat could not be saved: {exc}")
            return
        with self._lock:
            if generation == self._generation:
                self._state.active_session_id = session_id
        log_event("chat_created", self.client_id, chat_id=session_id, turns=len(messages))
        self.refresh_sessions()

    def _persist(self, generation: int, seq: int, owner_id: str, session_id: str, messages: List[Turn]) -> None:
        with self._persist_lock:
            if seq <= self._written_seq.get(session_id, 0):
                logger.info("Skipping superseded persist client=%s chat=%s seq=%d", self.client_id, session_id, seq)
                return
            try:
                self._store.append_and_persist(owner_id, session_id, messages)
            except (InterviewError, KeyError) as exc:
                logger.error("Persist failed client=%s chat=%s: %s", self.client_id, session_id, exc)
                with self._lock:
                    if generation == self._generation:
                        self._state.last_error = f"Chat could not be saved: {exc}"
                return
            self._written_seq[session_id] = seq
        log_event("chat_persisted", self.client_id, chat_id=session_id, turns=len(messages))

    def _log_gateway_failure(self, exc: Exception) -> None:
        if isinstance(exc, InterviewError):
            logger.warning("Interviewer call failed client=%s: %s", self.client_id, exc)
        else:
            logger.exception("Unexpected interviewer failure client=%s", self.client_id)
        log_event("interviewer_error", self.client_id, error=type(exc).__name__)

    def _record_error(self, exc: Exception, *, message: Optional[str] = None) -> ConversationState:
        logger.info("client=%s error=%s", self.client_id, exc)
        with self._lock:
            self._state.last_error = message or str(exc)
        return self.snapshot()


__all__ = ["APOLOGY_TEXT", "Gateway", "InterviewSession", "MISSING_INPUT_TEXT", "SessionStoreLike"]
