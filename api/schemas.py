"""Pydantic schemas for the interviewer API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from agents.types import ConversationState, Identity, Phase, Session, Turn


class DraftsReq(BaseModel):
    problem: Optional[str] = None
    code: Optional[str] = None


class StartReq(BaseModel):
    problem: str = ""
    code: str = ""


class MessageReq(BaseModel):
    text: str = ""


class SignInReq(BaseModel):
    credential: Optional[str] = None


class ChatSummary(BaseModel):
    id: str
    title: str
    created_at: str

    @classmethod
    def from_session(cls, session: Session) -> "ChatSummary":
        return cls(id=session.id, title=session.title, created_at=session.created_at)


class ChatView(BaseModel):
    problem: str = ""
    code: str = ""
    phase: Phase = "idle"
    interview_started: bool = False
    transcript: List[Turn] = Field(default_factory=list)
    is_busy: bool = False
    error: Optional[str] = None
    active_session_id: Optional[str] = None
    user: Optional[Identity] = None
    saved_chats: List[ChatSummary] = Field(default_factory=list)

    @classmethod
    def build(
        cls,
        state: ConversationState,
        *,
        user: Optional[Identity],
        saved_chats: List[Session],
    ) -> "ChatView":
        return cls(
            problem=state.problem_draft,
            code=state.code_draft,
            phase=state.phase,
            interview_started=state.phase not in ("idle", "failed"),
            transcript=state.transcript,
            is_busy=state.is_busy,
            error=state.last_error,
            active_session_id=state.active_session_id,
            user=user,
            saved_chats=[ChatSummary.from_session(chat) for chat in saved_chats],
        )


class SignInResp(BaseModel):
    user: Optional[Identity] = None
    redirect_url: Optional[str] = None
    error: Optional[str] = None
