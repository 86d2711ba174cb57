"""Shared type definitions for the interviewer."""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Role = Literal["candidate", "interviewer"]
WireRole = Literal["user", "model"]
Phase = Literal["idle", "awaiting_opening", "active", "awaiting_reply", "failed"]


class Turn(BaseModel):
    role: Role
    text: str


class Session(BaseModel):
    id: str
    owner_id: str
    problem: str
    code: str
    messages: List[Turn]
    created_at: str
    updated_at: str

    @property
    def title(self) -> str:
        words = self.problem.split()
        return " ".join(words[:5]) if words else "Untitled Chat"


class Identity(BaseModel):
    id: str
    display_name: str = ""
    avatar_url: Optional[str] = None


class ConversationState(BaseModel):
    problem_draft: str = ""
    code_draft: str = ""
    active_session_id: Optional[str] = None
    transcript: List[Turn] = Field(default_factory=list)
    is_busy: bool = False
    last_error: Optional[str] = None
    phase: Phase = "idle"
