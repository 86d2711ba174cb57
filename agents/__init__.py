"""Interviewer prompt and shared conversation types."""
from .prompt_builder import build_opening_prompt, to_request_history
from .types import ConversationState, Identity, Session, Turn

__all__ = ["ConversationState", "Identity", "Session", "Turn", "build_opening_prompt", "to_request_history"]
