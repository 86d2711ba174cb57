"""Conversation state controller for one open client."""
from .interview_session import APOLOGY_TEXT, InterviewSession, MISSING_INPUT_TEXT

__all__ = ["APOLOGY_TEXT", "InterviewSession", "MISSING_INPUT_TEXT"]
