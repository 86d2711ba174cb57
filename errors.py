from __future__ import annotations  # Error taxonomy shared across the interview service

from typing import Optional


class InterviewError(RuntimeError):  # Base for every user-visible failure
    pass


class ValidationError(InterviewError):  # Input rejected before any network call
    pass


class NotAuthenticatedError(InterviewError):  # Session operation attempted without identity
    pass


class ConfigurationError(InterviewError):  # Required process configuration missing
    pass


class TransportError(InterviewError):
    """Network or HTTP failure talking to the AI endpoint or the session store."""

    def __init__(self, message: str, *, status: Optional[int] = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class EmptyOrBlockedResponseError(InterviewError):  # AI call succeeded without usable content
    pass


class AuthError(InterviewError):  # Sign-in or sign-out failure
    pass


class PopupBlockedError(AuthError):  # Provider refused the popup-style flow
    pass


__all__ = [
    "AuthError",
    "ConfigurationError",
    "EmptyOrBlockedResponseError",
    "InterviewError",
    "NotAuthenticatedError",
    "PopupBlockedError",
    "TransportError",
    "ValidationError",
]
