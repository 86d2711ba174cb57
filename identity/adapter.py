"""Observable sign-in state delegated to a hosted auth provider."""
from __future__ import annotations

import logging
import secrets
import threading
from typing import Callable, List, Optional, Protocol

from pydantic import BaseModel

from agents.types import Identity
from errors import AuthError, PopupBlockedError

logger = logging.getLogger(__name__)

IdentityCallback = Callable[[Optional[Identity]], None]


class IdentityProvider(Protocol):  # What a hosted auth provider must offer
    def popup_sign_in(self, credential: Optional[str]) -> Identity: ...

    def begin_redirect(self, state: str) -> str: ...

    def complete_redirect(self, code: str) -> Identity: ...

    def sign_out(self, identity: Identity) -> None: ...


class SignInResult(BaseModel):
    """Outcome of ``sign_in``: either an identity now, or a URL to continue at."""

    identity: Optional[Identity] = None
    redirect_url: Optional[str] = None

    @property
    def redirected(self) -> bool:
        return self.redirect_url is not None


class IdentityAdapter:
    """Holds the current identity and notifies subscribers whenever it changes.

    ``sign_in`` tries the provider's popup flow first. When the provider
    refuses it (``PopupBlockedError``) the redirect flow is started instead and
    the new identity arrives later through ``complete_redirect``, which
    notifies every observer just like the popup path does.
    """

    def __init__(self, provider: IdentityProvider, identity: Optional[Identity] = None) -> None:
        self._provider = provider
        self._identity = identity
        self._observers: List[IdentityCallback] = []
        self._pending_state: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def current(self) -> Optional[Identity]:
        return self._identity

    def observe_identity(self, on_change: IdentityCallback) -> Callable[[], None]:
        """Subscribe ``on_change``; it fires now and on every change. Returns the unsubscribe."""

        with self._lock:
            self._observers.append(on_change)
        on_change(self._identity)

        def unsubscribe() -> None:
            with self._lock:
                if on_change in self._observers:
                    self._observers.remove(on_change)

        return unsubscribe

    def sign_in(self, credential: Optional[str] = None) -> SignInResult:
        try:
            identity = self._provider.popup_sign_in(credential)
        except PopupBlockedError as exc:
            logger.info("Popup sign-in refused (%s); falling back to redirect", exc)
            state = secrets.token_urlsafe(16)
            try:
                url = self._provider.begin_redirect(state)
            except AuthError:
                raise
            except Exception as exc:  # noqa: BLE001
                raise AuthError(f"Sign-in failed: {exc}") from exc
            self._pending_state = state
            return SignInResult(redirect_url=url)
        except AuthError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise AuthError(f"Sign-in failed: {exc}") from exc
        self._set(identity)
        return SignInResult(identity=identity)

    def complete_redirect(self, code: str, state: Optional[str]) -> Identity:
        if not self._pending_state or state != self._pending_state:
            raise AuthError("Sign-in could not be verified. Please try again.")
        self._pending_state = None
        try:
            identity = self._provider.complete_redirect(code)
        except AuthError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise AuthError(f"Sign-in failed: {exc}") from exc
        self._set(identity)
        return identity

    def sign_out(self) -> None:
        identity = self._identity
        if identity is not None:
            try:
                self._provider.sign_out(identity)
            except Exception as exc:  # noqa: BLE001
                raise AuthError(f"Sign-out failed: {exc}") from exc
        self._set(None)

    def _set(self, identity: Optional[Identity]) -> None:
        with self._lock:
            self._identity = identity
            observers = list(self._observers)
        logger.info("Identity changed user=%s", identity.id if identity else None)
        for callback in observers:
            callback(identity)


__all__ = ["IdentityAdapter", "IdentityCallback", "IdentityProvider", "SignInResult"]
