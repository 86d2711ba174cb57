"""Google sign-in: ID-token popup flow with an OAuth2 redirect fallback."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from agents.types import Identity
from config.settings import Settings, settings as default_settings
from errors import AuthError, PopupBlockedError

logger = logging.getLogger(__name__)

AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
SCOPES = "openid email profile"


def _identity_from_claims(claims: Dict[str, Any]) -> Identity:
    subject = claims.get("sub")
    if not subject:
        raise AuthError("Provider response did not include a user id")
    return Identity(
        id=str(subject),
        display_name=str(claims.get("name") or claims.get("email") or ""),
        avatar_url=claims.get("picture"),
    )


class GoogleIdentityProvider:  # Hosted Google accounts as the auth provider
    def __init__(
        self,
        cfg: Optional[Settings] = None,
        *,
        client: Optional[httpx.Client] = None,
        timeout_s: float = 10.0,
    ) -> None:
        cfg = cfg or default_settings
        self._client_id = cfg.GOOGLE_CLIENT_ID
        self._client_secret = cfg.GOOGLE_CLIENT_SECRET
        self._redirect_uri = cfg.OAUTH_REDIRECT_URI
        self._client = client or httpx.Client(timeout=timeout_s)

    def _require_client_id(self) -> str:
        if not self._client_id:
            raise AuthError("Sign-in is not configured. Set GOOGLE_CLIENT_ID.")
        return self._client_id

    def popup_sign_in(self, credential: Optional[str]) -> Identity:
        """Verify an ID token the browser obtained from the Google popup."""

        client_id = self._require_client_id()
        if not credential:
            raise PopupBlockedError("auth/popup-blocked")
        try:
            response = self._client.get(TOKENINFO_URL, params={"id_token": credential})
        except httpx.HTTPError as exc:
            raise AuthError(f"Could not reach sign-in provider: {exc}") from exc
        if response.status_code != 200:
            raise AuthError("Sign-in token was rejected")
        claims = response.json()
        if claims.get("aud") != client_id:
            raise AuthError("Sign-in token was issued for a different application")
        return _identity_from_claims(claims)

    def begin_redirect(self, state: str) -> str:
        params = {
            "client_id": self._require_client_id(),
            "redirect_uri": self._redirect_uri,
            "response_type": "code",
            "scope": SCOPES,
            "state": state,
            "prompt": "select_account",
        }
        return str(httpx.URL(AUTH_URL, params=params))

    def complete_redirect(self, code: str) -> Identity:
        data = {
            "code": code,
            "client_id": self._require_client_id(),
            "client_secret": self._client_secret or "",
            "redirect_uri": self._redirect_uri,
            "grant_type": "authorization_code",
        }
        try:
            token_resp = self._client.post(TOKEN_URL, data=data)
            if token_resp.status_code != 200:
                raise AuthError(f"Token exchange failed with status {token_resp.status_code}")
            access_token = token_resp.json().get("access_token")
            if not access_token:
                raise AuthError("Token exchange returned no access token")
            info_resp = self._client.get(USERINFO_URL, headers={"Authorization": f"Bearer {access_token}"})
        except httpx.HTTPError as exc:
            raise AuthError(f"Could not reach sign-in provider: {exc}") from exc
        if info_resp.status_code != 200:
            raise AuthError(f"Profile lookup failed with status {info_resp.status_code}")
        return _identity_from_claims(info_resp.json())

    def sign_out(self, identity: Identity) -> None:
        # Tokens are never stored server-side; dropping the identity is enough.
        logger.info("Signed out user=%s", identity.id)


__all__ = ["GoogleIdentityProvider"]
