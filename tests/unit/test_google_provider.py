import httpx
import pytest

from config.settings import Settings
from errors import AuthError, PopupBlockedError
from identity import GoogleIdentityProvider


def _provider(handler, **cfg):
    settings = Settings(
        _env_file=None,
        GOOGLE_CLIENT_ID=cfg.get("client_id", "client-123"),
        GOOGLE_CLIENT_SECRET="shh",
        OAUTH_REDIRECT_URI="http://testserver/api/auth/callback",
    )
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return GoogleIdentityProvider(settings, client=client)


def _unreachable(request):
    raise AssertionError(f"unexpected request {request.url}")


def test_popup_verifies_id_token():
    def handler(request):
        assert request.url.path == "/tokeninfo"
        assert request.url.params["id_token"] == "tok"
        return httpx.Response(
            200,
            json={"aud": "client-123", "sub": "42", "name": "Ada", "picture": "https://img.test/a.png"},
        )

    identity = _provider(handler).popup_sign_in("tok")
    assert identity.id == "42"
    assert identity.display_name == "Ada"
    assert identity.avatar_url == "https://img.test/a.png"


def test_popup_rejects_foreign_audience():
    def handler(request):
        return httpx.Response(200, json={"aud": "someone-else", "sub": "42"})

    with pytest.raises(AuthError):
        _provider(handler).popup_sign_in("tok")


def test_popup_without_credential_is_blocked():
    with pytest.raises(PopupBlockedError):
        _provider(_unreachable).popup_sign_in(None)


def test_unconfigured_client_id():
    with pytest.raises(AuthError):
        _provider(_unreachable, client_id=None).popup_sign_in("tok")


def test_redirect_url_and_code_exchange():
    def handler(request):
        if request.url.path == "/token":
            body = request.content.decode()
            assert "code=the-code" in body
            assert "grant_type=authorization_code" in body
            return httpx.Response(200, json={"access_token": "at"})
        assert request.headers["Authorization"] == "Bearer at"
        return httpx.Response(200, json={"sub": "7", "email": "grace@example.test"})

    provider = _provider(handler)
    url = httpx.URL(provider.begin_redirect("st"))
    assert url.host == "accounts.google.com"
    assert url.params["state"] == "st"
    assert url.params["client_id"] == "client-123"
    assert url.params["response_type"] == "code"

    identity = provider.complete_redirect("the-code")
    assert identity.id == "7"
    assert identity.display_name == "grace@example.test"


def test_failed_code_exchange():
    def handler(request):
        return httpx.Response(400, json={"error": "invalid_grant"})

    with pytest.raises(AuthError):
        _provider(handler).complete_redirect("bad")
