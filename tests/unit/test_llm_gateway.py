import httpx
import pytest

from config.routes import LlmRoute
from config.safety import default_safety_settings
from errors import ConfigurationError, EmptyOrBlockedResponseError, TransportError
from llm_gateway import LlmGatewayError, build_payload, normalize_role, send_turns


class _Response:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class _Client:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.requests = []

    def post(self, url, *, json, headers, params, timeout):
        self.requests.append({"url": url, "json": json, "headers": headers, "params": params, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response


def _route(**overrides):
    data = {
        "base_url": "https://llm.example.test/v1beta",
        "model": "gemini-test",
        "timeout_s": 5,
        "api_key": "secret",
        "safety_settings": default_safety_settings(),
    }
    data.update(overrides)
    return LlmRoute(**data)


def _ok(text):
    return _Response(200, {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]})


HISTORY = [
    {"role": "user", "text": "PROMPT"},
    {"role": "interviewer", "text": "Explain your approach."},
    {"role": "candidate", "text": "I used a hash map."},
]


def test_send_turns_returns_reply_text_unmodified():
    client = _Client(_ok("  What is the complexity?\n"))
    reply = send_turns(HISTORY, cfg=_route(), client=client)
    assert reply == "  What is the complexity?\n"


def test_request_shape_and_roles():
    client = _Client(_ok("ok"))
    send_turns(HISTORY, cfg=_route(), client=client)
    request = client.requests[0]
    assert request["url"] == "https://llm.example.test/v1beta/models/gemini-test:generateContent"
    assert request["params"] == {"key": "secret"}
    assert request["timeout"] == 5
    body = request["json"]
    assert [item["role"] for item in body["contents"]] == ["user", "model", "user"]
    assert body["contents"][2]["parts"] == [{"text": "I used a hash map."}]
    assert {item["category"] for item in body["safetySettings"]} == {
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    }
    assert "system_instruction" not in body


def test_input_history_not_mutated():
    history = [dict(item) for item in HISTORY]
    send_turns(history, cfg=_route(), client=_Client(_ok("ok")))
    assert history == HISTORY


def test_system_instruction_is_optional():
    payload = build_payload(HISTORY[:1], _route(system_instruction="Be brief."))
    assert payload["system_instruction"] == {"parts": [{"text": "Be brief."}]}


def test_non_success_status_raises_transport_error():
    client = _Client(_Response(500, text='{"error": "boom"}'))
    with pytest.raises(TransportError) as info:
        send_turns(HISTORY, cfg=_route(), client=client)
    assert info.value.status == 500
    assert "boom" in info.value.body
    assert isinstance(info.value, LlmGatewayError)


def test_network_failure_raises_transport_error():
    client = _Client(exc=httpx.ConnectError("refused"))
    with pytest.raises(TransportError) as info:
        send_turns(HISTORY, cfg=_route(), client=client)
    assert info.value.status is None


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"candidates": []},
        {"candidates": [{"finishReason": "SAFETY"}]},
        {"candidates": [{"content": {"parts": []}}]},
        {"promptFeedback": {"blockReason": "SAFETY"}},
    ],
)
def test_empty_or_blocked_content(payload):
    with pytest.raises(EmptyOrBlockedResponseError):
        send_turns(HISTORY, cfg=_route(), client=_Client(_Response(200, payload)))


def test_missing_api_key_makes_no_request():
    client = _Client(_ok("never"))
    with pytest.raises(ConfigurationError):
        send_turns(HISTORY, cfg=_route(api_key=None), client=client)
    assert client.requests == []


def test_normalize_role():
    assert normalize_role("candidate") == "user"
    assert normalize_role("Assistant") == "model"
    with pytest.raises(ValueError):
        normalize_role("system")


def test_default_transport_uses_httpx(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["key"] == "secret"
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "Hi"}]}}]})

    real_client = httpx.Client
    monkeypatch.setattr(
        httpx,
        "Client",
        lambda timeout: real_client(transport=httpx.MockTransport(handler), timeout=timeout),
    )
    assert send_turns(HISTORY, cfg=_route()) == "Hi"
