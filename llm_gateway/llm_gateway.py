from __future__ import annotations  # Gemini generateContent gateway

import logging
from typing import Any, Callable, Dict, Optional, Protocol, Sequence, Tuple

import httpx

from config import LlmRoute
from errors import ConfigurationError, EmptyOrBlockedResponseError, InterviewError, TransportError


logger = logging.getLogger(__name__)  # Module logger setup


class HttpClient(Protocol):  # Minimal HTTP client protocol
    def post(
        self,
        url: str,
        *,
        json: Dict[str, Any],
        headers: Dict[str, str],
        params: Dict[str, str],
        timeout: float,
    ) -> "HttpResponse": ...


class HttpResponse(Protocol):  # Minimal HTTP response protocol
    @property
    def status_code(self) -> int: ...

    def json(self) -> Any: ...

    @property
    def text(self) -> str: ...


class LlmGatewayError(InterviewError):  # Base gateway error
    pass


class GatewayTransportError(LlmGatewayError, TransportError):  # HTTP or network failure
    pass


class GatewayEmptyResponseError(LlmGatewayError, EmptyOrBlockedResponseError):  # No usable reply text
    pass


_USER_ROLES = {"user", "candidate", "human"}
_MODEL_ROLES = {"model", "interviewer", "assistant", "ai"}


def send_turns(
    history: Sequence[Dict[str, str]],
    *,
    cfg: LlmRoute,
    client: Optional[HttpClient] = None,
) -> str:  # Send the whole conversation and return the next interviewer utterance
    api_key = cfg.api_key
    if not api_key:
        raise ConfigurationError("API key not found. Please set GEMINI_API_KEY in your environment or .env file.")

    payload = build_payload(history, cfg)
    headers = {"Content-Type": "application/json"}
    headers.update(cfg.extra_headers)
    preview = _preview(history)
    logger.info(
        "LLM request send route=%s model=%s turns=%d preview=%s",
        cfg.name,
        cfg.model,
        len(payload["contents"]),
        preview,
    )
    try:
        response, close_cb = _post(cfg.url, payload, headers, {"key": api_key}, cfg.timeout_s, client)
    except Exception as exc:  # noqa: BLE001
        logger.error("LLM transport failure: %s", exc)
        raise GatewayTransportError(f"API call failed: {exc}") from exc
    try:
        if response.status_code < 200 or response.status_code >= 300:
            body = response.text
            logger.error("LLM error status: %s", response.status_code)
            raise GatewayTransportError(
                f"API call failed with status: {response.status_code}. Body: {body}",
                status=response.status_code,
                body=body,
            )
        try:
            data = response.json()
        except Exception as exc:  # noqa: BLE001
            logger.error("Invalid JSON payload from LLM: %s", exc)
            raise GatewayTransportError(
                "API returned a payload that was not JSON",
                status=response.status_code,
                body=response.text,
            ) from exc
    finally:
        _close_safely(close_cb)
    text = extract_text(data)
    logger.info("LLM request done route=%s model=%s chars=%d", cfg.name, cfg.model, len(text))
    return text


def build_payload(history: Sequence[Dict[str, str]], cfg: LlmRoute) -> Dict[str, Any]:  # Serialize history and policy
    contents = [
        {"role": normalize_role(item.get("role", "")), "parts": [{"text": str(item.get("text", ""))}]}
        for item in history
    ]
    payload: Dict[str, Any] = {
        "contents": contents,
        "safetySettings": [setting.model_dump() for setting in cfg.safety_settings],
    }
    if cfg.system_instruction:
        payload["system_instruction"] = {"parts": [{"text": cfg.system_instruction}]}
    return payload


def normalize_role(role: str) -> str:  # Map any local role name onto the endpoint's two roles
    value = str(role).strip().lower()
    if value in _USER_ROLES:
        return "user"
    if value in _MODEL_ROLES:
        return "model"
    raise ValueError(f"Unknown chat role: {role!r}")


def extract_text(data: Any) -> str:  # Pull candidates[0].content.parts[0].text or fail
    if isinstance(data, dict):
        feedback = data.get("promptFeedback")
        if isinstance(feedback, dict) and feedback.get("blockReason"):
            logger.warning("LLM prompt blocked: %s", feedback.get("blockReason"))
            raise GatewayEmptyResponseError("The response was blocked or empty. Please try rephrasing your message.")
        candidates = data.get("candidates")
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            content = candidates[0].get("content")
            parts = content.get("parts") if isinstance(content, dict) else None
            if isinstance(parts, list) and parts and isinstance(parts[0], dict):
                text = parts[0].get("text")
                if isinstance(text, str) and text:
                    return text
            reason = candidates[0].get("finishReason")
            if reason:
                logger.warning("LLM candidate without content finish_reason=%s", reason)
    logger.error("Unexpected API response structure or content blocked")
    raise GatewayEmptyResponseError("The response was blocked or empty. Please try rephrasing your message.")


def _post(
    url: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    params: Dict[str, str],
    timeout: float,
    client: Optional[HttpClient],
) -> Tuple[HttpResponse, Optional[Callable[[], None]]]:  # Dispatch HTTP request
    if client is not None:
        response = client.post(url, json=payload, headers=headers, params=params, timeout=timeout)
        return response, None
    http_client = httpx.Client(timeout=timeout)
    try:
        response = http_client.post(url, json=payload, headers=headers, params=params)
    except Exception:
        http_client.close()
        raise
    return response, http_client.close


def _close_safely(close_cb: Optional[Callable[[], None]]) -> None:  # Close HTTP client callback when provided
    if close_cb is not None:
        close_cb()


def _preview(history: Sequence[Dict[str, str]]) -> str:  # Last line sent, trimmed for logs
    for item in reversed(history):
        text = str(item.get("text", "")).strip()
        if text:
            line = text.splitlines()[0]
            return line[:117] + "..." if len(line) > 120 else line
    return ""
