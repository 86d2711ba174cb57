from __future__ import annotations  # Re-export llm_gateway public API

from .llm_gateway import (
    GatewayEmptyResponseError,
    GatewayTransportError,
    HttpClient,
    HttpResponse,
    LlmGatewayError,
    build_payload,
    extract_text,
    normalize_role,
    send_turns,
)

__all__ = [
    "GatewayEmptyResponseError",
    "GatewayTransportError",
    "HttpClient",
    "HttpResponse",
    "LlmGatewayError",
    "build_payload",
    "extract_text",
    "normalize_role",
    "send_turns",
]
