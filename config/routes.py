"""LLM route configuration for the Gemini generateContent endpoint."""
from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .safety import SafetySetting, load_safety_settings
from .settings import Settings, settings as default_settings


class LlmRoute(BaseModel):
    """Where and how the interviewer model is reached."""

    name: str = "interviewer"
    base_url: str
    model: str
    timeout_s: float = Field(ge=0.1)
    api_key: Optional[str] = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)
    safety_settings: List[SafetySetting] = Field(default_factory=list)
    system_instruction: Optional[str] = None

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}/models/{self.model}:generateContent"


def route_from_settings(cfg: Optional[Settings] = None) -> LlmRoute:
    """Build the interviewer route from process settings."""

    cfg = cfg or default_settings
    return LlmRoute(
        base_url=cfg.GEMINI_BASE_URL,
        model=cfg.GEMINI_MODEL,
        timeout_s=cfg.GEMINI_TIMEOUT_S,
        api_key=cfg.GEMINI_API_KEY or None,
        safety_settings=load_safety_settings(cfg.SAFETY_CONFIG),
    )


__all__ = ["LlmRoute", "route_from_settings"]
