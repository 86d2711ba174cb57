"""Application settings and configuration management."""
from __future__ import annotations

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interviewer.db")

    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_TIMEOUT_S: float = Field(default=60.0, ge=0.1)

    SAFETY_CONFIG: str = "config/safety.yaml"

    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None
    OAUTH_REDIRECT_URI: str = "http://127.0.0.1:8000/api/auth/callback"
    FRONTEND_URL: str = "/"

    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])
    PERSIST_WORKERS: int = Field(default=2, ge=1)
    CLIENT_IDLE_MINUTES: float = Field(default=60.0, gt=0)

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", validate_assignment=True)


settings = Settings()
