"""Configuration package for the interviewer service."""
from .routes import LlmRoute, route_from_settings
from .safety import SafetySetting, default_safety_settings, load_safety_settings
from .settings import Settings, settings

__all__ = [
    "LlmRoute",
    "route_from_settings",
    "SafetySetting",
    "default_safety_settings",
    "load_safety_settings",
    "Settings",
    "settings",
]
