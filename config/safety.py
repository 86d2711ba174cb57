"""YAML-driven safety policy sent with every interviewer request."""
from __future__ import annotations

import logging
import os
from typing import Dict, List, Literal

import yaml
from pydantic import BaseModel

logger = logging.getLogger(__name__)

Threshold = Literal[
    "BLOCK_NONE",
    "BLOCK_ONLY_HIGH",
    "BLOCK_MEDIUM_AND_ABOVE",
    "BLOCK_LOW_AND_ABOVE",
]

CATEGORIES: List[str] = [
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
]
DEFAULT_THRESHOLD: Threshold = "BLOCK_MEDIUM_AND_ABOVE"


class SafetySetting(BaseModel):
    """One category/threshold pair in the wire shape the endpoint expects."""

    category: str
    threshold: Threshold


def default_safety_settings() -> List[SafetySetting]:
    return [SafetySetting(category=category, threshold=DEFAULT_THRESHOLD) for category in CATEGORIES]


def _load_yaml(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def load_safety_settings(path: str) -> List[SafetySetting]:
    """Return the policy from ``path``, falling back to the defaults when absent.

    The file holds a ``default`` threshold and an optional ``categories``
    mapping of category name to threshold::

        default: BLOCK_MEDIUM_AND_ABOVE
        categories:
          HARM_CATEGORY_DANGEROUS_CONTENT: BLOCK_ONLY_HIGH
    """

    if not path or not os.path.exists(path):
        return default_safety_settings()

    cfg = _load_yaml(path)
    default = cfg.get("default", DEFAULT_THRESHOLD)
    overrides: Dict[str, str] = dict(cfg.get("categories") or {})
    policy = [
        SafetySetting(category=category, threshold=overrides.pop(category, default))
        for category in CATEGORIES
    ]
    # Categories the endpoint knows about but we don't list by default
    for category, threshold in overrides.items():
        policy.append(SafetySetting(category=category, threshold=threshold))
    logger.info("Loaded safety policy from %s (%d categories)", path, len(policy))
    return policy


__all__ = ["CATEGORIES", "SafetySetting", "default_safety_settings", "load_safety_settings"]
