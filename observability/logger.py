"""Interview event log: one record per event, rendered per handler."""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import time
from typing import Any, Dict

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "1") in ("1", "true", "True")
LOG_FILE = os.getenv("LOG_FILE", "logs/interviewer-events.jsonl")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "5242880"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

# Fields shown after the kind on console lines, in this order
CONSOLE_FIELDS = ("chat_id", "phase", "node", "turns", "outcome", "ms", "error")

_logger = logging.getLogger("interviewer.events")
_logger.setLevel(LOG_LEVEL)
_logger.propagate = False


class ConsoleEventFormatter(logging.Formatter):
    """``[time] kind client=... chat=... turns=3`` for people watching stdout."""

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        event: Dict[str, Any] = getattr(record, "event", {})
        parts = [f"[{self.formatTime(record, self.datefmt)}]", str(event.get("kind")), f"client={event.get('client_id')}"]
        for key in CONSOLE_FIELDS:
            if event.get(key) is not None:
                label = "chat" if key == "chat_id" else key
                parts.append(f"{label}={event[key]}")
        return " ".join(parts)


class JsonEventFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(getattr(record, "event", {}), ensure_ascii=False, default=str)


def _configure() -> None:
    if _logger.handlers:
        return
    console = logging.StreamHandler(stream=sys.stdout)
    console.setFormatter(ConsoleEventFormatter())
    _logger.addHandler(console)

    if not ENABLE_FILE_LOGS:
        return
    log_dir = os.path.dirname(LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    events_file = logging.handlers.RotatingFileHandler(
        LOG_FILE,
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    events_file.setFormatter(JsonEventFormatter())
    _logger.addHandler(events_file)


def log_event(kind: str, client_id: str, **fields: Any) -> None:
    """Record ``kind`` for one browser client; extra fields go into the event as-is."""

    _configure()
    event: Dict[str, Any] = {"ts": round(time.time(), 3), "kind": kind, "client_id": client_id}
    event.update(fields)
    _logger.info(kind, extra={"event": event})


__all__ = ["ConsoleEventFormatter", "JsonEventFormatter", "log_event"]
