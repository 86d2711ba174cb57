import json
import logging

from observability.logger import ConsoleEventFormatter, JsonEventFormatter


def _record(event):
    record = logging.LogRecord("interviewer.events", logging.INFO, "", 0, event["kind"], (), None)
    record.event = event
    return record


def test_console_line_names_client_and_chat():
    event = {"ts": 1.0, "kind": "chat_persisted", "client_id": "c1", "chat_id": "abc", "turns": 3, "extra": "x"}
    line = ConsoleEventFormatter().format(_record(event))
    assert line.endswith("chat_persisted client=c1 chat=abc turns=3")


def test_json_line_keeps_every_field():
    event = {"ts": 1.0, "kind": "span", "client_id": "c1", "node": "opening_reply", "ms": 12, "outcome": "ok"}
    assert json.loads(JsonEventFormatter().format(_record(event))) == event
