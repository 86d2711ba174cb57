from datetime import datetime, timedelta

import pytest

from config.settings import settings
from services import sessions


class _Client:
    def __init__(self, client_id):
        self.client_id = client_id
        self.closed = False

    def close(self):
        self.closed = True


@pytest.fixture
def registry(monkeypatch):
    monkeypatch.setattr(sessions, "_CLIENTS", {})
    monkeypatch.setattr(sessions, "_LAST_SEEN", {})
    monkeypatch.setattr(sessions, "build_session", _Client)
    monkeypatch.setattr(settings, "CLIENT_IDLE_MINUTES", 30.0)
    return sessions


def test_same_client_reuses_controller(registry):
    now = datetime(2026, 1, 1, 12, 0)
    first = registry.get_or_create("a", now=now)
    assert registry.get_or_create("a", now=now + timedelta(minutes=5)) is first


def test_idle_clients_are_evicted_and_closed(registry):
    start = datetime(2026, 1, 1, 12, 0)
    idle = registry.get_or_create("idle", now=start)
    busy = registry.get_or_create("busy", now=start)
    registry.get_or_create("busy", now=start + timedelta(minutes=20))

    registry.get_or_create("newcomer", now=start + timedelta(minutes=31))
    assert idle.closed
    assert not busy.closed
    assert set(registry._CLIENTS) == {"busy", "newcomer"}
    assert "idle" not in registry._LAST_SEEN

    again = registry.get_or_create("idle", now=start + timedelta(minutes=32))
    assert again is not idle


def test_registry_stays_bounded_under_cookieless_visits(registry):
    start = datetime(2026, 1, 1, 12, 0)
    for minute in range(0, 300, 10):
        registry.get_or_create(registry.new_client_id(), now=start + timedelta(minutes=minute))
    assert len(registry._CLIENTS) <= 4


def test_drop_closes_controller(registry):
    client = registry.get_or_create("a")
    assert registry.drop("a") is True
    assert client.closed
    assert registry.drop("a") is False
