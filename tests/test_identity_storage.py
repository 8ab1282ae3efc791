import json
from datetime import datetime, timedelta

import pytest

from distribution_server import storage
from distribution_server.identity import SessionManager, authenticate
from distribution_server.models import ServerConfig, User


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("CNTSCI_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("CNTSCI_SCRIPT_URL", raising=False)
    monkeypatch.delenv("CNTSCI_VISITOR_LOGIN", raising=False)
    return tmp_path


def test_authenticate(standard_agent, supervisor_agent):
    users = [standard_agent, supervisor_agent]
    assert authenticate(users, "kouassi", "s3cret") == standard_agent
    assert authenticate(users, " KOUASSI ", "s3cret") == standard_agent
    assert authenticate(users, "kouassi", "wrong") is None
    assert authenticate(users, "nobody", "s3cret") is None
    assert authenticate([], "kouassi", "s3cret") is None


def test_password_never_serialized(standard_agent):
    assert "motDePasse" not in standard_agent.model_dump(by_alias=True)
    assert "s3cret" not in repr(standard_agent)


def test_session_manager(standard_agent):
    sessions = SessionManager()
    token = sessions.open(standard_agent)
    assert sessions.get(token) == standard_agent
    assert len(sessions) == 1
    assert sessions.get(None) is None
    assert sessions.close(token)
    assert not sessions.close(token)
    assert sessions.get(token) is None


def test_config_defaults_written(data_dir):
    cfg = storage.load_config()
    assert cfg == ServerConfig()
    assert (data_dir / "config.json").exists()


def test_config_env_overrides(data_dir, monkeypatch):
    monkeypatch.setenv("CNTSCI_SCRIPT_URL", "https://example.org/exec")
    monkeypatch.setenv("CNTSCI_VISITOR_LOGIN", "invite")
    cfg = storage.load_config()
    assert cfg.script_url == "https://example.org/exec"
    assert cfg.visitor_login == "invite"


def test_records_snapshot_roundtrip(data_dir, network_records):
    assert storage.load_records() == []
    assert storage.last_sync_time() is None

    path = storage.save_records(network_records)
    with open(path, encoding="utf-8") as f:
        payload = json.load(f)
    assert payload["rows_count"] == 6
    assert payload["rows"][0]["centreCntsci"] == "CRTS TREICHVILLE"

    assert storage.load_records() == network_records
    assert storage.last_sync_time() == payload["generated_at"]


def test_users_snapshot_keeps_passwords(data_dir, standard_agent):
    storage.save_users([standard_agent])
    loaded = storage.load_users()
    assert loaded == [standard_agent]
    assert authenticate(loaded, "kouassi", "s3cret") is not None


def test_authenticate_with_duplicate_login_rows(standard_agent):
    old_row = User(nomAgent="KOUASSI A.", login="kouassi", motDePasse="old",
                   centreAffectation="CRTS TREICHVILLE")
    users = [old_row, standard_agent]
    assert authenticate(users, "kouassi", "s3cret") == standard_agent
    assert authenticate(users, "kouassi", "old") == old_row
    assert authenticate(users, "kouassi", "neither") is None


class _Clock:
    def __init__(self):
        self.now = datetime(2025, 3, 5, 8, 0)

    def __call__(self):
        return self.now


def test_idle_sessions_expire(standard_agent):
    clock = _Clock()
    sessions = SessionManager(idle_timeout=timedelta(hours=1), clock=clock)
    token = sessions.open(standard_agent)

    clock.now += timedelta(minutes=50)
    assert sessions.get(token) == standard_agent

    # Each lookup keeps the session alive
    clock.now += timedelta(minutes=50)
    assert sessions.get(token) == standard_agent

    clock.now += timedelta(hours=1)
    assert sessions.get(token) is None
    assert len(sessions) == 0


def test_abandoned_sessions_purged_on_open(standard_agent, supervisor_agent):
    clock = _Clock()
    sessions = SessionManager(idle_timeout=timedelta(hours=1), clock=clock)
    for _ in range(3):
        sessions.open(standard_agent)

    clock.now += timedelta(hours=2)
    sessions.open(supervisor_agent)
    assert len(sessions) == 1
