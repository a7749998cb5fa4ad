import json

import pytest

from shipsync.core.config import SyncConfig

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "SHIPSYNC_API_URL",
        "SHIPSYNC_ENV",
        "SHIPSYNC_DB_PATH",
        "SHIPSYNC_MAX_RETRIES",
        "SHIPSYNC_LANGUAGE",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_and_derived_millis(tmp_path):
    cfg = SyncConfig(db_path=str(tmp_path / "q.db"))
    assert cfg.max_retries == 3
    assert cfg.replay_pacing_ms == 100
    assert cfg.reconnect_settle_ms == 1000
    assert cfg.count_poll_interval_ms == 2000
    assert cfg.probe_interval_ms == 5000
    assert cfg.request_timeout_sec == 10.0
    assert cfg.base_url == "http://localhost:3000/api"
    assert cfg.effective_probe_url == cfg.base_url


def test_production_uses_longer_timeout():
    assert SyncConfig(environment="production", db_path=":memory:").request_timeout_sec == 30.0
    assert SyncConfig(environment="production", request_timeout_sec=5, db_path=":memory:").request_timeout_sec == 5


def test_default_db_path_under_home():
    assert SyncConfig().db_path.endswith("offline_queue.db")


def test_base_url_trims_trailing_slash():
    cfg = SyncConfig(api_url="https://fleet.example.com/", db_path=":memory:")
    assert cfg.base_url == "https://fleet.example.com/api"


@pytest.mark.parametrize(
    "over",
    [
        {"api_url": ""},
        {"environment": "staging"},
        {"language": "de"},
        {"max_retries": 0},
        {"replay_pacing_sec": -0.1},
    ],
)
def test_validation(over):
    with pytest.raises(ValueError):
        SyncConfig(db_path=":memory:", **over)


def test_load_file_then_env_then_overrides(tmp_path, monkeypatch):
    path = tmp_path / "shipsync.json"
    path.write_text(json.dumps({"api_url": "http://file:1", "max_retries": 5, "language": "fr"}), encoding="utf-8")
    monkeypatch.setenv("SHIPSYNC_MAX_RETRIES", "4")
    monkeypatch.setenv("SHIPSYNC_ENV", "PRODUCTION")
    monkeypatch.setenv("SHIPSYNC_DB_PATH", str(tmp_path / "env.db"))

    cfg = SyncConfig.load(path, overrides={"api_url": "http://override:2"})

    assert cfg.api_url == "http://override:2"
    assert cfg.max_retries == 4
    assert cfg.environment == "production"
    assert cfg.request_timeout_sec == 30.0
    assert cfg.language == "fr"
    assert cfg.db_path == str(tmp_path / "env.db")


def test_load_missing_file_uses_defaults(tmp_path):
    cfg = SyncConfig.load(tmp_path / "absent.json", overrides={"db_path": ":memory:"})
    assert cfg.api_url == "http://localhost:3000"


def test_load_rejects_non_object_file(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        SyncConfig.load(path)
