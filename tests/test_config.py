import os
from pathlib import Path

from utils import config as config_module
from utils.config import DEFAULT_DATABASE_PATH, ThingsConfig


def test_defaults():
    cfg = ThingsConfig.from_env({})
    assert cfg.settle_delay == 2.0
    assert cfg.search_delay == 0.5
    assert cfg.search_retry_delay == 1.0
    assert cfg.script_timeout == 30.0
    assert cfg.auth_token is None
    assert cfg.auto_launch is True
    assert (cfg.narrow_limit, cfg.broad_limit) == (10, 50)
    assert cfg.database_path == DEFAULT_DATABASE_PATH
    assert cfg.log_level == "info"


def test_values_from_environment():
    cfg = ThingsConfig.from_env(
        {
            "DELAY_URL_SCHEME": "100",
            "DELAY_TODO_SEARCH": "250",
            "TIMEOUT_APPLESCRIPT": "5000",
            "THINGS3_AUTH_TOKEN": "abc",
            "FEATURE_AUTO_LAUNCH": "false",
            "RECOVERY_BROAD_LIMIT": "20",
            "THINGS3_DATABASE_PATH": "/tmp/things.sqlite",
            "LOG_LEVEL": "WARN",
        }
    )
    assert cfg.settle_delay == 0.1
    assert cfg.search_delay == 0.25
    assert cfg.script_timeout == 5.0
    assert cfg.auth_token == "abc"
    assert cfg.auto_launch is False
    assert cfg.broad_limit == 20
    assert cfg.database_path == Path("/tmp/things.sqlite")
    assert cfg.log_level == "warning"


def test_invalid_numbers_fall_back_to_defaults():
    cfg = ThingsConfig.from_env({"DELAY_URL_SCHEME": "soon", "RECOVERY_NARROW_LIMIT": "ten"})
    assert cfg.settle_delay == 2.0
    assert cfg.narrow_limit == 10


def test_empty_token_is_unset():
    assert ThingsConfig.from_env({"THINGS3_AUTH_TOKEN": ""}).auth_token is None


def test_env_file_is_loaded(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module.Path, "home", lambda: tmp_path / "nohome")
    monkeypatch.delenv("THINGS3_AUTH_TOKEN", raising=False)
    (tmp_path / ".things3.env").write_text("THINGS3_AUTH_TOKEN=from-file\n")

    try:
        cfg = config_module.load_config()
    finally:
        os.environ.pop("THINGS3_AUTH_TOKEN", None)

    assert cfg.auth_token == "from-file"
