"""
Configuration utilities for the Things3 CLI.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional
from dotenv import load_dotenv

ENV_FILE_NAME = ".things3.env"

DEFAULT_DATABASE_PATH = (
    Path.home()
    / "Library"
    / "Group Containers"
    / "JLMPQHK86H.com.culturedcode.ThingsMac"
    / "ThingsData-JODLL"
    / "Things Database.thingsdatabase"
    / "main.sqlite"
)

_LOG_LEVELS = ("debug", "info", "warning", "error")


def load_env_vars() -> None:
    """
    Load environment variables from .env files in the following order:
    1. .things3.env in the current directory
    2. .things3.env in the user's home directory
    """
    # Load from current directory
    if os.path.exists(ENV_FILE_NAME):
        load_dotenv(ENV_FILE_NAME)

    # Load from home directory
    home_env = Path.home() / ENV_FILE_NAME
    if home_env.exists():
        load_dotenv(home_env)


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() == "true"


def _parse_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_log_level(value: Optional[str]) -> str:
    level = (value or "").strip().lower()
    if level == "warn":
        level = "warning"
    return level if level in _LOG_LEVELS else "info"


@dataclass(frozen=True)
class ThingsConfig:
    """Settings consumed by the executor, encoder and recovery protocol.

    Delays and timeouts are stored in seconds; the environment supplies them
    in milliseconds.
    """

    settle_delay: float = 2.0
    search_delay: float = 0.5
    search_retry_delay: float = 1.0
    script_timeout: float = 30.0
    auth_token: Optional[str] = None
    auto_launch: bool = True
    narrow_limit: int = 10
    broad_limit: int = 50
    database_path: Path = field(default=DEFAULT_DATABASE_PATH)
    log_level: str = "info"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ThingsConfig":
        """Build a config from ``env`` (defaults to ``os.environ``)."""
        if env is None:
            env = os.environ

        def millis(key: str, default: int) -> float:
            return _parse_int(env.get(key), default) / 1000.0

        database_path = env.get("THINGS3_DATABASE_PATH")
        return cls(
            settle_delay=millis("DELAY_URL_SCHEME", 2000),
            search_delay=millis("DELAY_TODO_SEARCH", 500),
            search_retry_delay=millis("DELAY_TODO_SEARCH_RETRY", 1000),
            script_timeout=millis("TIMEOUT_APPLESCRIPT", 30000),
            auth_token=env.get("THINGS3_AUTH_TOKEN") or None,
            auto_launch=_parse_bool(env.get("FEATURE_AUTO_LAUNCH"), True),
            narrow_limit=_parse_int(env.get("RECOVERY_NARROW_LIMIT"), 10),
            broad_limit=_parse_int(env.get("RECOVERY_BROAD_LIMIT"), 50),
            database_path=Path(database_path) if database_path else DEFAULT_DATABASE_PATH,
            log_level=_parse_log_level(env.get("LOG_LEVEL")),
            log_file=env.get("LOG_FILE") or None,
        )


def load_config() -> ThingsConfig:
    """Load .env files and return the resulting configuration."""
    load_env_vars()
    return ThingsConfig.from_env()
