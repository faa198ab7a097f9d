"""Daemon configuration — loaded from environment / .env file.

Credentials come from the environment first and fall back to a small YAML
file in the user's home directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class StartupError(Exception):
    """Raised when the daemon cannot start (missing credentials, bad config)."""


class Settings(BaseSettings):
    """Central configuration loaded from environment / .env file."""

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "PUSHWATCH_",
        "extra": "ignore",
    }

    # Pushover credentials (fall back to credentials_file when empty)
    app_token: str = ""
    user_token: str = ""
    credentials_file: str = "~/.pushwatch.yaml"

    # Provider
    api_url: str = "https://api.pushover.net"
    request_timeout: float = 10.0

    # Watchers
    manifest: str = "watchers.yaml"
    ack_poll_interval: float = 30.0
    hostname: str = ""  # empty = resolve FQDN at startup

    # Logging
    log_level: str = "INFO"


@dataclass(frozen=True)
class Credentials:
    """Immutable provider credentials, loaded once before the scheduler starts."""

    app_token: str = field(repr=False)
    user_token: str = field(repr=False)


# Historical key names first, short names second
_APP_KEYS = ("pushover_app_token", "app_token")
_USER_KEYS = ("pushover_user_token", "user_token")


def _first(raw: dict[str, Any], keys: tuple[str, ...]) -> str:
    for key in keys:
        value = raw.get(key)
        if value:
            return str(value).strip()
    return ""


def _read_credentials_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise StartupError(f"Could not read credentials file {path}: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise StartupError(f"Credentials file {path} must contain a mapping")
    # Ruby-era files used symbol keys (":pushover_app_token")
    return {str(k).lstrip(":"): v for k, v in raw.items()}


def load_credentials(settings: Settings) -> Credentials:
    """Resolve Pushover tokens from the environment or the credentials file."""
    app_token = settings.app_token.strip()
    user_token = settings.user_token.strip()

    if not (app_token and user_token):
        path = Path(settings.credentials_file).expanduser()
        raw = _read_credentials_file(path)
        app_token = app_token or _first(raw, _APP_KEYS)
        user_token = user_token or _first(raw, _USER_KEYS)
        if raw:
            logger.debug("Loaded credentials from %s", path)

    missing = [name for name, value in (("app_token", app_token), ("user_token", user_token)) if not value]
    if missing:
        raise StartupError(
            f"Missing Pushover credentials: {', '.join(missing)} "
            f"(set PUSHWATCH_APP_TOKEN / PUSHWATCH_USER_TOKEN or {settings.credentials_file})"
        )
    return Credentials(app_token=app_token, user_token=user_token)
