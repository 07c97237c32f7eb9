"""Environment-driven configuration."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any, Mapping, Optional

from sunset_bot.core.errors import ConfigError

TRANSPORTS = ("http", "socket")


class ConfigNode(dict):
    """Dictionary with attribute access for nested configuration sections."""

    def __getattr__(self, name: str) -> Any:
        try:
            return self[name]
        except KeyError as exc:
            raise AttributeError(name) from exc

    def __setattr__(self, name: str, value: Any) -> None:
        self[name] = value

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConfigNode":
        node = cls()
        for key, value in data.items():
            node[key] = cls.from_dict(value) if isinstance(value, Mapping) else value
        return node


def _env_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc


def load_config(environ: Optional[Mapping[str, str]] = None) -> ConfigNode:
    """Build the configuration tree from environment variables.

    Args:
        environ: Mapping to read from (defaults to ``os.environ``)

    Returns:
        ConfigNode with ``slack``, ``server``, ``database``, ``app`` and
        ``logging`` sections
    """
    env = os.environ if environ is None else environ

    transport = env.get("SUNSET_TRANSPORT", "http").strip().lower()
    if transport not in TRANSPORTS:
        raise ConfigError(f"SUNSET_TRANSPORT must be one of {', '.join(TRANSPORTS)}, got {transport!r}")

    return ConfigNode.from_dict(
        {
            "slack": {
                "bot_token": env.get("SLACK_BOT_TOKEN"),
                "app_token": env.get("SLACK_APP_TOKEN"),
                "signing_secret": env.get("SLACK_SIGNING_SECRET"),
                "client_id": env.get("SLACK_CLIENT_ID"),
                "client_secret": env.get("SLACK_CLIENT_SECRET"),
                "transport": transport,
            },
            "server": {
                "host": env.get("HOST", "0.0.0.0"),
                "port": _env_int(env, "PORT", 3000),
                "workers": _env_int(env, "SUNSET_HTTP_WORKERS", 4),
            },
            "database": {
                "url": env.get("DATABASE_URL", "sqlite:///sunset_bot.db"),
            },
            "app": {
                "url": env.get("SUNSET_APP_URL", "https://app.beforesunset.ai").rstrip("/"),
                "default_timezone": env.get("SUNSET_DEFAULT_TIMEZONE", "UTC"),
            },
            "logging": {
                "level": env.get("LOG_LEVEL", "INFO"),
                "format": env.get("LOG_FORMAT", "console"),
            },
        }
    )


def require_transport_settings(config: ConfigNode) -> None:
    """Fail fast when the selected transport lacks its credentials."""
    slack = config.slack
    if slack.transport == "socket":
        required = (("SLACK_BOT_TOKEN", slack.bot_token), ("SLACK_APP_TOKEN", slack.app_token))
        missing = [env_name for env_name, value in required if not value]
    else:
        missing = [] if slack.signing_secret else ["SLACK_SIGNING_SECRET"]
    if missing:
        raise ConfigError(f"{slack.transport} transport requires {', '.join(missing)}")


@lru_cache(maxsize=1)
def get_config() -> ConfigNode:
    """Return the process-wide configuration, loaded on first use."""
    return load_config()
