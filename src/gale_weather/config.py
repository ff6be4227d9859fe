from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from gale_weather.data.fetch import DEFAULT_USER_AGENT, REMS_FEED_URL
from gale_weather.refresher import DEFAULT_INTERVAL_S


class ConfigError(ValueError):
    pass


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f'{name} must be a number, got {raw!r}') from exc
    if value <= 0:
        raise ConfigError(f'{name} must be > 0, got {raw!r}')
    return value


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f'{name} must be an integer, got {raw!r}') from exc


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration, read from GALE_WEATHER_* environment variables.
    """
    feed_url: str = REMS_FEED_URL
    http_timeout_s: float = 20.0
    refresh_interval_s: float = DEFAULT_INTERVAL_S
    user_agent: str = DEFAULT_USER_AGENT
    host: str = '0.0.0.0'
    port: int = 3000
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'Settings':
        if env is None:
            env = os.environ
        return cls(
            feed_url=env.get('GALE_WEATHER_FEED_URL') or REMS_FEED_URL,
            http_timeout_s=_env_float(env, 'GALE_WEATHER_HTTP_TIMEOUT_S', 20.0),
            refresh_interval_s=_env_float(env, 'GALE_WEATHER_REFRESH_INTERVAL_S', DEFAULT_INTERVAL_S),
            user_agent=env.get('GALE_WEATHER_USER_AGENT') or DEFAULT_USER_AGENT,
            host=env.get('GALE_WEATHER_HOST') or '0.0.0.0',
            port=_env_int(env, 'GALE_WEATHER_PORT', 3000),
            log_level=(env.get('LOG_LEVEL') or 'INFO').upper(),
        )
