# file: repute/config.py
"""
Configuration loader.

Precedence (highest to lowest):
1. OS environment variables
2. `.env` values
3. YAML config file values
4. Code defaults
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import dotenv_values
from pydantic import BaseModel, Field
from pydantic import ConfigDict as PydanticConfigDict

from repute.net.http import HttpClientConfig
from repute.pool import BUFFER_BASE_SIZE
from repute.template import (
    DEFAULT_APPLICATION,
    DEFAULT_SCHEME,
    DISCOVERY_TEMPLATE,
    MAX_URL_LENGTH,
)


class ReputeSettings(BaseModel):
    model_config = PydanticConfigDict(extra="ignore")

    # General
    log_level: str = "INFO"
    json_logging: bool = False

    # Protocol
    scheme: str = DEFAULT_SCHEME
    application: str = DEFAULT_APPLICATION
    discovery_template: str = DISCOVERY_TEMPLATE
    max_url_length: int = Field(default=MAX_URL_LENGTH, gt=0)

    # HTTP
    http_timeout_seconds: float | None = None
    http_follow_redirects: bool = True
    http_user_agent: str = "repute/0.1"

    # Pool
    buffer_base_size: int = Field(default=BUFFER_BASE_SIZE, gt=0)
    pool_max_idle: int | None = Field(default=None, ge=0)

    def http_config(self) -> HttpClientConfig:
        return HttpClientConfig(
            timeout_seconds=self.http_timeout_seconds,
            follow_redirects=self.http_follow_redirects,
            user_agent=self.http_user_agent,
        )


_ENV_MAP: dict[str, str] = {
    "REPUTE_LOG_LEVEL": "log_level",
    "REPUTE_JSON_LOGGING": "json_logging",
    "REPUTE_SCHEME": "scheme",
    "REPUTE_APPLICATION": "application",
    "REPUTE_DISCOVERY_TEMPLATE": "discovery_template",
    "REPUTE_MAX_URL_LENGTH": "max_url_length",
    "REPUTE_HTTP_TIMEOUT_SECONDS": "http_timeout_seconds",
    "REPUTE_HTTP_FOLLOW_REDIRECTS": "http_follow_redirects",
    "REPUTE_HTTP_USER_AGENT": "http_user_agent",
    "REPUTE_BUFFER_BASE_SIZE": "buffer_base_size",
    "REPUTE_POOL_MAX_IDLE": "pool_max_idle",
}


def _read_yaml(path: Path) -> dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    return raw if isinstance(raw, dict) else {}


def _read_dotenv(path: Path) -> dict[str, str]:
    # dotenv_values does not mutate os.environ; it just parses the file.
    values = dotenv_values(path)
    out: dict[str, str] = {}
    for k, v in values.items():
        if isinstance(k, str) and isinstance(v, str):
            out[k] = v
    return out


def _overlay_env(target: dict[str, Any], env: dict[str, str]) -> None:
    for env_key, field_name in _ENV_MAP.items():
        if env_key in env:
            target[field_name] = env[env_key]


def load_settings(
    *, yaml_path: Path | None = None, env_path: Path | None = None
) -> ReputeSettings:
    """
    Load settings from YAML and .env, with OS env overrides.

    Args:
        yaml_path: Optional YAML config path.
        env_path: Optional .env path (default: `.env` if present).
    """

    data: dict[str, Any] = {}

    if env_path is None:
        maybe = Path(".env")
        env_path = maybe if maybe.exists() else None

    dotenv = _read_dotenv(env_path) if env_path is not None and env_path.exists() else {}

    # YAML path resolution:
    # - explicit yaml_path wins
    # - else REPUTE_CONFIG from OS env wins
    # - else REPUTE_CONFIG from .env
    if yaml_path is None:
        cfg = os.environ.get("REPUTE_CONFIG") or dotenv.get("REPUTE_CONFIG")
        if cfg:
            yaml_path = Path(cfg)

    if yaml_path is not None and yaml_path.exists():
        data.update(_read_yaml(yaml_path))

    if dotenv:
        _overlay_env(data, dotenv)

    os_env: dict[str, str] = {k: v for k, v in os.environ.items() if k in _ENV_MAP}
    _overlay_env(data, os_env)

    return ReputeSettings.model_validate(data)
