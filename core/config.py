"""Configuration loader -- reads config.yaml + .env, validates with Pydantic.

Resolves ${ENV_VAR} references in YAML values from environment variables.
Fails fast with ConfigInvalid if required config is missing, before any
network or state I/O happens.
"""

from __future__ import annotations

import logging
import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from core.duration import parse_duration
from core.errors import ConfigInvalid
from core.models.alerts import AlertCondition

logger = logging.getLogger(__name__)

DEFAULT_STATE_FILENAME = "state.json"

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ${ENV_VAR} references in config values."""
    if isinstance(value, str):
        def replacer(match: re.Match) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if not env_value:
                logger.warning("Environment variable %s not set", var_name)
                return match.group(0)  # leave unresolved
            return env_value
        return _ENV_PATTERN.sub(replacer, value)
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# Config models (Pydantic)
# ---------------------------------------------------------------------------

class NtfyConfig(BaseModel):
    server: str = Field(min_length=1)
    topic: str = Field(min_length=1)
    username: str = ""
    password: str = ""
    token: str = ""
    priority: int = Field(default=3, ge=1, le=5)


class StateConfig(BaseModel):
    path: str = ""
    retention: str = "7d"

    @field_validator("retention")
    @classmethod
    def _check_retention(cls, value: str) -> str:
        parse_duration(value)
        return value

    @property
    def retention_window(self) -> timedelta:
        return parse_duration(self.retention)


class LoggingConfig(BaseModel):
    level: str = "INFO"


class AlertConfig(BaseModel):
    """All conditions watched for a single ticker."""

    ticker: str
    name: str = ""
    conditions: list[AlertCondition] = Field(min_length=1)

    @field_validator("ticker")
    @classmethod
    def _normalize_ticker(cls, value: str) -> str:
        ticker = value.strip().upper()
        if not ticker:
            raise ValueError("ticker is required")
        return ticker

    @property
    def display_name(self) -> str:
        return self.name or self.ticker


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ntfy: NtfyConfig
    state: StateConfig = Field(default_factory=StateConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    alerts: list[AlertConfig] = Field(min_length=1)

    def unique_tickers(self) -> list[str]:
        """Deduplicated tickers in configuration order."""
        seen: set[str] = set()
        tickers: list[str] = []
        for alert in self.alerts:
            if alert.ticker not in seen:
                seen.add(alert.ticker)
                tickers.append(alert.ticker)
        return tickers

    def state_path(self, config_path: str | Path) -> Path:
        """Where the state file lives when no --state flag is given."""
        if self.state.path:
            return Path(self.state.path).expanduser()
        return Path(config_path).parent / DEFAULT_STATE_FILENAME


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        parts.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(parts)


def load_config(
    config_path: str | Path = "config.yaml",
    env_path: str | Path | None = None,
) -> AppConfig:
    """Load configuration from YAML + .env files.

    1. Load .env (default: next to the config file) into the environment
    2. Load config.yaml and resolve ${ENV_VAR} references
    3. Validate against Pydantic models
    """
    config_path = Path(config_path)
    if env_path is None:
        env_path = config_path.parent / ".env"
    env_path = Path(env_path)

    if env_path.exists():
        load_dotenv(env_path)
        logger.info("Loaded environment from %s", env_path)
    else:
        logger.debug("No .env file at %s", env_path)

    try:
        with open(config_path) as f:
            raw_config = yaml.safe_load(f) or {}
    except OSError as exc:
        raise ConfigInvalid(f"Cannot read config file {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigInvalid(f"Cannot parse config file {config_path}: {exc}") from exc

    if not isinstance(raw_config, dict):
        raise ConfigInvalid(f"Config file {config_path} must contain a mapping")

    resolved = _resolve_env_vars(raw_config)

    try:
        config = AppConfig(**resolved)
    except ValidationError as exc:
        raise ConfigInvalid(_format_validation_error(exc)) from exc

    logger.info("Loaded config from %s (%d alert groups)", config_path, len(config.alerts))
    return config
