"""
Configuration management.

Uses Pydantic Settings for environment variable handling and validation.
An optional config.yaml supplies defaults; environment variables override it.
"""

import json
import os
import sys
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Dict, List, Optional

import structlog
import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic_settings.exceptions import SettingsError

logger = structlog.get_logger(__name__)

REQUIRED_ENV_VARS = ("N8N_WEBHOOK_URL", "JWT_SECRET")

# config.yaml next to pyproject.toml in a source checkout
PROJECT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config.yaml"


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        # Look for config.yaml in common locations
        possible_paths = [
            "config.yaml",  # Current directory
            str(PROJECT_CONFIG_PATH),
        ]

        for path in possible_paths:
            if os.path.exists(path):
                config_path = path
                break
        else:
            return {}

    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            return yaml.safe_load(f) or {}
    return {}


def _parse_list(v: Any) -> Any:
    """Accept JSON arrays or comma-separated strings for list settings."""
    if isinstance(v, str):
        stripped = v.strip()
        if stripped.startswith("["):
            try:
                parsed = json.loads(stripped)
            except json.JSONDecodeError:
                return [stripped]
            return parsed if isinstance(parsed, list) else [stripped]
        return [item.strip() for item in stripped.split(",") if item.strip()]
    return v


class RateLimitSettings(BaseSettings):
    """Admission control for the contact endpoint."""

    max_requests: int = Field(default=3, ge=1, description="Requests admitted per window per client")
    window_seconds: float = Field(default=60, gt=0, description="Window length in seconds")

    model_config = SettingsConfigDict(env_prefix="RATE_LIMIT_")


class WebhookSettings(BaseSettings):
    """Outbound webhook delivery."""

    timeout_seconds: float = Field(default=10, gt=0, description="Total timeout for one delivery attempt")

    model_config = SettingsConfigDict(env_prefix="WEBHOOK_")


class CorsSettings(BaseSettings):
    """CORS policy for browser callers."""

    allow_origins: Annotated[List[str], NoDecode] = Field(default=["https://www.2am-connect.com"])
    allow_credentials: bool = Field(default=True)
    allow_methods: Annotated[List[str], NoDecode] = Field(default=["GET", "POST", "OPTIONS"])
    allow_headers: Annotated[List[str], NoDecode] = Field(default=["Content-Type", "Accept"])

    @field_validator("allow_origins", "allow_methods", "allow_headers", mode="before")
    def parse_lists(cls, v: Any) -> Any:
        return _parse_list(v)

    model_config = SettingsConfigDict(env_prefix="CORS_")


class Settings(BaseSettings):
    """Main application settings."""

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Log level")

    # Downstream and signing
    n8n_webhook_url: str = Field(min_length=1, description="Downstream webhook URL")
    jwt_secret: str = Field(min_length=1, description="HS256 signing secret for webhook credentials")

    # Component settings
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)
    cors: CorsSettings = Field(default_factory=CorsSettings)

    @field_validator("n8n_webhook_url", "jwt_secret", mode="before")
    def strip_required(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v

    model_config = SettingsConfigDict(case_sensitive=False)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance with config file and env support."""
    config_data = load_config_file()

    # Config file provides defaults, env vars override
    if config_data:
        _set_env_from_config(config_data)

    return Settings()


def _set_env_from_config(config_data: Dict[str, Any]) -> None:
    """Set environment variables from config file if not already set."""
    mappings = {
        ("server", "host"): "HOST",
        ("server", "port"): "PORT",
        ("server", "debug"): "DEBUG",
        ("server", "log_level"): "LOG_LEVEL",
        ("webhook", "url"): "N8N_WEBHOOK_URL",
        ("webhook", "timeout_seconds"): "WEBHOOK_TIMEOUT_SECONDS",
        ("security", "jwt_secret"): "JWT_SECRET",
        ("rate_limit", "max_requests"): "RATE_LIMIT_MAX_REQUESTS",
        ("rate_limit", "window_seconds"): "RATE_LIMIT_WINDOW_SECONDS",
        ("cors", "allow_credentials"): "CORS_ALLOW_CREDENTIALS",
    }

    for (section, key), env_var in mappings.items():
        if env_var not in os.environ:
            value = (config_data.get(section) or {}).get(key)
            if value is not None:
                os.environ[env_var] = str(value)

    # Lists are passed through as JSON
    for key in ("allow_origins", "allow_methods", "allow_headers"):
        env_var = f"CORS_{key.upper()}"
        if env_var not in os.environ:
            value = (config_data.get("cors") or {}).get(key)
            if value:
                os.environ[env_var] = json.dumps(value)


def load_settings_or_exit() -> Settings:
    """
    Load settings at startup, exiting the process when required values are missing.

    A missing webhook URL or signing secret is fatal: the relay must not
    start without them.
    """
    try:
        return get_settings()
    except ValidationError as e:
        missing = sorted({str(err["loc"][0]).upper() for err in e.errors() if err.get("loc")})
        logger.error(
            "Missing required environment variables",
            required=list(REQUIRED_ENV_VARS),
            invalid=missing,
        )
        sys.exit(1)
    except SettingsError as e:
        logger.error("Unreadable configuration value", error=str(e))
        sys.exit(1)


def reload_settings() -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
