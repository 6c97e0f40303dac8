"""
Configuration Management.

Loads secrets from config/.env and settings from config/settings/*.yaml.
No hardcoded values in code. All configuration comes from these sources.

Secrets (.env):
    JWT_SECRET, GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET,
    TELEGRAM_BOT_TOKEN, TELEGRAM_WEBHOOK_SECRET, NGROK_AUTHTOKEN

Settings (YAML):
    application.yaml   - App identity, server, cors, frontend URL, pagination
    google.yaml        - OAuth endpoints, scopes, spreadsheet naming
    telegram.yaml      - Bot username, webhook path/URL, bot commands
    logging.yaml       - Logging configuration
    features.yaml      - Feature flags
    security.yaml      - JWT session settings and rate limits
    concurrency.yaml   - Thread pool and semaphore sizes
    resilience.yaml    - Circuit breaker, retry and read-after-write delays
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from budget_manager.backend.core.config_schema import (
    ApplicationSchema,
    ConcurrencySchema,
    FeaturesSchema,
    GoogleSchema,
    LoggingSchema,
    ResilienceSchema,
    SecuritySchema,
    TelegramSchema,
)


def find_project_root() -> Path:
    """Find project root by looking for .project_root marker file."""
    current = Path.cwd()
    while current != current.parent:
        if (current / ".project_root").exists():
            return current
        current = current.parent
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def validate_project_root() -> Path:
    """
    Validate that the project root can be found.

    Raises SystemExit with a clear message if .project_root is not found.
    Use this in entry scripts before any configuration loading.
    """
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load a YAML configuration file from config/settings/."""
    project_root = find_project_root()
    config_path = project_root / "config" / "settings" / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets loaded from config/.env. Only passwords, tokens, and keys."""

    jwt_secret: str
    google_client_id: str
    google_client_secret: str
    telegram_bot_token: str = ""
    telegram_webhook_secret: str = ""
    ngrok_authtoken: str = ""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_validated(schema_cls: type, filename: str) -> Any:
    """Load YAML and validate against schema. Returns typed model instance."""
    raw = load_yaml_config(filename)
    try:
        return schema_cls(**raw)
    except ValidationError as e:
        raise ValueError(
            f"Invalid configuration in {filename}:\n{e}"
        ) from e


class AppConfig:
    """
    Application configuration loaded from YAML files.

    Each YAML file is validated against its Pydantic schema at load time.
    Missing keys, wrong types, or unknown fields raise a clear error
    immediately instead of causing cryptic KeyErrors later.

    Properties return typed Pydantic model instances with attribute access.
    """

    def __init__(self) -> None:
        self._application = _load_validated(ApplicationSchema, "application.yaml")
        self._google = _load_validated(GoogleSchema, "google.yaml")
        self._telegram = _load_validated(TelegramSchema, "telegram.yaml")
        self._logging = _load_validated(LoggingSchema, "logging.yaml")
        self._features = _load_validated(FeaturesSchema, "features.yaml")
        self._security = _load_validated(SecuritySchema, "security.yaml")
        self._concurrency = _load_validated(ConcurrencySchema, "concurrency.yaml")
        self._resilience = _load_validated(ResilienceSchema, "resilience.yaml")

    @property
    def application(self) -> ApplicationSchema:
        """Application settings."""
        return self._application

    @property
    def google(self) -> GoogleSchema:
        """Google OAuth and spreadsheet settings."""
        return self._google

    @property
    def telegram(self) -> TelegramSchema:
        """Telegram bot settings."""
        return self._telegram

    @property
    def logging(self) -> LoggingSchema:
        """Logging settings."""
        return self._logging

    @property
    def features(self) -> FeaturesSchema:
        """Feature flags."""
        return self._features

    @property
    def security(self) -> SecuritySchema:
        """Security settings."""
        return self._security

    @property
    def concurrency(self) -> ConcurrencySchema:
        """Concurrency settings (pools, semaphores)."""
        return self._concurrency

    @property
    def resilience(self) -> ResilienceSchema:
        """Resilience settings (circuit breakers, retries)."""
        return self._resilience


@lru_cache
def get_settings() -> Settings:
    """Get cached secrets instance. Resolves .env path from project root."""
    env_path = find_project_root() / "config" / ".env"
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


def get_server_base_url() -> tuple[str, float]:
    """
    Get the backend server base URL and timeout from application.yaml.

    Returns:
        Tuple of (base_url, timeout_seconds).
    """
    app = get_app_config().application
    server = app.server
    base_url = f"http://{server.host}:{server.port}"
    timeout = float(app.timeouts.external_api)
    return base_url, timeout
