"""
Configuration Management.

Secrets come from config/.env, everything else from config/settings/*.yaml.
No hardcoded values in code.

Secrets (.env):
    DB_PASSWORD, TELEGRAM_WEBHOOK_SECRET

Settings (YAML):
    application.yaml   - App identity, server, cors, public URL, telegram texts
    database.yaml      - Database connection settings
    logging.yaml       - Logging configuration
    features.yaml      - Feature flags
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from botbuilder.backend.core.config_schema import (
    ApplicationSchema,
    DatabaseSchema,
    FeaturesSchema,
    LoggingSchema,
)

PROJECT_ROOT_MARKER = ".project_root"


def find_project_root(start: Path | None = None) -> Path:
    """
    Walk up from `start` (default: the working directory) to the directory
    holding the .project_root marker.

    Raises:
        RuntimeError: If no parent directory has the marker
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        if (directory / PROJECT_ROOT_MARKER).exists():
            return directory
    raise RuntimeError("Project root not found. Ensure .project_root file exists.")


def load_yaml_config(filename: str) -> dict[str, Any]:
    """
    Load one file from config/settings/.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    config_path = find_project_root() / "config" / "settings" / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets loaded from config/.env (or the environment)."""

    db_password: str
    # Empty disables X-Telegram-Bot-Api-Secret-Token verification
    telegram_webhook_secret: str = ""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_section(schema_cls: type[BaseModel], filename: str) -> Any:
    raw = load_yaml_config(filename)
    try:
        return schema_cls.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {filename}:\n{e}") from e


class AppConfig:
    """
    The four YAML files, each validated against its schema at load time.

    A missing key, a wrong type or an unknown key fails here, at startup,
    with the file name in the message.
    """

    SECTIONS: dict[str, tuple[type[BaseModel], str]] = {
        "application": (ApplicationSchema, "application.yaml"),
        "database": (DatabaseSchema, "database.yaml"),
        "logging": (LoggingSchema, "logging.yaml"),
        "features": (FeaturesSchema, "features.yaml"),
    }

    def __init__(self) -> None:
        self._sections = {
            name: _load_section(schema_cls, filename)
            for name, (schema_cls, filename) in self.SECTIONS.items()
        }

    @property
    def application(self) -> ApplicationSchema:
        return self._sections["application"]

    @property
    def database(self) -> DatabaseSchema:
        return self._sections["database"]

    @property
    def logging(self) -> LoggingSchema:
        return self._sections["logging"]

    @property
    def features(self) -> FeaturesSchema:
        return self._sections["features"]


@lru_cache
def get_settings() -> Settings:
    """Get cached secrets instance. Resolves .env path from project root."""
    env_path = find_project_root() / "config" / ".env"
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


def get_database_url(async_driver: bool = True) -> str:
    """
    Construct database URL from YAML config and secrets.

    Args:
        async_driver: Use asyncpg driver if True, psycopg2 if False.
    """
    db = get_app_config().database
    password = get_settings().db_password
    driver = "postgresql+asyncpg" if async_driver else "postgresql"
    return f"{driver}://{db.user}:{password}@{db.host}:{db.port}/{db.name}"


def get_webhook_url(token: str) -> str:
    """
    Build the public webhook URL Telegram should deliver a bot's updates to.

    Args:
        token: Bot token; the webhook path is keyed by it.

    Returns:
        Absolute URL, e.g. https://example.com/api/webhook/123:abc
    """
    app = get_app_config().application
    base_url = app.public_base_url.rstrip("/")
    return f"{base_url}{app.telegram.webhook_path.rstrip('/')}/{token}"
