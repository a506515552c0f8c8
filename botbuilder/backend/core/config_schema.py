"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    DatabaseSchema     → database.yaml
    LoggingSchema      → logging.yaml
    FeaturesSchema     → features.yaml
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ServerSchema(_StrictBase):
    host: str
    port: int


class CorsSchema(_StrictBase):
    origins: list[str]


class TimeoutsSchema(_StrictBase):
    database: int
    external_api: int


class MenuTextsSchema(_StrictBase):
    """
    Default texts used by the conversation engine.

    Defaults match the shipped application.yaml so the engine can be
    constructed without loading configuration (e.g. in unit tests).
    """

    welcome_message: str = "Welcome! Please choose an option:"
    not_understood_message: str = "Sorry, I didn't understand that. Please choose from the menu:"
    no_content_message: str = "No content available"
    choose_option_message: str = "Choose an option:"


class TelegramAppSchema(_StrictBase):
    webhook_path: str
    menu: MenuTextsSchema

    @field_validator("webhook_path")
    @classmethod
    def _absolute_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("webhook_path must start with /")
        return value


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    public_base_url: str
    server: ServerSchema
    cors: CorsSchema
    timeouts: TimeoutsSchema
    telegram: TelegramAppSchema

    @field_validator("public_base_url")
    @classmethod
    def _https_only(cls, value: str) -> str:
        # Telegram delivers webhooks over HTTPS only
        if not value.startswith("https://"):
            raise ValueError("public_base_url must be an https:// URL")
        return value


# =============================================================================
# database.yaml
# =============================================================================


class DatabaseSchema(_StrictBase):
    host: str
    port: int
    name: str
    user: str
    pool_size: int
    max_overflow: int
    pool_timeout: int
    pool_recycle: int
    echo: bool


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    format: Literal["json", "console"]
    handlers: HandlersSchema


# =============================================================================
# features.yaml
# =============================================================================


class FeaturesSchema(_StrictBase):
    api_detailed_errors: bool
    channel_telegram_enabled: bool
    telegram_register_webhook_on_create: bool
    telegram_validate_token_on_create: bool
