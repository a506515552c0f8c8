"""
Unit Test Fixtures.

Fixtures for unit tests - all external dependencies are mocked.
Unit tests should be fast and isolated, never touching real databases
or the Telegram Bot API.
"""

from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from botbuilder.backend.core.config_schema import FeaturesSchema


# =============================================================================
# Database Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    Mock database session for unit tests.

    Usage:
        def test_repository(mock_db_session: AsyncMock):
            repo = BotRepository(mock_db_session)
    """
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    return session


@pytest.fixture
def mock_db_result() -> MagicMock:
    """
    Mock database query result.

    Usage:
        def test_query(mock_db_session, mock_db_result):
            mock_db_result.scalar_one_or_none.return_value = bot
            mock_db_session.execute.return_value = mock_db_result
    """
    result = MagicMock()
    result.scalar_one_or_none = MagicMock(return_value=None)
    result.scalars = MagicMock()
    result.scalars.return_value.all = MagicMock(return_value=[])
    return result


# =============================================================================
# Settings Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_settings() -> MagicMock:
    """
    Mock secrets.

    Usage:
        with patch("botbuilder.backend.services.bot.get_settings", return_value=mock_settings):
            ...
    """
    settings = MagicMock()
    settings.db_password = "test_pass"
    settings.telegram_webhook_secret = ""
    return settings


@pytest.fixture
def mock_app_config() -> MagicMock:
    """
    Mock YAML application configuration with every Telegram feature enabled.

    Usage:
        with patch("botbuilder.backend.services.bot.get_app_config", return_value=mock_app_config):
            ...
    """
    config = MagicMock()
    config.features = FeaturesSchema(
        api_detailed_errors=True,
        channel_telegram_enabled=True,
        telegram_register_webhook_on_create=True,
        telegram_validate_token_on_create=True,
    )
    return config


# =============================================================================
# Telegram Update Fixtures
# =============================================================================


@pytest.fixture
def telegram_user() -> dict[str, Any]:
    """The `from` object of an incoming update."""
    return {"id": 7001, "is_bot": False, "first_name": "Ann"}


@pytest.fixture
def message_payload(telegram_user: dict[str, Any]):
    """
    Build a raw message update.

    Usage:
        update = Update.model_validate(message_payload("/start"))
    """
    def build(text: str | None = "/start", update_id: int = 1) -> dict[str, Any]:
        message: dict[str, Any] = {
            "message_id": update_id,
            "date": int(datetime(2026, 1, 1).timestamp()),
            "chat": {"id": 4242, "type": "private"},
            "from": telegram_user,
        }
        if text is not None:
            message["text"] = text
        return {"update_id": update_id, "message": message}

    return build


@pytest.fixture
def callback_payload(telegram_user: dict[str, Any]):
    """
    Build a raw callback_query update carrying `data`.

    Usage:
        update = Update.model_validate(callback_payload("faq.hours"))
    """
    def build(data: str, update_id: int = 2, with_message: bool = True) -> dict[str, Any]:
        callback: dict[str, Any] = {
            "id": f"cb-{update_id}",
            "from": telegram_user,
            "chat_instance": "ci-1",
            "data": data,
        }
        if with_message:
            callback["message"] = {
                "message_id": 99,
                "date": int(datetime(2026, 1, 1).timestamp()),
                "chat": {"id": 4242, "type": "private"},
                "text": "previous menu",
            }
        return {"update_id": update_id, "callback_query": callback}

    return build


# =============================================================================
# Logging Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_logger() -> MagicMock:
    """
    Mock logger for testing logging calls.

    Usage:
        with patch("module.logger", mock_logger):
            ...
            mock_logger.warning.assert_called_once()
    """
    logger = MagicMock()
    logger.debug = MagicMock()
    logger.info = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    return logger
