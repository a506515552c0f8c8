"""
Unit Tests for Bot Service.

Tests the BotService business logic with mocked repositories and a
recording Telegram transport.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from botbuilder.backend.core.exceptions import ConflictError, InvalidMenuError, NotFoundError
from botbuilder.backend.schemas.bot import BotCreate, BotSettings, BotUpdate
from botbuilder.backend.services.bot import BotService, fallback_username
from botbuilder.telegram.transport import BotInfo

TOKEN = "123456:AAtest"
WEBHOOK_URL = "https://bots.example.com/api/webhook/123456:AAtest"


@pytest.fixture
def patched_config(mock_app_config, mock_settings):
    """Patch configuration lookups used by the service."""
    with patch("botbuilder.backend.services.bot.get_app_config", return_value=mock_app_config), \
         patch("botbuilder.backend.services.bot.get_settings", return_value=mock_settings), \
         patch("botbuilder.backend.services.bot.get_webhook_url", side_effect=lambda t: f"https://bots.example.com/api/webhook/{t}"):
        yield mock_app_config


def _service(transport) -> BotService:
    service = BotService(AsyncMock(), transport)
    service.repo = MagicMock()
    service.repo.get_by_token = AsyncMock(return_value=None)
    service.repo.create = AsyncMock(side_effect=lambda **kwargs: MagicMock(id="bot-1", **kwargs))
    service.repo.get_by_id = AsyncMock()
    service.repo.update = AsyncMock(side_effect=lambda bot_id, **kwargs: MagicMock(id=bot_id, **kwargs))
    service.repo.delete = AsyncMock()
    return service


class TestFallbackUsername:
    """Tests for generated usernames."""

    def test_lowercases_and_joins_words(self):
        assert fallback_username("My  Support Bot") == "my_support_bot_bot"

    def test_strips_edges(self):
        assert fallback_username("  Shop ") == "shop_bot"


class TestCreateBot:
    """Tests for bot registration."""

    async def test_uses_telegram_username_and_sets_webhook(self, patched_config, make_transport):
        transport = make_transport(bot_info=BotInfo(id=123456, username="support_bot", first_name="Support"))
        service = _service(transport)

        await service.create_bot(BotCreate(name="Support", token=TOKEN))

        service.repo.create.assert_awaited_once_with(
            name="Support",
            username="support_bot",
            token=TOKEN,
            description=None,
            menu_structure={},
            settings={"webhook_url": WEBHOOK_URL},
        )
        assert transport.calls_to("set_webhook") == [
            {"token": TOKEN, "url": WEBHOOK_URL, "secret_token": None},
        ]

    async def test_rejected_token_falls_back_to_generated_username(self, patched_config, transport):
        service = _service(transport)

        await service.create_bot(BotCreate(name="Pizza Place", token=TOKEN))

        assert service.repo.create.await_args.kwargs["username"] == "pizza_place_bot"

    async def test_webhook_failure_does_not_block_creation(self, patched_config, make_transport):
        service = _service(make_transport(webhook_ok=False))

        bot = await service.create_bot(BotCreate(name="Support", token=TOKEN))

        assert bot.id == "bot-1"

    async def test_keeps_given_settings(self, patched_config, transport):
        service = _service(transport)

        await service.create_bot(
            BotCreate(name="Support", token=TOKEN, settings=BotSettings(welcome_message="Hi"))
        )

        assert service.repo.create.await_args.kwargs["settings"] == {
            "welcome_message": "Hi",
            "webhook_url": WEBHOOK_URL,
        }

    async def test_duplicate_token_is_conflict(self, patched_config, transport):
        service = _service(transport)
        service.repo.get_by_token.return_value = MagicMock(id="existing")

        with pytest.raises(ConflictError):
            await service.create_bot(BotCreate(name="Support", token=TOKEN))

        assert transport.calls == []

    async def test_feature_flags_skip_telegram_calls(self, patched_config, transport):
        patched_config.features = patched_config.features.model_copy(
            update={
                "telegram_validate_token_on_create": False,
                "telegram_register_webhook_on_create": False,
            }
        )
        service = _service(transport)

        await service.create_bot(BotCreate(name="Offline", token=TOKEN))

        assert transport.calls == []
        assert service.repo.create.await_args.kwargs["username"] == "offline_bot"


class TestUpdateBot:
    """Tests for metadata updates."""

    async def test_no_fields_returns_existing(self, transport):
        service = _service(transport)

        await service.update_bot("bot-1", BotUpdate())

        service.repo.get_by_id.assert_awaited_once_with("bot-1")
        service.repo.update.assert_not_called()

    async def test_settings_are_merged(self, transport):
        service = _service(transport)
        service.repo.get_by_id.return_value = MagicMock(
            settings={"webhook_url": WEBHOOK_URL, "welcome_message": "Old"},
        )

        await service.update_bot("bot-1", BotUpdate(settings=BotSettings(welcome_message="New")))

        service.repo.update.assert_awaited_once_with(
            "bot-1",
            settings={"webhook_url": WEBHOOK_URL, "welcome_message": "New"},
        )

    async def test_not_found(self, transport):
        service = _service(transport)
        service.repo.update.side_effect = NotFoundError("Bot not found")

        with pytest.raises(NotFoundError):
            await service.update_bot("missing", BotUpdate(name="X"))


class TestReplaceMenu:
    """Tests for saving menu trees."""

    async def test_valid_menu_is_stored(self, transport, faq_menu):
        service = _service(transport)

        await service.replace_menu("bot-1", faq_menu)

        service.repo.update.assert_awaited_once_with("bot-1", menu_structure=faq_menu)

    async def test_invalid_menu_rejected_before_write(self, transport):
        service = _service(transport)

        with pytest.raises(InvalidMenuError) as exc_info:
            await service.replace_menu("bot-1", {"a.b": {"text": "A", "type": "text"}})

        assert exc_info.value.details["menu_errors"] == ["a.b: item id must not contain '.'"]
        service.repo.update.assert_not_called()

    async def test_unknown_bot(self, transport, faq_menu):
        service = _service(transport)
        service.repo.get_by_id.side_effect = NotFoundError("Bot not found")

        with pytest.raises(NotFoundError):
            await service.replace_menu("missing", faq_menu)


class TestRegisterWebhooks:
    """Tests for bulk webhook registration."""

    async def test_registers_active_bots_only(self, patched_config, transport):
        active = MagicMock(id="b1", token="1:a", username="one_bot", is_active=True, settings={})
        inactive = MagicMock(id="b2", token="2:b", username="two_bot", is_active=False, settings={})
        service = _service(transport)
        service.repo.get_recent = AsyncMock(side_effect=[[active, inactive], []])

        results = await service.register_webhooks()

        assert results == {"one_bot": True}
        assert [call["token"] for call in transport.calls_to("set_webhook")] == ["1:a"]
        service.repo.update.assert_awaited_once_with(
            "b1",
            settings={"webhook_url": "https://bots.example.com/api/webhook/1:a"},
        )
