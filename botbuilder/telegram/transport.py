"""
Telegram Transport.

Outbound calls to the Telegram Bot API. The conversation engine and the bot
service only talk to Telegram through the TelegramTransport interface, so
tests can pass a double that records payloads instead of sending them.

Every registered bot has its own token, so calls take the token explicitly
rather than relying on a single process-wide Bot instance.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from aiogram import Bot
from aiogram.types import InlineKeyboardMarkup

from botbuilder.backend.core.logging import get_logger

logger = get_logger(__name__)

ALLOWED_UPDATES = ["message", "callback_query"]


def token_label(token: str) -> str:
    """Loggable form of a bot token: the numeric bot id before the colon."""
    bot_id, _, _ = token.partition(":")
    return bot_id or "unknown"


@dataclass(frozen=True)
class BotInfo:
    """Identity of a bot as reported by getMe."""

    id: int
    username: str
    first_name: str


class TelegramTransport(ABC):
    """
    Contract for outbound Telegram calls.

    Delivery methods never raise on API or network failure: they log and
    return False (or None), and the caller decides what to do next.
    """

    @abstractmethod
    async def send_text(
        self,
        token: str,
        chat_id: int,
        text: str,
        keyboard: InlineKeyboardMarkup | None = None,
    ) -> bool:
        """Send a text message, optionally with an inline keyboard."""
        ...

    @abstractmethod
    async def send_image(
        self,
        token: str,
        chat_id: int,
        url: str,
        caption: str | None = None,
    ) -> bool:
        """Send a photo by URL with an optional caption."""
        ...

    @abstractmethod
    async def acknowledge_callback(
        self,
        token: str,
        callback_id: str,
        text: str | None = None,
    ) -> bool:
        """Answer a callback query so the client stops its loading indicator."""
        ...

    @abstractmethod
    async def get_bot_info(self, token: str) -> BotInfo | None:
        """Validate a token with getMe; None when Telegram rejects it."""
        ...

    @abstractmethod
    async def set_webhook(
        self,
        token: str,
        url: str,
        secret_token: str | None = None,
    ) -> bool:
        """Point the bot's updates at `url`."""
        ...


class AiogramTransport(TelegramTransport):
    """
    TelegramTransport backed by aiogram.

    A short-lived Bot (and HTTP session) is opened per call; webhook
    handling is one request per update, so there is nothing to reuse.
    """

    async def send_text(
        self,
        token: str,
        chat_id: int,
        text: str,
        keyboard: InlineKeyboardMarkup | None = None,
    ) -> bool:
        try:
            async with Bot(token=token) as bot:
                await bot.send_message(chat_id=chat_id, text=text, reply_markup=keyboard)
            return True
        except Exception as e:
            logger.error(
                "Failed to send Telegram message",
                extra={"bot": token_label(token), "chat_id": chat_id, "error": str(e)},
            )
            return False

    async def send_image(
        self,
        token: str,
        chat_id: int,
        url: str,
        caption: str | None = None,
    ) -> bool:
        try:
            async with Bot(token=token) as bot:
                await bot.send_photo(chat_id=chat_id, photo=url, caption=caption)
            return True
        except Exception as e:
            logger.error(
                "Failed to send Telegram photo",
                extra={"bot": token_label(token), "chat_id": chat_id, "error": str(e)},
            )
            return False

    async def acknowledge_callback(
        self,
        token: str,
        callback_id: str,
        text: str | None = None,
    ) -> bool:
        try:
            async with Bot(token=token) as bot:
                await bot.answer_callback_query(callback_query_id=callback_id, text=text)
            return True
        except Exception as e:
            logger.warning(
                "Failed to answer callback query",
                extra={"bot": token_label(token), "error": str(e)},
            )
            return False

    async def get_bot_info(self, token: str) -> BotInfo | None:
        try:
            async with Bot(token=token) as bot:
                me = await bot.get_me()
        except Exception as e:
            logger.warning(
                "Bot token validation failed",
                extra={"bot": token_label(token), "error": str(e)},
            )
            return None

        return BotInfo(id=me.id, username=me.username or "", first_name=me.first_name)

    async def set_webhook(
        self,
        token: str,
        url: str,
        secret_token: str | None = None,
    ) -> bool:
        try:
            async with Bot(token=token) as bot:
                await bot.set_webhook(
                    url=url,
                    secret_token=secret_token or None,
                    allowed_updates=ALLOWED_UPDATES,
                )
        except Exception as e:
            logger.error(
                "Webhook setup failed",
                extra={"bot": token_label(token), "error": str(e)},
            )
            return False

        logger.info("Webhook configured", extra={"bot": token_label(token)})
        return True
