"""
Update Dispatcher.

Handles one Telegram update for one bot:

    classify update -> select reply -> send via transport -> record

Nothing is remembered between updates. Where the user is in the menu is
carried entirely by the callback_data of the button they pressed.

Reply selection:
    plain message               -> welcome text + top-level keyboard
    callback "main_menu"        -> welcome text + top-level keyboard
    callback, unknown address   -> "didn't understand" + top-level keyboard
    callback, text item         -> content + [Main Menu]
    callback, image item        -> photo with content as caption, no keyboard
    callback, submenu           -> content + children keyboard + [Back][Main Menu]
"""

from dataclasses import dataclass

from aiogram.types import CallbackQuery, InlineKeyboardMarkup, Message, Update

from botbuilder.backend.core.config_schema import MenuTextsSchema
from botbuilder.backend.core.logging import get_logger, log_with_source
from botbuilder.telegram.menu.address import is_root_address
from botbuilder.telegram.menu.keyboard import build_main_menu_keyboard, build_menu_keyboard
from botbuilder.telegram.menu.resolver import resolve
from botbuilder.telegram.menu.tree import NodeKind
from botbuilder.telegram.store import BotRecord, ConversationStore
from botbuilder.telegram.transport import TelegramTransport

logger = get_logger(__name__)


@dataclass(frozen=True)
class TextReply:
    """A text message, with a keyboard unless the menu is empty."""

    text: str
    keyboard: InlineKeyboardMarkup | None = None


@dataclass(frozen=True)
class ImageReply:
    """A photo sent by URL."""

    url: str
    caption: str | None = None


Reply = TextReply | ImageReply


def reply_text(reply: Reply) -> str:
    """The text a reply shows to the user, as stored in the interaction log."""
    if isinstance(reply, ImageReply):
        return reply.caption or ""
    return reply.text


class ReplySelector:
    """Pure mapping from (bot, update input) to the reply to send."""

    def __init__(self, texts: MenuTextsSchema | None = None) -> None:
        self.texts = texts or MenuTextsSchema()

    def welcome(self, bot: BotRecord) -> TextReply:
        """Welcome text with the top-level keyboard (none for an empty menu)."""
        return TextReply(
            text=bot.welcome_message or self.texts.welcome_message,
            keyboard=build_menu_keyboard(bot.menu.nodes),
        )

    def for_message(self, bot: BotRecord, text: str) -> TextReply:
        """
        Reply to a plain message.

        There is no free-text matching: /start and anything else the user
        types both bring back the top-level menu.
        """
        return self.welcome(bot)

    def for_callback(self, bot: BotRecord, data: str) -> Reply:
        """Reply to a button press carrying `data` as its address."""
        if is_root_address(data):
            return self.welcome(bot)

        node = resolve(bot.menu, data)
        if node is None:
            return TextReply(
                text=self.texts.not_understood_message,
                keyboard=build_menu_keyboard(bot.menu.nodes),
            )

        if node.has_image:
            return ImageReply(url=node.image_url, caption=node.content)

        if node.is_navigable:
            return TextReply(
                text=node.content or self.texts.choose_option_message,
                keyboard=build_menu_keyboard(node.children, data),
            )

        if node.kind is not NodeKind.TEXT:
            logger.warning(
                "Menu item is incomplete, answering with fallback",
                extra={"bot_id": bot.id, "address": data, "kind": node.kind.value},
            )
            return TextReply(text=self.texts.no_content_message, keyboard=build_main_menu_keyboard())

        return TextReply(
            text=node.content or self.texts.no_content_message,
            keyboard=build_main_menu_keyboard(),
        )


class UpdateDispatcher:
    """
    Runs one update through the menu engine.

    Args:
        transport: Outbound Telegram calls
        store: Interaction log and analytics
        texts: Default texts (welcome, fallbacks)
    """

    def __init__(
        self,
        transport: TelegramTransport,
        store: ConversationStore,
        texts: MenuTextsSchema | None = None,
    ) -> None:
        self.transport = transport
        self.store = store
        self.selector = ReplySelector(texts)

    async def dispatch(self, bot: BotRecord, update: Update) -> None:
        """Handle a message or callback query; other update types are ignored."""
        if update.message is not None:
            await self._on_message(bot, update.message)
        elif update.callback_query is not None:
            await self._on_callback(bot, update.callback_query)
        else:
            log_with_source(
                logger, "telegram", "debug", "Ignoring unsupported update",
                bot_id=bot.id, update_id=update.update_id,
            )

    async def _on_message(self, bot: BotRecord, message: Message) -> None:
        text = message.text or ""
        user = message.from_user
        user_id = str(user.id if user is not None else message.chat.id)

        reply = self.selector.for_message(bot, text)
        delivered = await self._deliver(bot, message.chat.id, reply)
        await self._record(bot, user_id, text, reply, delivered)

    async def _on_callback(self, bot: BotRecord, callback: CallbackQuery) -> None:
        data = callback.data or ""

        # Must be answered even if the reply below fails
        await self.transport.acknowledge_callback(bot.token, callback.id)

        chat_id = callback.message.chat.id if callback.message is not None else callback.from_user.id
        reply = self.selector.for_callback(bot, data)
        delivered = await self._deliver(bot, chat_id, reply)
        await self._record(bot, str(callback.from_user.id), f"Button: {data}", reply, delivered)

    async def _deliver(self, bot: BotRecord, chat_id: int, reply: Reply) -> bool:
        if isinstance(reply, ImageReply):
            delivered = await self.transport.send_image(bot.token, chat_id, reply.url, reply.caption)
        else:
            delivered = await self.transport.send_text(bot.token, chat_id, reply.text, reply.keyboard)

        log_with_source(
            logger, "telegram", "info" if delivered else "warning",
            "Menu reply sent" if delivered else "Menu reply not delivered",
            bot_id=bot.id, chat_id=chat_id, reply_type=type(reply).__name__,
        )
        return delivered

    async def _record(
        self,
        bot: BotRecord,
        user_id: str,
        input_text: str,
        reply: Reply,
        delivered: bool,
    ) -> None:
        """Write the interaction row and counters; failures are logged only."""
        try:
            new_user = await self.store.is_new_user_today(bot.id, user_id)
            await self.store.append_interaction(bot.id, user_id, input_text, reply_text(reply))
            await self.store.increment_analytics(
                bot.id,
                messages_received=1,
                messages_sent=1 if delivered else 0,
                active_users=1 if new_user else 0,
            )
        except Exception as e:
            logger.error(
                "Failed to record interaction",
                extra={"bot_id": bot.id, "error": str(e)},
                exc_info=True,
            )
