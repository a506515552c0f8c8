"""
Conversation Store.

SQL implementation of the persistence the conversation engine needs while
handling a webhook update.
"""

from datetime import datetime, time

from sqlalchemy.ext.asyncio import AsyncSession

from botbuilder.backend.core.utils import utc_now, utc_today
from botbuilder.backend.repositories.bot import (
    BotAnalyticsRepository,
    BotInteractionRepository,
    BotRepository,
)
from botbuilder.backend.services.base import BaseService
from botbuilder.telegram.menu.tree import MenuTree
from botbuilder.telegram.store import BotRecord, ConversationStore


class SqlConversationStore(BaseService, ConversationStore):
    """
    ConversationStore backed by the bots, bot_interactions and bot_analytics tables.

    Bots created by the earlier editor keep their welcome text under
    `settings.welcomeMessage`; it is read when `welcome_message` is unset.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.bots = BotRepository(session)
        self.analytics = BotAnalyticsRepository(session)
        self.interactions = BotInteractionRepository(session)

    async def get_bot(self, token: str) -> BotRecord | None:
        bot = await self._execute_db_operation("get_bot_by_token", self.bots.get_by_token(token))
        if bot is None:
            return None

        settings = bot.settings or {}
        return BotRecord(
            id=bot.id,
            token=bot.token,
            menu=MenuTree.from_raw(bot.menu_structure),
            welcome_message=settings.get("welcome_message") or settings.get("welcomeMessage") or None,
            is_active=bot.is_active,
        )

    async def is_new_user_today(self, bot_id: str, telegram_user_id: str) -> bool:
        start_of_day = datetime.combine(utc_today(), time.min)
        seen = await self._execute_db_operation(
            "check_user_seen_today",
            self.interactions.exists_since(bot_id, telegram_user_id, start_of_day),
        )
        return not seen

    async def append_interaction(
        self,
        bot_id: str,
        telegram_user_id: str,
        input_text: str,
        response_text: str,
    ) -> None:
        await self._execute_db_operation(
            "append_interaction",
            self.interactions.create(
                bot_id=bot_id,
                telegram_user_id=telegram_user_id,
                message_text=input_text,
                response=response_text,
                timestamp=utc_now(),
            ),
        )

    async def increment_analytics(
        self,
        bot_id: str,
        messages_received: int = 0,
        messages_sent: int = 0,
        active_users: int = 0,
    ) -> None:
        await self._execute_db_operation(
            "increment_analytics",
            self.analytics.increment(
                bot_id,
                utc_today(),
                messages_received=messages_received,
                messages_sent=messages_sent,
                active_users=active_users,
            ),
        )
        self._log_debug(
            "Analytics incremented",
            bot_id=bot_id,
            messages_received=messages_received,
            messages_sent=messages_sent,
            active_users=active_users,
        )
