"""
Bot Service.

Business logic for registering bots, editing their menus, and reading the
analytics the conversation engine writes.
"""

import re
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from botbuilder.backend.core.config import get_app_config, get_settings, get_webhook_url
from botbuilder.backend.core.exceptions import ConflictError, InvalidMenuError
from botbuilder.backend.models.bot import Bot, BotAnalytics, BotInteraction
from botbuilder.backend.repositories.bot import (
    BotAnalyticsRepository,
    BotInteractionRepository,
    BotRepository,
)
from botbuilder.backend.schemas.bot import BotCreate, BotUpdate, DashboardStats
from botbuilder.backend.services.base import BaseService
from botbuilder.telegram.menu.tree import validate_menu
from botbuilder.telegram.transport import TelegramTransport, token_label


def fallback_username(name: str) -> str:
    """Username used when Telegram cannot confirm the token: "My Bot" -> "my_bot_bot"."""
    slug = re.sub(r"\s+", "_", name.strip().lower())
    return f"{slug}_bot"


class BotService(BaseService):
    """
    Service for bot management.

    Args:
        session: Database session
        transport: Telegram calls made on bot creation (getMe, setWebhook)
    """

    def __init__(self, session: AsyncSession, transport: TelegramTransport) -> None:
        super().__init__(session)
        self.transport = transport
        self.repo = BotRepository(session)
        self.analytics_repo = BotAnalyticsRepository(session)
        self.interaction_repo = BotInteractionRepository(session)

    async def create_bot(self, data: BotCreate) -> Bot:
        """
        Register a bot.

        The token is checked with getMe to learn the bot's username; when
        Telegram rejects it (or validation is disabled) a username is
        derived from the name. The webhook is then pointed at this server.
        Neither Telegram call failing prevents the bot from being stored.

        Raises:
            ConflictError: If a bot with the same token or username exists
        """
        self._log_operation("Creating bot", name=data.name, bot=token_label(data.token))

        existing = await self.repo.get_by_token(data.token)
        if existing is not None:
            raise ConflictError("A bot with this token is already registered")

        features = get_app_config().features

        username = fallback_username(data.name)
        if features.telegram_validate_token_on_create:
            info = await self.transport.get_bot_info(data.token)
            if info is not None and info.username:
                username = info.username
            else:
                self._log_debug("Token not confirmed, using generated username", username=username)

        webhook_url = get_webhook_url(data.token)
        if features.telegram_register_webhook_on_create:
            await self.transport.set_webhook(
                data.token,
                webhook_url,
                secret_token=get_settings().telegram_webhook_secret or None,
            )

        settings = data.settings.model_dump(exclude_none=True)
        settings["webhook_url"] = webhook_url

        bot = await self._execute_db_operation(
            "create_bot",
            self.repo.create(
                name=data.name,
                username=username,
                token=data.token,
                description=data.description,
                menu_structure={},
                settings=settings,
            ),
        )

        self._log_debug("Bot created", bot_id=bot.id, username=username)
        return bot

    async def get_bot(self, bot_id: str) -> Bot:
        """
        Get a bot by ID.

        Raises:
            NotFoundError: If bot not found
        """
        return await self.repo.get_by_id(bot_id)

    async def list_bots_paginated(self, limit: int = 20, offset: int = 0) -> tuple[list[Bot], int]:
        """
        List bots, newest first, with total count.

        Returns:
            Tuple of (bots list, total count)
        """
        bots = await self.repo.get_recent(limit=limit, offset=offset)
        total = await self.repo.count()
        return bots, total

    async def update_bot(self, bot_id: str, data: BotUpdate) -> Bot:
        """
        Update bot metadata. Settings are merged into the stored ones.

        Raises:
            NotFoundError: If bot not found
        """
        update_data = data.model_dump(exclude_unset=True)

        if not update_data:
            return await self.repo.get_by_id(bot_id)

        if "settings" in update_data:
            bot = await self.repo.get_by_id(bot_id)
            merged = dict(bot.settings or {})
            merged.update(data.settings.model_dump(exclude_unset=True) if data.settings else {})
            update_data["settings"] = merged

        self._log_operation(
            "Updating bot",
            bot_id=bot_id,
            fields=list(update_data.keys()),
        )

        return await self._execute_db_operation(
            "update_bot",
            self.repo.update(bot_id, **update_data),
        )

    async def delete_bot(self, bot_id: str) -> None:
        """
        Delete a bot.

        Raises:
            NotFoundError: If bot not found
        """
        self._log_operation("Deleting bot", bot_id=bot_id)

        await self._execute_db_operation(
            "delete_bot",
            self.repo.delete(bot_id),
        )

    async def replace_menu(self, bot_id: str, menu_structure: dict[str, Any]) -> Bot:
        """
        Replace the bot's whole menu tree.

        The tree is validated before anything is written; an invalid tree
        leaves the stored one untouched.

        Raises:
            NotFoundError: If bot not found
            InvalidMenuError: If the tree has structural problems
        """
        await self.repo.get_by_id(bot_id)

        problems = validate_menu(menu_structure)
        if problems:
            self._log_operation("Rejected menu", bot_id=bot_id, problems=len(problems))
            raise InvalidMenuError(problems)

        self._log_operation("Replacing menu", bot_id=bot_id, items=len(menu_structure))

        return await self._execute_db_operation(
            "replace_menu",
            self.repo.update(bot_id, menu_structure=menu_structure),
        )

    async def get_analytics(self, bot_id: str, limit: int = 30) -> list[BotAnalytics]:
        """
        Daily counters of a bot, newest day first.

        Raises:
            NotFoundError: If bot not found
        """
        await self.repo.get_by_id(bot_id)
        return await self.analytics_repo.get_for_bot(bot_id, limit=limit)

    async def get_interactions(self, bot_id: str, limit: int = 50) -> list[BotInteraction]:
        """
        Recent interactions of a bot, newest first.

        Raises:
            NotFoundError: If bot not found
        """
        await self.repo.get_by_id(bot_id)
        return await self.interaction_repo.get_recent_for_bot(bot_id, limit=limit)

    async def get_dashboard_stats(self) -> DashboardStats:
        """Totals across all bots."""
        return DashboardStats(
            total_bots=await self.repo.count(),
            active_bots=await self.repo.count_active(),
            total_messages=await self.analytics_repo.total_messages_received(),
            total_users=await self.interaction_repo.count_distinct_users(),
        )

    async def register_webhooks(self) -> dict[str, bool]:
        """
        Point every active bot's webhook at the current public URL.

        Returns:
            Mapping of bot username to whether Telegram accepted the webhook
        """
        secret = get_settings().telegram_webhook_secret or None
        results: dict[str, bool] = {}

        offset = 0
        while True:
            bots = await self.repo.get_recent(limit=100, offset=offset)
            if not bots:
                break
            for bot in bots:
                if not bot.is_active:
                    continue
                url = get_webhook_url(bot.token)
                results[bot.username] = await self.transport.set_webhook(bot.token, url, secret_token=secret)
                if results[bot.username] and (bot.settings or {}).get("webhook_url") != url:
                    await self.repo.update(bot.id, settings={**(bot.settings or {}), "webhook_url": url})
            offset += len(bots)

        self._log_operation(
            "Webhooks registered",
            total=len(results),
            failed=sum(1 for ok in results.values() if not ok),
        )
        return results
