"""
Bot Repositories.

Data access for bots, their daily analytics buckets, and the interaction log.
"""

from datetime import date, datetime

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from botbuilder.backend.models.bot import Bot, BotAnalytics, BotInteraction
from botbuilder.backend.repositories.base import BaseRepository

# INSERT constructs supporting ON CONFLICT DO UPDATE, by dialect name
UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class BotRepository(BaseRepository[Bot]):
    """Repository for Bot model."""

    model = Bot

    async def get_by_token(self, token: str) -> Bot | None:
        """
        Resolve a webhook token to its bot.

        Args:
            token: Telegram bot token taken from the webhook path

        Returns:
            The bot, or None when no bot is registered with that token
        """
        result = await self.session.execute(select(Bot).where(Bot.token == token))
        return result.scalar_one_or_none()

    async def get_recent(self, limit: int = 50, offset: int = 0) -> list[Bot]:
        """List bots, newest first."""
        result = await self.session.execute(
            select(Bot)
            .order_by(Bot.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def count_active(self) -> int:
        """Get count of active bots."""
        result = await self.session.execute(
            select(func.count())
            .select_from(Bot)
            .where(Bot.is_active == True)  # noqa: E712
        )
        return result.scalar_one()


class BotAnalyticsRepository(BaseRepository[BotAnalytics]):
    """Repository for per-day analytics buckets."""

    model = BotAnalytics

    async def increment(
        self,
        bot_id: str,
        day: date,
        messages_received: int = 0,
        messages_sent: int = 0,
        active_users: int = 0,
    ) -> None:
        """
        Add to the counters of one bot's bucket for `day`.

        An existing bucket is changed with a single `SET x = x + n`
        statement. The first increment of a day inserts the bucket with
        ON CONFLICT DO UPDATE, so a request that created the same bucket
        concurrently is added to rather than failing the unique constraint.
        """
        counts = {
            "messages_received": messages_received,
            "messages_sent": messages_sent,
            "active_users": active_users,
        }
        if not await self._add_to_bucket(bot_id, day, counts):
            await self._insert_bucket(bot_id, day, counts)

    async def _add_to_bucket(self, bot_id: str, day: date, counts: dict[str, int]) -> bool:
        """Returns False when the bucket does not exist yet."""
        result = await self.session.execute(
            update(BotAnalytics)
            .where(BotAnalytics.bot_id == bot_id, BotAnalytics.day == day)
            .values(**{name: getattr(BotAnalytics, name) + n for name, n in counts.items()})
        )
        return result.rowcount > 0

    async def _insert_bucket(self, bot_id: str, day: date, counts: dict[str, int]) -> None:
        table = BotAnalytics.__table__
        dialect = self.session.get_bind().dialect.name
        insert = UPSERT_INSERTS[dialect]

        statement = insert(table).values(bot_id=bot_id, date=day, **counts)
        statement = statement.on_conflict_do_update(
            index_elements=[table.c.bot_id, table.c.date],
            set_={name: table.c[name] + statement.excluded[name] for name in counts},
        )
        await self.session.execute(statement)

    async def get_for_bot(self, bot_id: str, limit: int = 30) -> list[BotAnalytics]:
        """Daily buckets of one bot, newest first."""
        result = await self.session.execute(
            select(BotAnalytics)
            .where(BotAnalytics.bot_id == bot_id)
            .order_by(BotAnalytics.day.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_bucket(self, bot_id: str, day: date) -> BotAnalytics | None:
        """The bucket of one bot for one day, if it exists."""
        result = await self.session.execute(
            select(BotAnalytics).where(
                BotAnalytics.bot_id == bot_id,
                BotAnalytics.day == day,
            )
        )
        return result.scalar_one_or_none()

    async def total_messages_received(self) -> int:
        """Sum of received messages across all bots and days."""
        result = await self.session.execute(
            select(func.coalesce(func.sum(BotAnalytics.messages_received), 0))
        )
        return int(result.scalar_one())


class BotInteractionRepository(BaseRepository[BotInteraction]):
    """Repository for the interaction log."""

    model = BotInteraction

    async def exists_since(self, bot_id: str, telegram_user_id: str, since: datetime) -> bool:
        """Whether the user has interacted with the bot at or after `since`."""
        result = await self.session.execute(
            select(BotInteraction.id)
            .where(
                BotInteraction.bot_id == bot_id,
                BotInteraction.telegram_user_id == telegram_user_id,
                BotInteraction.timestamp >= since,
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def get_recent_for_bot(self, bot_id: str, limit: int = 50) -> list[BotInteraction]:
        """Interactions of one bot, newest first."""
        result = await self.session.execute(
            select(BotInteraction)
            .where(BotInteraction.bot_id == bot_id)
            .order_by(BotInteraction.timestamp.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_distinct_users(self) -> int:
        """Number of distinct Telegram users across all bots."""
        result = await self.session.execute(
            select(func.count(func.distinct(BotInteraction.telegram_user_id)))
        )
        return result.scalar_one()
