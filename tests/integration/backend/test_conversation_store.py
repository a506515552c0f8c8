"""
Integration Tests for the SQL Conversation Store.

Runs the store against the test database the way the webhook uses it.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from botbuilder.backend.core.utils import utc_now, utc_today
from botbuilder.backend.models.bot import Bot, BotAnalytics, BotInteraction
from botbuilder.backend.services.conversation import SqlConversationStore
from botbuilder.telegram.menu.tree import NodeKind


@pytest.fixture
async def stored_bot(db_session: AsyncSession, faq_menu) -> Bot:
    bot = Bot(
        name="Support",
        username="support_bot",
        token="1:abc",
        menu_structure=faq_menu,
        settings={"welcome_message": "Hi!"},
    )
    db_session.add(bot)
    await db_session.flush()
    return bot


@pytest.fixture
def store(db_session: AsyncSession) -> SqlConversationStore:
    return SqlConversationStore(db_session)


class TestGetBot:
    """Tests for resolving a webhook token."""

    @pytest.mark.asyncio
    async def test_unknown_token(self, store: SqlConversationStore):
        assert await store.get_bot("nope") is None

    @pytest.mark.asyncio
    async def test_snapshot(self, store: SqlConversationStore, stored_bot: Bot):
        record = await store.get_bot("1:abc")

        assert record.id == stored_bot.id
        assert record.token == "1:abc"
        assert record.welcome_message == "Hi!"
        assert record.is_active is True
        assert list(record.menu) == ["faq", "about"]
        assert record.menu.nodes["faq"].kind is NodeKind.SUBMENU

    @pytest.mark.asyncio
    async def test_damaged_menu_still_loads(self, db_session: AsyncSession, store: SqlConversationStore):
        """A stored tree with bad items loads with those items dropped."""
        db_session.add(Bot(
            name="Legacy",
            username="legacy_bot",
            token="2:def",
            menu_structure={
                "ok": {"text": "Ok", "type": "text", "content": "fine"},
                "bad": "not an object",
            },
            settings={},
        ))
        await db_session.flush()

        record = await store.get_bot("2:def")

        assert list(record.menu) == ["ok"]
        assert record.welcome_message is None

    @pytest.mark.asyncio
    async def test_welcome_message_under_editor_key(self, db_session: AsyncSession, store: SqlConversationStore):
        db_session.add(Bot(
            name="Cafe",
            username="cafe_bot",
            token="3:ghi",
            menu_structure={},
            settings={"welcomeMessage": "Hola!"},
        ))
        await db_session.flush()

        record = await store.get_bot("3:ghi")

        assert record.welcome_message == "Hola!"


class TestRecording:
    """Tests for the interaction log and daily counters."""

    @pytest.mark.asyncio
    async def test_new_user_until_first_interaction(self, store: SqlConversationStore, stored_bot: Bot):
        assert await store.is_new_user_today(stored_bot.id, "7001") is True

        await store.append_interaction(stored_bot.id, "7001", "/start", "Hi!")

        assert await store.is_new_user_today(stored_bot.id, "7001") is False
        assert await store.is_new_user_today(stored_bot.id, "7002") is True

    @pytest.mark.asyncio
    async def test_yesterday_does_not_count(
        self,
        db_session: AsyncSession,
        store: SqlConversationStore,
        stored_bot: Bot,
    ):
        db_session.add(BotInteraction(
            bot_id=stored_bot.id,
            telegram_user_id="7001",
            message_text="/start",
            response="Hi!",
            timestamp=utc_now() - timedelta(days=2),
        ))
        await db_session.flush()

        assert await store.is_new_user_today(stored_bot.id, "7001") is True

    @pytest.mark.asyncio
    async def test_append_interaction(
        self,
        db_session: AsyncSession,
        store: SqlConversationStore,
        stored_bot: Bot,
    ):
        await store.append_interaction(stored_bot.id, "7001", "Button: faq", "Pick a question")

        rows = (await db_session.execute(select(BotInteraction))).scalars().all()
        assert len(rows) == 1
        assert rows[0].message_text == "Button: faq"
        assert rows[0].response == "Pick a question"

    @pytest.mark.asyncio
    async def test_increments_share_one_bucket(
        self,
        db_session: AsyncSession,
        store: SqlConversationStore,
        stored_bot: Bot,
    ):
        await store.increment_analytics(stored_bot.id, messages_received=1, messages_sent=1, active_users=1)
        await store.increment_analytics(stored_bot.id, messages_received=1, messages_sent=0)
        await store.increment_analytics(stored_bot.id, messages_received=1, messages_sent=1)

        rows = (
            await db_session.execute(
                select(BotAnalytics).execution_options(populate_existing=True)
            )
        ).scalars().all()
        assert len(rows) == 1
        assert rows[0].day == utc_today()
        assert rows[0].messages_received == 3
        assert rows[0].messages_sent == 2
        assert rows[0].active_users == 1

    @pytest.mark.asyncio
    async def test_bucket_created_concurrently_is_added_to(
        self,
        db_session: AsyncSession,
        store: SqlConversationStore,
        stored_bot: Bot,
    ):
        """Another request inserts the bucket after our UPDATE found none."""
        await store.increment_analytics(stored_bot.id, messages_received=1, messages_sent=1, active_users=1)

        with patch.object(store.analytics, "_add_to_bucket", AsyncMock(return_value=False)):
            await store.increment_analytics(stored_bot.id, messages_received=2, messages_sent=1)

        rows = (
            await db_session.execute(
                select(BotAnalytics).execution_options(populate_existing=True)
            )
        ).scalars().all()
        assert len(rows) == 1
        assert rows[0].messages_received == 3
        assert rows[0].messages_sent == 2
        assert rows[0].active_users == 1
