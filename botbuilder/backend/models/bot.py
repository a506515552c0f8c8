"""
Bot Models.

A registered Telegram bot with its menu tree, plus the per-day analytics
buckets and the interaction log written by the conversation engine.
"""

from datetime import date, datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from botbuilder.backend.core.utils import utc_now
from botbuilder.backend.models.base import Base, TimestampMixin, UUIDMixin


class Bot(UUIDMixin, TimestampMixin, Base):
    """
    Bot database model.

    `menu_structure` holds the menu tree exactly as the editor saved it
    (mapping of item id to node). `settings` holds per-bot options such as
    `welcome_message` and `webhook_url`.
    """

    __tablename__ = "bots"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    token: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)
    menu_structure: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    settings: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    def __repr__(self) -> str:
        return f"<Bot(id={self.id}, username={self.username!r})>"


class BotAnalytics(UUIDMixin, Base):
    """Counters for one bot on one UTC calendar day."""

    __tablename__ = "bot_analytics"
    __table_args__ = (UniqueConstraint("bot_id", "date", name="uq_bot_analytics_bot_date"),)

    bot_id: Mapped[str] = mapped_column(
        ForeignKey("bots.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day: Mapped[date] = mapped_column("date", Date, nullable=False)
    active_users: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    messages_received: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    messages_sent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<BotAnalytics(bot_id={self.bot_id}, day={self.day})>"


class BotInteraction(UUIDMixin, Base):
    """One handled update: what the user sent and what the bot answered."""

    __tablename__ = "bot_interactions"

    bot_id: Mapped[str] = mapped_column(
        ForeignKey("bots.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    telegram_user_id: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    message_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    response: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<BotInteraction(bot_id={self.bot_id}, user={self.telegram_user_id!r})>"
