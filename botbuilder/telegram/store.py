"""
Conversation Store Interface.

What the conversation engine needs from persistence: the bot behind a
webhook token, and somewhere to write the interaction log and daily
counters. The SQL implementation lives in
botbuilder.backend.services.conversation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from botbuilder.telegram.menu.tree import MenuTree


@dataclass(frozen=True)
class BotRecord:
    """Snapshot of a bot read once at the start of an update."""

    id: str
    token: str
    menu: MenuTree = field(default_factory=MenuTree)
    welcome_message: str | None = None
    is_active: bool = True


class ConversationStore(ABC):
    """Persistence operations used while handling one update."""

    @abstractmethod
    async def get_bot(self, token: str) -> BotRecord | None:
        """Resolve a webhook token to its bot, None if unknown."""
        ...

    @abstractmethod
    async def is_new_user_today(self, bot_id: str, telegram_user_id: str) -> bool:
        """Whether the user has not interacted with the bot yet today (UTC)."""
        ...

    @abstractmethod
    async def append_interaction(
        self,
        bot_id: str,
        telegram_user_id: str,
        input_text: str,
        response_text: str,
    ) -> None:
        """Append one row to the interaction log."""
        ...

    @abstractmethod
    async def increment_analytics(
        self,
        bot_id: str,
        messages_received: int = 0,
        messages_sent: int = 0,
        active_users: int = 0,
    ) -> None:
        """Add to today's counters of the bot."""
        ...
