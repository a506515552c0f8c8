"""
Bot Schemas.

Pydantic schemas for bot management request/response validation.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BotSettings(BaseModel):
    """Per-bot options stored in the bot's settings column."""

    welcome_message: str | None = Field(
        default=None,
        max_length=4096,
        description="Text shown with the main menu; the configured default is used when empty",
    )
    webhook_url: str | None = Field(
        default=None,
        description="Webhook URL registered with Telegram (set by the server)",
    )

    model_config = ConfigDict(extra="allow")


class BotCreate(BaseModel):
    """Schema for registering a bot."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name",
        examples=["Support Bot"],
    )
    token: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Token issued by @BotFather",
        examples=["123456789:AAExampleTokenValue"],
    )
    description: str | None = Field(default=None, max_length=2000)
    settings: BotSettings = Field(default_factory=BotSettings)


class BotUpdate(BaseModel):
    """Schema for updating bot metadata. The menu has its own endpoint."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    is_active: bool | None = None
    settings: BotSettings | None = None


class MenuStructureUpdate(BaseModel):
    """Full menu tree as saved by the editor (replaces the stored tree)."""

    menu_structure: dict[str, Any] = Field(
        ...,
        description="Mapping of item id to menu node",
        examples=[
            {
                "faq": {
                    "text": "FAQ",
                    "type": "submenu",
                    "content": "Pick one",
                    "children": {
                        "hours": {"text": "Hours", "type": "text", "content": "9-5"},
                    },
                },
            },
        ],
    )


class BotResponse(BaseModel):
    """Schema for a bot in API responses. The token is never echoed back."""

    id: str
    name: str
    username: str
    description: str | None
    is_active: bool
    menu_structure: dict[str, Any]
    settings: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BotAnalyticsResponse(BaseModel):
    """One day of counters."""

    day: date
    active_users: int
    messages_received: int
    messages_sent: int

    model_config = ConfigDict(from_attributes=True)


class BotInteractionResponse(BaseModel):
    """One logged interaction."""

    telegram_user_id: str
    message_text: str | None
    response: str | None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)


class DashboardStats(BaseModel):
    """Totals across all bots."""

    total_bots: int
    active_bots: int
    total_messages: int
    total_users: int
