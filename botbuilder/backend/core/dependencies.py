"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

import uuid
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from botbuilder.backend.core.config import get_app_config, get_settings
from botbuilder.backend.core.config_schema import MenuTextsSchema
from botbuilder.backend.core.database import get_db_session
from botbuilder.telegram.transport import AiogramTransport, TelegramTransport

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_request_id(x_request_id: str | None = Header(None)) -> str:
    """
    Extract or generate request ID from headers.

    Used for request tracing and correlation.
    """
    return x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


def get_transport() -> TelegramTransport:
    """
    Provide the outbound Telegram transport.

    Overridden in tests with a double that records calls instead of
    hitting the Bot API.
    """
    return AiogramTransport()


Transport = Annotated[TelegramTransport, Depends(get_transport)]


def get_webhook_secret() -> str:
    """Secret expected in the X-Telegram-Bot-Api-Secret-Token header ("" disables)."""
    return get_settings().telegram_webhook_secret


WebhookSecret = Annotated[str, Depends(get_webhook_secret)]


def get_menu_texts() -> MenuTextsSchema:
    """Default conversation texts from application.yaml."""
    return get_app_config().application.telegram.menu


MenuTexts = Annotated[MenuTextsSchema, Depends(get_menu_texts)]
