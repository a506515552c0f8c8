"""
SQLAlchemy models.

Importing this package registers every table on Base.metadata.
"""

from botbuilder.backend.models.base import Base
from botbuilder.backend.models.bot import Bot, BotAnalytics, BotInteraction

__all__ = [
    "Base",
    "Bot",
    "BotAnalytics",
    "BotInteraction",
]
