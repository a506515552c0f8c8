"""
Base Service.

Services hold the business rules and call repositories; repositories only
talk SQL. Every repository call that can fail at the database goes through
`_execute_db_operation`, so callers only ever see ApplicationError
subclasses.

Usage:
    class BotService(BaseService):
        def __init__(self, session: AsyncSession) -> None:
            super().__init__(session)
            self.repo = BotRepository(session)

        async def delete_bot(self, bot_id: str) -> None:
            await self._execute_db_operation("delete_bot", self.repo.delete(bot_id))
"""

from collections.abc import Awaitable
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from botbuilder.backend.core.exceptions import ConflictError, DatabaseError
from botbuilder.backend.core.logging import get_logger

T = TypeVar("T")

# Substrings of unique violations as reported by PostgreSQL and SQLite
_UNIQUE_VIOLATION_MARKERS = ("unique", "duplicate")


def is_unique_violation(error: IntegrityError) -> bool:
    message = str(error.orig if error.orig is not None else error).lower()
    return any(marker in message for marker in _UNIQUE_VIOLATION_MARKERS)


class BaseService:
    """Session holder with database error translation and service-tagged logging."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._logger = get_logger(self.__class__.__module__)

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def _execute_db_operation(self, operation: str, coro: Awaitable[T]) -> T:
        """
        Await a repository call, translating SQLAlchemy errors.

        ApplicationErrors raised by the repository (e.g. NotFoundError)
        pass through unchanged.

        Raises:
            ConflictError: For unique constraint violations
            DatabaseError: For other database errors
        """
        try:
            return await coro
        except IntegrityError as e:
            self._logger.warning(
                "Database integrity error",
                extra={"operation": operation, "error": str(e.orig)},
            )
            if is_unique_violation(e):
                raise ConflictError("Resource already exists") from e
            raise DatabaseError(f"Database constraint violation: {operation}") from e
        except SQLAlchemyError as e:
            self._logger.error(
                "Database error",
                extra={"operation": operation, "error": str(e)},
            )
            raise DatabaseError(f"Database operation failed: {operation}") from e

    def _log_operation(self, operation: str, **context: Any) -> None:
        """Info-level log of a state-changing operation."""
        self._logger.info(operation, extra={"service": self.__class__.__name__, **context})

    def _log_debug(self, message: str, **context: Any) -> None:
        self._logger.debug(message, extra={"service": self.__class__.__name__, **context})
