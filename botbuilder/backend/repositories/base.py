"""
Base Repository.

Generic CRUD over one mapped class. Writes flush but never commit: the
transaction belongs to whoever owns the session (the request dependency,
the webhook endpoint, or the CLI).
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from botbuilder.backend.core.exceptions import NotFoundError
from botbuilder.backend.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Subclasses set `model`:

        class BotRepository(BaseRepository[Bot]):
            model = Bot
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def find(self, id: str) -> ModelType | None:
        result = await self.session.execute(select(self.model).where(self.model.id == id))
        return result.scalar_one_or_none()

    async def get_by_id(self, id: str) -> ModelType:
        """
        Raises:
            NotFoundError: "<Model> not found" when no row has this id
        """
        instance = await self.find(id)
        if instance is None:
            raise NotFoundError(f"{self.model.__name__} not found")
        return instance

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()

    async def create(self, **values: Any) -> ModelType:
        """Insert a row and return it with database defaults loaded."""
        instance = self.model(**values)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, id: str, **values: Any) -> ModelType:
        """
        Set the given columns; names that are not attributes of the model are ignored.

        Raises:
            NotFoundError: When no row has this id
        """
        instance = await self.get_by_id(id)
        for key, value in values.items():
            if hasattr(instance, key):
                setattr(instance, key, value)

        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, id: str) -> None:
        """
        Raises:
            NotFoundError: When no row has this id
        """
        instance = await self.get_by_id(id)
        await self.session.delete(instance)
        await self.session.flush()
