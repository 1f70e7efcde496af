from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.lifecycle import apply_soft_delete
from app.db.base import Base


ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Shared persistence operations for one model.

    Writes commit immediately and return the row re-read from the database,
    so server-side timestamps and eager relationships are always current.
    """

    model: Type[ModelT]

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, entity_id: Any) -> Optional[ModelT]:
        result = await self.db.execute(
            select(self.model)
            .where(self.model.id == entity_id)
            .execution_options(populate_existing=True)
        )
        return result.scalars().first()

    async def commit(self) -> None:
        """Commit, rolling back before re-raising a constraint violation."""
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise

    async def create(self, instance: ModelT) -> ModelT:
        self.db.add(instance)
        await self.commit()
        return await self.get_by_id(instance.id)

    async def add_in_savepoint(self, instance: ModelT) -> None:
        """
        Flush ``instance`` inside a SAVEPOINT without committing.

        A constraint violation rolls back only the savepoint, so rows already
        loaded in the session (e.g. the authenticated user) stay usable.
        """
        async with self.db.begin_nested():
            self.db.add(instance)

    async def save(self, instance: ModelT) -> ModelT:
        await self.commit()
        return await self.get_by_id(instance.id)

    async def update(self, instance: ModelT, changes: dict) -> ModelT:
        """
        Shallow-merge ``changes`` onto ``instance`` and persist.

        Explicit nulls are ignored for NOT NULL columns.
        """
        columns = self.model.__table__.columns
        for field, value in changes.items():
            if value is None and field in columns and not columns[field].nullable:
                continue
            setattr(instance, field, value)
        return await self.save(instance)

    async def remove(self, instance: ModelT) -> Optional[ModelT]:
        """
        Delete according to the model's ``__delete_policy__``.

        Returns:
            The deactivated/cancelled row, or None when it was hard deleted
        """
        if apply_soft_delete(instance):
            return await self.save(instance)
        await self.db.delete(instance)
        await self.commit()
        return None
