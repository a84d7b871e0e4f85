"""BaseDAO: primary-key access through the ORM, insert-if-absent through Core."""

import uuid
from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from commitwatch.core.database import Base

ModelT = TypeVar("ModelT", bound=Base)

# dialects whose insert() construct has on_conflict_do_nothing()
_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

_IMMUTABLE_COLUMNS = frozenset({"id", "created_at", "updated_at"})


class BaseDAO(Generic[ModelT]):
    """Stateless table access. Subclasses set ``model``; callers own the session."""

    model: type[ModelT]

    @staticmethod
    def _require_pk(pk: uuid.UUID | None) -> None:
        if pk is None:
            raise ValueError("pk must not be None")

    async def get_by_id(self, session: AsyncSession, pk: uuid.UUID) -> ModelT | None:
        self._require_pk(pk)
        return await session.get(self.model, pk)

    async def first_where(self, session: AsyncSession, **filters: Any) -> ModelT | None:
        """First row whose columns equal every keyword in *filters*."""
        if not filters:
            raise ValueError("first_where() needs at least one filter")
        conditions = [getattr(self.model, column) == value for column, value in filters.items()]
        result = await session.execute(select(self.model).where(*conditions).limit(1))
        return result.scalars().first()

    async def count(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count()).select_from(self.model))
        return result.scalar_one()

    async def update(self, session: AsyncSession, pk: uuid.UUID, **values: Any) -> ModelT | None:
        """Assign *values* to the row and flush. None when the row does not exist."""
        self._require_pk(pk)
        columns = set(self.model.__mapper__.column_attrs.keys())
        for key in values:
            if key in _IMMUTABLE_COLUMNS:
                raise AttributeError(f"'{key}' is immutable and cannot be updated")
            if key not in columns:
                raise AttributeError(f"{self.model.__name__} has no column '{key}'")

        obj = await session.get(self.model, pk)
        if obj is None:
            return None
        for key, value in values.items():
            setattr(obj, key, value)
        await session.flush()
        await session.refresh(obj)
        return obj

    async def delete(self, session: AsyncSession, pk: uuid.UUID) -> bool:
        """Delete the row; False when there was nothing to delete."""
        self._require_pk(pk)
        obj = await session.get(self.model, pk)
        if obj is None:
            return False
        await session.delete(obj)
        await session.flush()
        return True

    def _insert(self, session: AsyncSession):
        """The bound dialect's ``insert(model)``, which supports ON CONFLICT.

        Raises ``NotImplementedError`` on any other database.
        """
        dialect = session.bind.dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise NotImplementedError(f"insert-if-absent not supported on {dialect!r}")
        return insert(self.model)
