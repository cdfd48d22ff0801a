from typing import Any

from sqlalchemy.sql import select
from sqlalchemy.ext.asyncio import AsyncSession

from cellar.database.models import BaseType, ModelClass
from cellar.exceptions import QueryValidationError, RecordNotFoundError
from .decorators import session_manager
from .filters import compile_where
from .loading import reload
from .types import Where, Include, Select
from .utils import flush
from .writes import apply_data, build_instance, column_value, find_instance, write_loaders


class _U:
    @staticmethod
    async def _update_where(
        model_class: ModelClass,
        session: AsyncSession,
        where: Where,
        data: dict[str, Any],
        include: Include = None,
        select: Select = None
    ) -> BaseType:
        """Update the row pinned by a unique ``where`` with write data.

        Raises:
            RecordNotFoundError:
                If no row matches.
        """
        instance = await find_instance(model_class, session, where, unique=True, options=write_loaders(model_class, data))

        if instance is None:
            raise RecordNotFoundError(model_class.model_name, where)

        await apply_data(model_class, session, instance, data)
        await flush(model_class, session)

        return await reload(model_class, session, instance, include=include, select=select)

    @staticmethod
    async def _update_all(
        model_class: ModelClass,
        session: AsyncSession,
        where: Where,
        data: dict[str, Any]
    ) -> int:
        """Apply scalar ``data`` to every row matching ``where``; returns the row count.

        Rows are loaded and mutated through the ORM so ``onupdate`` timestamps and
        session state stay consistent.
        """
        if not isinstance(data, dict):
            raise QueryValidationError(model_class.model_name, "data must be a dict")

        for key in data:
            if key not in model_class.column_names:
                raise QueryValidationError(model_class.model_name, f"update_many only accepts columns, got '{key}'")

        stmt = select(model_class.value).where(compile_where(model_class, where))
        rows = (await session.scalars(stmt)).all()

        for row in rows:
            for key, value in data.items():
                setattr(row, key, column_value(model_class, key, value))

        if rows:
            await flush(model_class, session)

        return len(rows)

    @staticmethod
    async def _upsert_instance(
        model_class: ModelClass,
        session: AsyncSession,
        where: Where,
        create: dict[str, Any],
        update: dict[str, Any],
        include: Include = None,
        select: Select = None
    ) -> BaseType:
        """Update the row pinned by ``where`` or create it from ``create`` if absent."""
        instance = await find_instance(model_class, session, where, unique=True, options=write_loaders(model_class, update))

        if instance is None:
            instance = await build_instance(model_class, session, create)
            session.add(instance)
        else:
            await apply_data(model_class, session, instance, update)

        await flush(model_class, session)

        return await reload(model_class, session, instance, include=include, select=select)


class U(_U):
    @session_manager()
    async def update_where(
        self,
        model: type[BaseType],
        where: Where,
        data: dict[str, Any],
        include: Include = None,
        select: Select = None,
        session: AsyncSession = None
    ) -> BaseType:
        return await self._update_where(ModelClass(model), session, where, data, include=include, select=select)

    @session_manager()
    async def update_all(
        self,
        model: type[BaseType],
        where: Where,
        data: dict[str, Any],
        session: AsyncSession = None
    ) -> int:
        return await self._update_all(ModelClass(model), session, where, data)

    @session_manager()
    async def upsert(
        self,
        model: type[BaseType],
        where: Where,
        create: dict[str, Any],
        update: dict[str, Any],
        include: Include = None,
        select: Select = None,
        session: AsyncSession = None
    ) -> BaseType:
        return await self._upsert_instance(
            ModelClass(model),
            session,
            where,
            create,
            update,
            include=include,
            select=select
        )
