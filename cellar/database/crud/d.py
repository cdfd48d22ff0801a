from sqlalchemy.sql import select
from sqlalchemy.sql.selectable import Select as SelectStmt
from sqlalchemy.ext.asyncio import AsyncSession

from cellar.database.models import BaseType, ModelClass
from cellar.exceptions import RecordNotFoundError
from .decorators import session_manager
from .filters import compile_where
from .loading import compile_loading
from .types import Where, Include, Select
from .utils import flush
from .writes import find_instance


class _D:
    @staticmethod
    async def _delete_where(
        model_class: ModelClass,
        session: AsyncSession,
        where: Where,
        include: Include = None,
        select: Select = None
    ) -> BaseType:
        """Delete the row pinned by a unique ``where`` and return it.

        Requested relations are loaded before the delete so the returned payload
        still carries them. Rows go through ``session.delete`` so ORM cascades
        apply.

        Raises:
            RecordNotFoundError:
                If no row matches.
        """
        options = compile_loading(model_class, include=include, select=select, restrict=False)
        instance = await find_instance(model_class, session, where, unique=True, options=options)

        if instance is None:
            raise RecordNotFoundError(model_class.model_name, where)

        await session.delete(instance)
        await flush(model_class, session)

        return instance

    @staticmethod
    async def _delete_all(model_class: ModelClass, session: AsyncSession, where: Where = None) -> int:
        """Delete every row matching ``where`` (every row when omitted); returns the number deleted."""
        select_stmt = select(model_class.value).where(compile_where(model_class, where))

        return await _D._delete_rows(model_class, session, select_stmt)

    @staticmethod
    async def _delete_rows(model_class: ModelClass, session: AsyncSession, select_stmt: SelectStmt) -> int:
        rows = (await session.scalars(select_stmt)).all()

        if not rows:
            return 0

        for row in rows:
            await session.delete(row)

        await flush(model_class, session)

        return len(rows)


class D(_D):
    @session_manager()
    async def delete_where(
        self,
        model: type[BaseType],
        where: Where,
        include: Include = None,
        select: Select = None,
        session: AsyncSession = None
    ) -> BaseType:
        return await self._delete_where(ModelClass(model), session, where, include=include, select=select)

    @session_manager()
    async def delete_all(
        self,
        model: type[BaseType],
        where: Where = None,
        session: AsyncSession = None
    ) -> int:
        return await self._delete_all(ModelClass(model), session, where=where)
