from typing import Iterable, Any, Sequence

from sqlalchemy.sql import select, desc
from sqlalchemy.sql.selectable import Select
from sqlalchemy.sql.functions import func
from sqlalchemy.ext.asyncio import AsyncSession

from cellar.database.models import BaseType, ModelClass
from cellar.exceptions import QueryValidationError
from cellar.utils import clamp
from .aggregates import compile_aggregates, compile_having, compile_group_order, nest_row
from .decorators import session_manager
from .filters import compile_where, compile_order_by
from .loading import compile_loading
from .types import Where, OrderBy, Include, AggregateFields

QUERY_MIN_LIMIT = 1
QUERY_MAX_LIMIT = 500


class _R:
    @staticmethod
    async def _get_instance(
        model_class: ModelClass,
        session: AsyncSession,
        _offset: int = 0,
        **kwargs
    ) -> BaseType | None:
        select_stmt = _R._construct_stmt(model_class, **kwargs)
        select_stmt = _R._apply_pagination(model_class, select_stmt, 1, _offset)

        return await session.scalar(select_stmt)

    @staticmethod
    async def _get_instances(
        model_class: ModelClass,
        session: AsyncSession,
        _limit: int = None,
        _offset: int = 0,
        _distinct: Sequence[str] = None,
        **kwargs
    ) -> list[BaseType]:
        """Fetch every matching instance, optionally paginated.

        ``_distinct`` keeps the first row for each distinct tuple of the given
        columns; it is applied to the ordered rows before ``_offset``/``_limit``.
        """
        select_stmt = _R._construct_stmt(model_class, **kwargs)

        if not _distinct:
            select_stmt = _R._apply_pagination(model_class, select_stmt, _limit, _offset)

            return list((await session.scalars(select_stmt)).all())

        for field in _distinct:
            if field not in model_class.column_names:
                raise QueryValidationError(model_class.model_name, f"cannot be distinct on unknown field '{field}'")

        _R._validate_offset(model_class, _offset)
        seen = set()
        rows = []

        for row in (await session.scalars(select_stmt)).all():
            key = tuple(getattr(row, field) for field in _distinct)

            if key not in seen:
                seen.add(key)
                rows.append(row)

        rows = rows[_offset:]

        if _limit is not None:
            rows = rows[:clamp(_limit, QUERY_MIN_LIMIT, QUERY_MAX_LIMIT)]

        return rows

    @staticmethod
    def _construct_stmt(
        model_class: ModelClass,
        _where: Where = None,
        _order_by: OrderBy = None,
        _include: Include = None,
        _select: dict[str, Any] = None,
        _reversed: bool = False,
        _restrict: bool = True,
        **kwargs
    ) -> Select:
        _R._validate_kwargs(model_class, kwargs)
        select_stmt = select(model_class.value).filter_by(**kwargs)

        if _where is not None:
            select_stmt = select_stmt.where(compile_where(model_class, _where))

        if _order_by is not None:
            select_stmt = select_stmt.order_by(*compile_order_by(model_class, _order_by))

        if _reversed:
            select_stmt = select_stmt.order_by(desc(model_class.mapper.primary_key[0]))

        select_stmt = select_stmt.options(*compile_loading(model_class, include=_include, select=_select, restrict=_restrict))

        # rows already in the identity map keep their loaded state otherwise
        if _include is not None or _select is not None:
            select_stmt = select_stmt.execution_options(populate_existing=True)

        return select_stmt

    @staticmethod
    def _filtered_stmt(model_class: ModelClass, *columns: Any, _where: Where = None, **kwargs) -> Select:
        _R._validate_kwargs(model_class, kwargs)
        select_stmt = select(*columns) if columns else select(model_class.value)

        return (
            select_stmt
            .select_from(model_class.value)
            .filter_by(**kwargs)
            .where(compile_where(model_class, _where))
        )

    @staticmethod
    def _apply_pagination(model_class: ModelClass, select_stmt: Select, limit: int | None, offset: int) -> Select:
        _R._validate_offset(model_class, offset)

        if offset:
            select_stmt = select_stmt.offset(offset)

        if limit is not None:
            select_stmt = select_stmt.limit(clamp(limit, QUERY_MIN_LIMIT, QUERY_MAX_LIMIT))

        return select_stmt

    @staticmethod
    def _validate_offset(model_class: ModelClass, offset: int):
        if not isinstance(offset, int) or offset < 0:
            raise QueryValidationError(model_class.model_name, f"skip must be a non-negative int, got {offset!r}")

    @staticmethod
    def _validate_kwargs(model_class: ModelClass, kwargs: dict[str, Any]):
        for key in kwargs:
            if key not in model_class.column_names:
                raise QueryValidationError(model_class.model_name, f"unknown field '{key}'")

    @staticmethod
    async def _count_instances(
        model_class: ModelClass,
        session: AsyncSession,
        _where: Where = None,
        _limit: int = None,
        _offset: int = 0,
        **kwargs
    ) -> int:
        subquery = _R._filtered_stmt(model_class, *model_class.mapper.primary_key, _where=_where, **kwargs)
        subquery = _R._apply_pagination(model_class, subquery, _limit, _offset).subquery()

        return await session.scalar(select(func.count()).select_from(subquery))

    @staticmethod
    async def _aggregate_instances(
        model_class: ModelClass,
        session: AsyncSession,
        aggregates: dict[str, AggregateFields | None],
        _where: Where = None,
        _order_by: OrderBy = None,
        _limit: int = None,
        _offset: int = 0
    ) -> dict[str, Any]:
        """Aggregate over the matching rows (after ordering and pagination).

        Returns:
            ``{"_count": {...}, "_sum": {...}, ...}`` for the requested aggregates.
        """
        subquery = _R._filtered_stmt(model_class, _where=_where)

        if _order_by is not None:
            subquery = subquery.order_by(*compile_order_by(model_class, _order_by))

        subquery = _R._apply_pagination(model_class, subquery, _limit, _offset).subquery()
        columns = compile_aggregates(model_class, aggregates, lambda name: subquery.c[name])

        if not columns:
            raise QueryValidationError(model_class.model_name, "aggregate needs at least one of _count, _sum, _avg, _min, _max")

        row = (await session.execute(select(*columns).select_from(subquery))).mappings().one()

        return nest_row(row)

    @staticmethod
    async def _group_instances(
        model_class: ModelClass,
        session: AsyncSession,
        by: Iterable[str],
        aggregates: dict[str, AggregateFields | None],
        _where: Where = None,
        _having: Where = None,
        _order_by: OrderBy = None,
        _limit: int = None,
        _offset: int = 0
    ) -> list[dict[str, Any]]:
        """Group matching rows by ``by`` and compute aggregates per group."""
        by = [by] if isinstance(by, str) else list(by)

        if not by:
            raise QueryValidationError(model_class.model_name, "group_by needs at least one field in by")

        for field in by:
            if field not in model_class.column_names:
                raise QueryValidationError(model_class.model_name, f"cannot group by unknown field '{field}'")

        model = model_class.value

        def column_of(name: str) -> Any:
            return getattr(model, name)

        by_columns = [column_of(field) for field in by]
        select_stmt = (
            _R._filtered_stmt(model_class, *by_columns, *compile_aggregates(model_class, aggregates, column_of), _where=_where)
            .group_by(*by_columns)
            .having(compile_having(model_class, _having, by, column_of))
            .order_by(*compile_group_order(model_class, _order_by, by, column_of))
        )
        select_stmt = _R._apply_pagination(model_class, select_stmt, _limit, _offset)
        rows = (await session.execute(select_stmt)).mappings().all()

        return [nest_row(row) for row in rows]


class R(_R):
    @session_manager()
    async def get(self, model: type[BaseType], session: AsyncSession = None, **kwargs) -> BaseType | None:
        """Fetch the first instance of ``model`` matching equality kwargs and ``_where``."""
        return await self._get_instance(ModelClass(model), session, **kwargs)

    @session_manager()
    async def get_many(self, model: type[BaseType], session: AsyncSession = None, **kwargs) -> list[BaseType]:
        return await self._get_instances(ModelClass(model), session, **kwargs)

    @session_manager()
    async def count(self, model: type[BaseType], session: AsyncSession = None, **kwargs) -> int:
        return await self._count_instances(ModelClass(model), session, **kwargs)

    @session_manager()
    async def aggregate(
        self,
        model: type[BaseType],
        aggregates: dict[str, AggregateFields | None],
        session: AsyncSession = None,
        **kwargs
    ) -> dict[str, Any]:
        return await self._aggregate_instances(ModelClass(model), session, aggregates, **kwargs)

    @session_manager()
    async def group_by(
        self,
        model: type[BaseType],
        by: Iterable[str],
        aggregates: dict[str, AggregateFields | None],
        session: AsyncSession = None,
        **kwargs
    ) -> list[dict[str, Any]]:
        return await self._group_instances(ModelClass(model), session, by, aggregates, **kwargs)
