from typing import Any

from sqlalchemy.sql import select, and_
from sqlalchemy.inspection import inspect
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from cellar.database.models import BaseType, ModelClass
from cellar.exceptions import QueryValidationError
from .decorators import session_manager, ensure_required
from .loading import reload
from .types import Include, Select
from .utils import flush
from .writes import build_instance, column_value


class _C:
    @staticmethod
    @ensure_required()
    async def _add_instance(
        model_class: ModelClass,
        session: AsyncSession,
        data: dict[str, Any]
    ) -> BaseType:
        """Create or resolve a single model instance.

        Input is processed through ``_resolve_or_create``; relationship values are
        resolved recursively. The instance is added to the session, flushed and
        refreshed before returning.

        Raises:
            QueryValidationError:
                If an invalid attribute is supplied.
            RuntimeError:
                If a related object is bound to a different session.
        """
        _C._validate_attrs(model_class, data)

        instance = await _C._resolve_or_create(model_class, data, session)
        session.add(instance)
        await flush(model_class, session)
        await session.refresh(instance)

        return instance

    @staticmethod
    @ensure_required(many=True)
    async def _add_instances(
        model_class: ModelClass,
        session: AsyncSession,
        data: tuple[dict[str, Any], ...]
    ) -> list[BaseType]:
        """Create or resolve multiple model instances.

        Each item is resolved independently through ``_resolve_or_create``; the
        resulting instances are flushed together and refreshed.
        """
        if not data:
            return []

        instances = []

        for item in data:
            _C._validate_attrs(model_class, item)
            instances.append(await _C._resolve_or_create(model_class, item, session))

        session.add_all(instances)
        await flush(model_class, session)

        for instance in instances:
            await session.refresh(instance)

        return instances

    @staticmethod
    async def _resolve_or_create(
        model_class: ModelClass,
        data: dict[str, Any],
        session: AsyncSession,
    ) -> BaseType:
        """Resolve an existing instance or create one from structured input.

        Resolution strategy (in order):

        1. Primary key lookup (if all PK fields are present).
        2. Unique column or composite unique constraint lookup.
            - Checks in-memory identity map first.
            - Falls back to database query if not found.
        3. Instance creation if no match exists.

        Relationship values are either dicts, resolved recursively, or instances
        already bound to ``session``.

        Raises:
            RuntimeError:
                If an object is bound to a different session.
        """
        model = model_class.value
        instance = None

        for columns in model_class.unique_sets:
            if not all(data.get(col) is not None for col in columns):
                continue

            for obj in session.identity_map.values():
                if isinstance(obj, model) and all(getattr(obj, col) == data[col] for col in columns):
                    instance = obj
                    break

            if instance is None:
                conditions = [getattr(model, col) == data[col] for col in columns]
                instance = await session.scalar(select(model).where(and_(*conditions)))

            if instance is not None:
                _C._ensure_same_session(instance, session)
                return instance

        instance = model()

        for key in model_class.column_names:
            if key in data:
                setattr(instance, key, data[key])

        for key in model_class.relationship_names:
            if key not in data:
                continue

            related_model_class = model_class.related(key)
            value = data[key]

            if model_class.relationship(key).uselist:
                items = []

                for item in value:
                    if isinstance(item, dict):
                        item = await _C._resolve_or_create(related_model_class, item, session)
                    else:
                        _C._ensure_same_session(item, session)

                    items.append(item)

                setattr(instance, key, items)
            else:
                if isinstance(value, dict):
                    value = await _C._resolve_or_create(related_model_class, value, session)
                elif value is not None:
                    _C._ensure_same_session(value, session)

                setattr(instance, key, value)

        return instance

    @staticmethod
    def _validate_attrs(model_class: ModelClass, data: dict[str, Any]):
        valid_attrs = model_class.column_names | model_class.relationship_names

        for key in data:
            if key not in valid_attrs:
                raise QueryValidationError(model_class.model_name, f"unknown field '{key}'")

    @staticmethod
    def _ensure_same_session(obj: Any, session: AsyncSession) -> None:
        state = inspect(obj)

        if state.session is not None and state.session is not session.sync_session:
            raise RuntimeError(
                f"Object {obj!r} is bound to a different session.\n"
                f"Object session id: {id(state.session)}\n"
                f"Current session id: {id(session)}"
            )

    @staticmethod
    async def _create_instance(
        model_class: ModelClass,
        session: AsyncSession,
        data: dict[str, Any],
        include: Include = None,
        select: Select = None
    ) -> BaseType:
        """Create one row from write data, nested relation writes included.

        Unlike ``_add_instance`` no lookup happens: a clash on a unique field raises
        ``UniqueConstraintError``.
        """
        instance = await build_instance(model_class, session, data)
        session.add(instance)
        await flush(model_class, session)

        return await reload(model_class, session, instance, include=include, select=select)

    @staticmethod
    @ensure_required(many=True)
    async def _create_instances(
        model_class: ModelClass,
        session: AsyncSession,
        data: list[dict[str, Any]],
        skip_duplicates: bool = False
    ) -> int:
        """Insert many rows of scalar data and return how many were written.

        With ``skip_duplicates`` the insert uses ``ON CONFLICT DO NOTHING`` and rows
        clashing on any unique constraint are skipped.
        """
        if not data:
            return 0

        rows = []

        for i, item in enumerate(data):
            row = {}

            for key, value in item.items():
                if key not in model_class.column_names:
                    raise QueryValidationError(model_class.model_name, f"create_many only accepts columns, got '{key}' at index {i}")

                row[key] = column_value(model_class, key, value, creating=True)

            rows.append(row)

        if not skip_duplicates:
            session.add_all(model_class.value(**row) for row in rows)
            await flush(model_class, session)

            return len(rows)

        stmt = (
            insert(model_class.value)
            .on_conflict_do_nothing()
            .returning(*model_class.mapper.primary_key)
        )
        result = await session.execute(stmt, rows)

        return len(result.all())


class C(_C):
    @session_manager()
    async def add(
        self,
        model: type[BaseType],
        session: AsyncSession = None,
        **kwargs
    ) -> BaseType:
        """Create or resolve a single model instance from keyword field values."""
        return await self._add_instance(ModelClass(model), session, kwargs)

    @session_manager()
    async def add_many(
        self,
        model: type[BaseType],
        *data: dict,
        session: AsyncSession = None
    ) -> list[BaseType]:
        """Create or resolve multiple model instances."""
        return await self._add_instances(ModelClass(model), session, data)

    @session_manager()
    async def create(
        self,
        model: type[BaseType],
        data: dict[str, Any],
        include: Include = None,
        select: Select = None,
        session: AsyncSession = None
    ) -> BaseType:
        return await self._create_instance(ModelClass(model), session, data, include=include, select=select)

    @session_manager()
    async def create_many(
        self,
        model: type[BaseType],
        data: list[dict[str, Any]],
        skip_duplicates: bool = False,
        session: AsyncSession = None
    ) -> int:
        return await self._create_instances(ModelClass(model), session, data, skip_duplicates=skip_duplicates)
