from typing import Any

from sqlalchemy.sql import select
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.sqltypes import Integer
from sqlalchemy.orm.strategy_options import selectinload, joinedload, Load
from sqlalchemy.ext.asyncio import AsyncSession

from cellar.database.models import ModelClass, BaseType
from cellar.exceptions import QueryValidationError, RecordNotFoundError
from .decorators import ensure_required
from .filters import compile_where, covers_unique_set
from .types import Where

__all__ = [
    "ATOMIC_KEYS",
    "build_instance",
    "apply_data",
    "column_value",
    "write_loaders",
    "find_unique_instance",
    "find_instance"
]

ATOMIC_KEYS = frozenset({"set", "increment", "decrement", "multiply", "divide"})
TO_ONE_CREATE_KEYS = frozenset({"create", "connect", "connect_or_create"})
TO_ONE_UPDATE_KEYS = TO_ONE_CREATE_KEYS | {"update", "upsert", "disconnect", "delete"}
TO_MANY_CREATE_KEYS = frozenset({"create", "connect", "connect_or_create"})
TO_MANY_UPDATE_KEYS = TO_MANY_CREATE_KEYS | {"disconnect", "set"}


def column_value(model_class: ModelClass, key: str, value: Any, creating: bool = False) -> Any:
    """Resolve a column write into a plain value or an atomic SQL expression.

    ``{"set": v}`` is accepted everywhere; ``increment``, ``decrement``, ``multiply``
    and ``divide`` only on update, where they render as ``column <op> operand`` so
    the arithmetic happens in the database.
    """
    if not isinstance(value, dict):
        return value

    if len(value) != 1 or not set(value) <= ATOMIC_KEYS:
        raise QueryValidationError(
            model_class.model_name,
            f"'{key}' expects a value or exactly one of {sorted(ATOMIC_KEYS)}"
        )

    op, operand = next(iter(value.items()))

    if op == "set":
        return operand

    if creating:
        raise QueryValidationError(model_class.model_name, f"'{op}' on '{key}' is only valid when updating")

    if not isinstance(operand, (int, float)) or isinstance(operand, bool):
        raise QueryValidationError(model_class.model_name, f"'{op}' on '{key}' expects a number")

    column: ColumnElement = getattr(model_class.value, key)

    match op:
        case "increment":
            return column + operand
        case "decrement":
            return column - operand
        case "multiply":
            return column * operand
        case "divide":
            if operand == 0:
                raise QueryValidationError(model_class.model_name, f"cannot divide '{key}' by zero")

            if isinstance(model_class.mapper.columns[key].type, Integer):
                return column // operand

            return column / operand


@ensure_required()
async def build_instance(model_class: ModelClass, session: AsyncSession, data: dict[str, Any]) -> BaseType:
    """Build a new, not yet flushed, instance from create data (nested writes included)."""
    instance = model_class.value()
    await apply_data(model_class, session, instance, data, creating=True)

    return instance


async def apply_data(
    model_class: ModelClass,
    session: AsyncSession,
    instance: BaseType,
    data: dict[str, Any],
    creating: bool = False
):
    """Apply column values and nested relation writes to ``instance``.

    Relationships touched by ``data`` must already be loaded on persistent
    instances (see ``write_loaders``).

    Raises:
        QueryValidationError:
            On unknown fields or malformed nested writes.
        RecordNotFoundError:
            If a ``connect``/``update``/``delete`` target does not exist.
    """
    if not isinstance(data, dict):
        raise QueryValidationError(model_class.model_name, f"data must be a dict, got {type(data).__name__}")

    for key, value in data.items():
        if key in model_class.column_names:
            setattr(instance, key, column_value(model_class, key, value, creating))
        elif key in model_class.relationship_names:
            if model_class.relationship(key).uselist:
                await _write_to_many(model_class, session, instance, key, value, creating)
            else:
                await _write_to_one(model_class, session, instance, key, value, creating)
        else:
            raise QueryValidationError(model_class.model_name, f"unknown field '{key}'")


async def _write_to_one(
    model_class: ModelClass,
    session: AsyncSession,
    instance: BaseType,
    key: str,
    ops: Any,
    creating: bool
):
    target = model_class.related(key)
    _check_ops(model_class, key, ops, TO_ONE_CREATE_KEYS if creating else TO_ONE_UPDATE_KEYS)
    current = await getattr(instance.awaitable_attrs, key)

    for op, value in ops.items():
        match op:
            case "create":
                setattr(instance, key, await build_instance(target, session, value))
            case "connect":
                setattr(instance, key, await find_unique_instance(target, session, value))
            case "connect_or_create":
                setattr(instance, key, await _connect_or_create(target, session, value))
            case "update":
                if current is None:
                    raise RecordNotFoundError(target.model_name)

                await apply_data(target, session, current, value)
            case "upsert":
                _check_ops(target, "upsert", value, {"create", "update"}, required={"create", "update"})

                if current is None:
                    setattr(instance, key, await build_instance(target, session, value["create"]))
                else:
                    await apply_data(target, session, current, value["update"])
            case "disconnect":
                if value:
                    setattr(instance, key, None)
            case "delete":
                if value:
                    if current is None:
                        raise RecordNotFoundError(target.model_name)

                    await session.delete(current)
                    setattr(instance, key, None)


async def _write_to_many(
    model_class: ModelClass,
    session: AsyncSession,
    instance: BaseType,
    key: str,
    ops: Any,
    creating: bool
):
    target = model_class.related(key)
    _check_ops(model_class, key, ops, TO_MANY_CREATE_KEYS if creating else TO_MANY_UPDATE_KEYS)
    collection = await getattr(instance.awaitable_attrs, key)

    for op, value in ops.items():
        items = value if isinstance(value, (list, tuple)) else [value]

        match op:
            case "create":
                for item in items:
                    collection.append(await build_instance(target, session, item))
            case "connect":
                for where in items:
                    related = await find_unique_instance(target, session, where)

                    if related not in collection:
                        collection.append(related)
            case "connect_or_create":
                for item in items:
                    related = await _connect_or_create(target, session, item)

                    if related not in collection:
                        collection.append(related)
            case "disconnect":
                for where in items:
                    related = await find_unique_instance(target, session, where)

                    if related in collection:
                        collection.remove(related)
            case "set":
                setattr(instance, key, [await find_unique_instance(target, session, where) for where in items])
                collection = getattr(instance, key)


async def _connect_or_create(model_class: ModelClass, session: AsyncSession, value: Any) -> BaseType:
    _check_ops(model_class, "connect_or_create", value, {"where", "create"}, required={"where", "create"})
    existing = await find_instance(model_class, session, value["where"], unique=True)

    if existing is not None:
        return existing

    return await build_instance(model_class, session, value["create"])


def _check_ops(
    model_class: ModelClass,
    key: str,
    ops: Any,
    allowed: set[str] | frozenset[str],
    required: set[str] = None
):
    if not isinstance(ops, dict) or not ops:
        raise QueryValidationError(model_class.model_name, f"'{key}' expects one of {sorted(allowed)}")

    if unknown := set(ops) - allowed:
        raise QueryValidationError(model_class.model_name, f"unsupported operation(s) for '{key}': {sorted(unknown)}")

    if required and (missing := required - set(ops)):
        raise QueryValidationError(model_class.model_name, f"'{key}' is missing {sorted(missing)}")


async def find_instance(
    model_class: ModelClass,
    session: AsyncSession,
    where: Where,
    unique: bool = False,
    options: list[Load] = None
) -> BaseType | None:
    if unique and not covers_unique_set(model_class, where):
        raise QueryValidationError(
            model_class.model_name,
            f"where must pin one of the unique field sets {model_class.unique_sets}"
        )

    stmt = select(model_class.value).where(compile_where(model_class, where))

    if options:
        stmt = stmt.options(*options).execution_options(populate_existing=True)

    return await session.scalar(stmt.limit(1))


async def find_unique_instance(
    model_class: ModelClass,
    session: AsyncSession,
    where: Where,
    options: list[Load] = None
) -> BaseType:
    instance = await find_instance(model_class, session, where, unique=True, options=options)

    if instance is None:
        raise RecordNotFoundError(model_class.model_name, where)

    return instance


def write_loaders(model_class: ModelClass, data: dict[str, Any]) -> list[Load]:
    """Eager loaders for every relationship a write touches, nested updates included."""
    if not isinstance(data, dict):
        return []

    loaders = []

    for key, ops in data.items():
        if key not in model_class.relationship_names:
            continue

        relationship = model_class.relationship(key)
        attr = getattr(model_class.value, key)
        loader = selectinload(attr) if relationship.uselist else joinedload(attr)
        nested = {}

        if isinstance(ops, dict):
            if isinstance(ops.get("update"), dict):
                nested = ops["update"]
            elif isinstance(ops.get("upsert"), dict):
                nested = ops["upsert"].get("update") or {}

        if children := write_loaders(model_class.related(key), nested):
            loader = loader.options(*children)

        loaders.append(loader)

    return loaders
