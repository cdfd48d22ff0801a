from typing import Any

from sqlalchemy.sql import select as select_stmt
from sqlalchemy.orm.strategy_options import selectinload, joinedload, raiseload, load_only, Load
from sqlalchemy.ext.asyncio import AsyncSession

from cellar.database.models import ModelClass, BaseType
from cellar.exceptions import QueryValidationError
from .filters import compile_where
from .types import Include, Select, LoadingConfig

__all__ = [
    "compile_loading",
    "reload"
]

NODE_KEYS = frozenset({"where", "include", "select"})


def compile_loading(
    model_class: ModelClass,
    include: Include = None,
    select: Select = None,
    restrict: bool = True
) -> list[Load]:
    """Translate ``include``/``select`` trees into loader options.

    ``include`` keeps every column and eagerly loads the named relationships;
    ``select`` loads only the named columns (primary keys are always loaded) and
    the named relationships. Relationships that are not requested are set to
    ``raiseload`` so that a payload never lazily grows beyond what was asked for.

    Collections load with ``selectinload`` and scalar relationships with
    ``joinedload``; a node's ``where`` narrows the loaded rows.

    Args:
        model_class:
            Model at the current level of the tree.
        include:
            ``{relationship: True | False | node}``.
        select:
            ``{column: True | False, relationship: True | False | node}``.
        restrict:
            Whether unrequested relationships of the top level raise on load.

    Returns:
        Loader options for ``Select.options``.

    Raises:
        QueryValidationError:
            If both trees are given, or a name is not a column/relationship.
    """
    if include is not None and select is not None:
        raise QueryValidationError(model_class.model_name, "include and select are mutually exclusive")

    model = model_class.value
    options: list[Load] = []
    requested: set[str] = set()

    if select is not None:
        columns = []

        for name, config in select.items():
            if name in model_class.column_names:
                if config:
                    columns.append(getattr(model, name))
            elif name in model_class.relationship_names:
                if config:
                    options.append(_relationship_loader(model_class, name, config))
                    requested.add(name)
            else:
                raise QueryValidationError(model_class.model_name, f"cannot select unknown field '{name}'")

        if not columns:
            columns = [getattr(model, name) for name in model_class.primary_key_names]

        options.append(load_only(*columns, raiseload=True))

    if include is not None:
        for name, config in include.items():
            if name not in model_class.relationship_names:
                raise QueryValidationError(model_class.model_name, f"cannot include unknown relation '{name}'")

            if config:
                options.append(_relationship_loader(model_class, name, config))
                requested.add(name)

    if not restrict:
        return options

    for name in model_class.relationship_names - requested:
        options.append(raiseload(getattr(model, name), sql_only=True))

    return options


def _relationship_loader(model_class: ModelClass, name: str, config: LoadingConfig) -> Load:
    relationship = model_class.relationship(name)
    target = model_class.related(name)
    attr = getattr(model_class.value, name)
    node: dict[str, Any] = {}

    if isinstance(config, dict):
        if unknown := set(config) - NODE_KEYS:
            raise QueryValidationError(model_class.model_name, f"unknown loading keys for '{name}': {sorted(unknown)}")

        node = config
    elif config is not True:
        raise QueryValidationError(model_class.model_name, f"invalid loading config for '{name}': {config!r}")

    if (where := node.get("where")) is not None:
        attr = attr.and_(compile_where(target, where))

    loader = selectinload(attr) if relationship.uselist else joinedload(attr)
    children = compile_loading(target, include=node.get("include"), select=node.get("select"))

    if children:
        loader = loader.options(*children)

    return loader


async def reload(
    model_class: ModelClass,
    session: AsyncSession,
    instance: BaseType,
    include: Include = None,
    select: Select = None
) -> BaseType:
    """Re-read a flushed instance so its payload reflects ``include``/``select``.

    Server-side values (defaults, atomic updates) are refreshed and relationships
    outside the requested trees are reset.
    """
    mapper = model_class.mapper
    identity = mapper.primary_key_from_instance(instance)
    stmt = (
        select_stmt(model_class.value)
        .where(*(column == value for column, value in zip(mapper.primary_key, identity)))
        .options(*compile_loading(model_class, include=include, select=select))
        .execution_options(populate_existing=True)
    )

    return await session.scalar(stmt)
