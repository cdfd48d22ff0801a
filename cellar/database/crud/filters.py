from enum import Enum
from typing import Any, Callable, Iterable, Sequence

from sqlalchemy.sql import and_, or_, not_, true, false, select, operators
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.functions import func

from cellar.database.models import ModelClass
from cellar.database.enums import QueryMode, SortOrder
from cellar.exceptions import QueryValidationError
from .types import Where, OrderBy

__all__ = [
    "FilterOperator",
    "LOGICAL_KEYS",
    "compile_where",
    "compile_scalar_filter",
    "compile_order_by",
    "apply_direction",
    "covers_unique_set"
]

LOGICAL_KEYS = frozenset({"AND", "OR", "NOT"})
TO_MANY_KEYS = frozenset({"some", "every", "none"})
TO_ONE_KEYS = frozenset({"is", "is_not"})


def _lower(value: Any) -> Any:
    return value.lower() if isinstance(value, str) else value


class FilterOperator(Enum):
    """Scalar filter operators accepted inside a field's filter dict.

    Each member carries the public key (e.g. ``"starts_with"``), the case-sensitive
    implementation and the implementation used under ``mode="insensitive"``.
    """
    EQUALS = "equals", operators.eq, lambda col, val: func.lower(col) == _lower(val)
    NOT = "not", operators.ne, lambda col, val: func.lower(col) != _lower(val)
    IN = "in", lambda col, val: col.in_(val), lambda col, val: func.lower(col).in_([_lower(v) for v in val])
    NOT_IN = "not_in", lambda col, val: col.not_in(val), lambda col, val: func.lower(col).not_in([_lower(v) for v in val])
    LT = "lt", operators.lt, operators.lt
    LTE = "lte", operators.le, operators.le
    GT = "gt", operators.gt, operators.gt
    GTE = "gte", operators.ge, operators.ge
    CONTAINS = "contains", lambda col, val: col.contains(val, autoescape=True), lambda col, val: col.icontains(val, autoescape=True)
    STARTS_WITH = "starts_with", lambda col, val: col.startswith(val, autoescape=True), lambda col, val: col.istartswith(val, autoescape=True)
    ENDS_WITH = "ends_with", lambda col, val: col.endswith(val, autoescape=True), lambda col, val: col.iendswith(val, autoescape=True)

    def __init__(self, value: str, method: Callable, insensitive_method: Callable):
        self._value_ = value
        self.method = method
        self.insensitive_method = insensitive_method

    def apply(self, column: ColumnElement, value: Any, insensitive: bool = False) -> ColumnElement[bool]:
        if insensitive:
            return self.insensitive_method(column, value)

        return self.method(column, value)

    @classmethod
    def from_key(cls, key: str) -> "FilterOperator":
        """Resolve an operator from its filter key.

        Raises:
            ValueError:
                If no matching operator exists.
        """
        for member in cls:
            if member.value == key:
                return member

        raise ValueError(f"No FilterOperator exists for the key '{key}'")


def compile_where(model_class: ModelClass, where: Where | None) -> ColumnElement[bool]:
    """Compile a filter tree into a boolean SQL expression for ``model_class``.

    Keys are column names, relationship names or the logical keys ``AND``, ``OR`` and
    ``NOT``. Sibling keys combine with AND. See ``compile_scalar_filter`` for column
    filters; relationship filters compile to correlated ``EXISTS`` subqueries.

    Args:
        model_class:
            Model the filter applies to.
        where:
            Filter tree; ``None`` or ``{}`` matches every row.

    Returns:
        A SQLAlchemy boolean expression.

    Raises:
        QueryValidationError:
            On unknown fields, unknown operators or malformed values.
    """
    if where is None:
        return true()

    if not isinstance(where, dict):
        raise QueryValidationError(model_class.model_name, f"where must be a dict, got {type(where).__name__}")

    model = model_class.value
    column_names = model_class.column_names
    relationship_names = model_class.relationship_names
    conditions = []

    for key, value in where.items():
        if key == "AND":
            conditions.append(and_(true(), *(compile_where(model_class, w) for w in _as_list(model_class, key, value))))
        elif key == "OR":
            if not isinstance(value, (list, tuple)):
                raise QueryValidationError(model_class.model_name, "OR expects a list of filters")

            conditions.append(or_(false(), *(compile_where(model_class, w) for w in value)))
        elif key == "NOT":
            conditions.append(and_(true(), *(not_(compile_where(model_class, w)) for w in _as_list(model_class, key, value))))
        elif key in column_names:
            conditions.append(compile_scalar_filter(model_class, key, getattr(model, key), value))
        elif key in relationship_names:
            conditions.append(_compile_relation_filter(model_class, key, value))
        else:
            raise QueryValidationError(model_class.model_name, f"unknown field '{key}'")

    return and_(true(), *conditions)


def compile_scalar_filter(
    model_class: ModelClass,
    field: str,
    column: ColumnElement,
    value: Any,
    mode: QueryMode = QueryMode.DEFAULT
) -> ColumnElement[bool]:
    """Compile a single column filter.

    A non-dict value means equality (``None`` means ``IS NULL``). A dict holds
    operators combined with AND; operands of ``None`` are skipped except for
    ``equals`` and ``not``, where they mean ``IS NULL`` / ``IS NOT NULL``. ``not``
    accepts a nested filter dict, which inherits the outer ``mode``.
    """
    if value is None:
        return column.is_(None)

    if not isinstance(value, dict):
        return column == value

    try:
        mode = QueryMode(value.get("mode", mode))
    except ValueError:
        raise QueryValidationError(model_class.model_name, f"invalid mode {value.get('mode')!r} for '{field}'")

    insensitive = mode is QueryMode.INSENSITIVE
    conditions = []

    for key, operand in value.items():
        if key == "mode":
            continue

        try:
            operator = FilterOperator.from_key(key)
        except ValueError:
            raise QueryValidationError(model_class.model_name, f"unknown operator '{key}' for '{field}'")

        if operator is FilterOperator.EQUALS and operand is None:
            conditions.append(column.is_(None))
        elif operator is FilterOperator.NOT:
            if operand is None:
                conditions.append(column.is_not(None))
            elif isinstance(operand, dict):
                conditions.append(not_(compile_scalar_filter(model_class, field, column, operand, mode)))
            else:
                conditions.append(operator.apply(column, operand, insensitive))
        elif operand is None:
            continue
        elif operator in (FilterOperator.IN, FilterOperator.NOT_IN):
            if isinstance(operand, (str, bytes)) or not isinstance(operand, Iterable):
                raise QueryValidationError(model_class.model_name, f"'{key}' for '{field}' expects a list")

            operand = list(operand)

            if not operand:
                conditions.append(false() if operator is FilterOperator.IN else true())
            else:
                conditions.append(operator.apply(column, operand, insensitive))
        else:
            conditions.append(operator.apply(column, operand, insensitive))

    return and_(true(), *conditions)


def _compile_relation_filter(model_class: ModelClass, key: str, value: Any) -> ColumnElement[bool]:
    relationship = model_class.relationship(key)
    target = model_class.related(key)
    attr = getattr(model_class.value, key)

    if relationship.uselist:
        if not isinstance(value, dict) or not value or not set(value) <= TO_MANY_KEYS:
            raise QueryValidationError(
                model_class.model_name,
                f"to-many relation '{key}' expects one of {sorted(TO_MANY_KEYS)}"
            )

        conditions = []

        for op, sub_where in value.items():
            match op:
                case "some":
                    conditions.append(attr.any(compile_where(target, sub_where)))
                case "none":
                    conditions.append(not_(attr.any(compile_where(target, sub_where))))
                case "every":
                    conditions.append(not_(attr.any(not_(compile_where(target, sub_where)))))

        return and_(true(), *conditions)

    if value is None:
        return not_(attr.has())

    if not isinstance(value, dict):
        raise QueryValidationError(model_class.model_name, f"to-one relation '{key}' expects a filter dict or None")

    if value and set(value) <= TO_ONE_KEYS:
        conditions = []

        for op, sub_where in value.items():
            if op == "is":
                conditions.append(not_(attr.has()) if sub_where is None else attr.has(compile_where(target, sub_where)))
            else:
                conditions.append(attr.has() if sub_where is None else not_(attr.has(compile_where(target, sub_where))))

        return and_(true(), *conditions)

    return attr.has(compile_where(target, value))


def compile_order_by(model_class: ModelClass, order_by: OrderBy | None) -> list[ColumnElement]:
    """Compile ``{field: "asc" | "desc"}`` entries into ORDER BY clauses.

    Accepted entry values:
        - ``"asc"`` / ``"desc"`` for columns
        - ``{"sort": "asc", "nulls": "first" | "last"}`` for columns
        - ``{field: "asc"}`` for to-one relations (orders by the related column)
        - ``{"_count": "desc"}`` for to-many relations (orders by collection size)
    """
    if order_by is None:
        return []

    entries = [order_by] if isinstance(order_by, dict) else list(order_by)
    model = model_class.value
    clauses = []

    for entry in entries:
        if not isinstance(entry, dict):
            raise QueryValidationError(model_class.model_name, "order_by entries must be dicts")

        for field, direction in entry.items():
            if field in model_class.column_names:
                clauses.append(apply_direction(model_class, getattr(model, field), direction))
            elif field in model_class.relationship_names:
                clauses.extend(_compile_relation_order(model_class, field, direction))
            else:
                raise QueryValidationError(model_class.model_name, f"cannot order by unknown field '{field}'")

    return clauses


def _compile_relation_order(model_class: ModelClass, field: str, direction: Any) -> list[ColumnElement]:
    relationship = model_class.relationship(field)
    target = model_class.related(field)

    if not isinstance(direction, dict):
        raise QueryValidationError(model_class.model_name, f"ordering by relation '{field}' expects a dict")

    clauses = []

    for key, sub_direction in direction.items():
        if relationship.uselist:
            if key != "_count":
                raise QueryValidationError(model_class.model_name, f"to-many relation '{field}' can only be ordered by _count")

            expr = (
                select(func.count())
                .select_from(target.value)
                .where(relationship.primaryjoin)
                .correlate(model_class.value)
                .scalar_subquery()
            )
        else:
            if key not in target.column_names:
                raise QueryValidationError(target.model_name, f"cannot order by unknown field '{key}'")

            expr = (
                select(getattr(target.value, key))
                .where(relationship.primaryjoin)
                .correlate(model_class.value)
                .limit(1)
                .scalar_subquery()
            )

        clauses.append(apply_direction(model_class, expr, sub_direction))

    return clauses


def apply_direction(model_class: ModelClass, expr: ColumnElement, direction: Any) -> ColumnElement:
    nulls = None

    if isinstance(direction, dict):
        nulls = direction.get("nulls")
        direction = direction.get("sort")

    try:
        sort_order = SortOrder(direction)
    except ValueError:
        raise QueryValidationError(model_class.model_name, f"invalid sort direction {direction!r}")

    clause = expr.asc() if sort_order is SortOrder.ASC else expr.desc()

    match nulls:
        case None:
            return clause
        case "first":
            return clause.nulls_first()
        case "last":
            return clause.nulls_last()
        case _:
            raise QueryValidationError(model_class.model_name, f"invalid nulls placement {nulls!r}")


def covers_unique_set(model_class: ModelClass, where: Where | None) -> bool:
    """Whether ``where`` pins a primary key or unique column set by plain equality."""
    if not where:
        return False

    def pinned(key: str) -> bool:
        return key in where and where[key] is not None and not isinstance(where[key], dict)

    return any(all(pinned(key) for key in unique_set) for unique_set in model_class.unique_sets)


def _as_list(model_class: ModelClass, key: str, value: Any) -> Sequence[Where]:
    if isinstance(value, dict):
        return [value]

    if isinstance(value, (list, tuple)):
        return value

    raise QueryValidationError(model_class.model_name, f"{key} expects a filter or a list of filters")
