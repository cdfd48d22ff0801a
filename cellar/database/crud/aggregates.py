from typing import Any, Callable, Mapping

from sqlalchemy.sql import and_, or_, not_, true, false
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.functions import func
from sqlalchemy.sql.sqltypes import Integer, Numeric

from cellar.database.models import ModelClass
from cellar.exceptions import QueryValidationError
from .filters import compile_scalar_filter, apply_direction
from .types import AggregateFields, OrderBy, Where

__all__ = [
    "AGGREGATE_KEYS",
    "compile_aggregates",
    "compile_having",
    "compile_group_order",
    "nest_row"
]

AGGREGATE_KEYS = ("_count", "_sum", "_avg", "_min", "_max")
NUMERIC_AGGREGATES = frozenset({"_sum", "_avg"})
LABEL_SEPARATOR = "__"
AGGREGATE_FUNCTIONS = {
    "_sum": func.sum,
    "_avg": func.avg,
    "_min": func.min,
    "_max": func.max
}

ColumnResolver = Callable[[str], ColumnElement]


def is_numeric(model_class: ModelClass, field: str) -> bool:
    return isinstance(model_class.mapper.columns[field].type, (Integer, Numeric))


def normalize_fields(model_class: ModelClass, op: str, fields: AggregateFields | None) -> list[str]:
    """Expand an aggregate selector into field names.

    ``True`` is only valid for ``_count`` and means ``["_all"]``; dicts keep the
    keys whose value is truthy.
    """
    if fields is None or fields is False:
        return []

    if fields is True:
        if op != "_count":
            raise QueryValidationError(model_class.model_name, f"{op} expects field names")

        return ["_all"]

    if isinstance(fields, dict):
        names = [name for name, enabled in fields.items() if enabled]
    elif isinstance(fields, (list, tuple, set, frozenset)):
        names = list(fields)
    else:
        raise QueryValidationError(model_class.model_name, f"invalid {op} selector {fields!r}")

    for name in names:
        if op == "_count" and name == "_all":
            continue

        if name not in model_class.column_names:
            raise QueryValidationError(model_class.model_name, f"cannot aggregate unknown field '{name}'")

        if op in NUMERIC_AGGREGATES and not is_numeric(model_class, name):
            raise QueryValidationError(model_class.model_name, f"{op} requires a numeric field, '{name}' is not")

    return names


def aggregate_expression(op: str, field: str, column_of: ColumnResolver) -> ColumnElement:
    if op == "_count":
        return func.count() if field == "_all" else func.count(column_of(field))

    return AGGREGATE_FUNCTIONS[op](column_of(field))


def compile_aggregates(
    model_class: ModelClass,
    aggregates: dict[str, AggregateFields | None],
    column_of: ColumnResolver
) -> list[ColumnElement]:
    """Build labelled aggregate columns, e.g. ``_sum__balance``."""
    labelled = []

    for op in AGGREGATE_KEYS:
        for field in normalize_fields(model_class, op, aggregates.get(op)):
            labelled.append(aggregate_expression(op, field, column_of).label(f"{op}{LABEL_SEPARATOR}{field}"))

    return labelled


def nest_row(row: Mapping[str, Any]) -> dict[str, Any]:
    """Fold labelled aggregate columns into ``{"_sum": {"balance": ...}}`` dicts."""
    result: dict[str, Any] = {}

    for label, value in row.items():
        op, separator, field = label.partition(LABEL_SEPARATOR)

        if separator and op in AGGREGATE_KEYS:
            if op == "_avg" and value is not None:
                value = float(value)

            result.setdefault(op, {})[field] = value
        else:
            result[label] = value

    return result


def compile_having(
    model_class: ModelClass,
    having: Where | None,
    by: list[str],
    column_of: ColumnResolver
) -> ColumnElement[bool]:
    """Compile a ``having`` tree for ``group_by``.

    Field values are scalar filters on the grouped column (the field must be in
    ``by``) and/or per-aggregate filters, e.g. ``{"balance": {"_sum": {"gt": 10}}}``.
    """
    if having is None:
        return true()

    if not isinstance(having, dict):
        raise QueryValidationError(model_class.model_name, "having must be a dict")

    conditions = []

    for key, value in having.items():
        if key in ("AND", "NOT"):
            nested = [value] if isinstance(value, dict) else list(value)
            compiled = [compile_having(model_class, h, by, column_of) for h in nested]

            if key == "NOT":
                compiled = [not_(c) for c in compiled]

            conditions.append(and_(true(), *compiled))
        elif key == "OR":
            conditions.append(or_(false(), *(compile_having(model_class, h, by, column_of) for h in value)))
        elif key in model_class.column_names:
            conditions.extend(_compile_field_having(model_class, key, value, by, column_of))
        else:
            raise QueryValidationError(model_class.model_name, f"unknown field '{key}' in having")

    return and_(true(), *conditions)


def _compile_field_having(
    model_class: ModelClass,
    field: str,
    value: Any,
    by: list[str],
    column_of: ColumnResolver
) -> list[ColumnElement[bool]]:
    if not isinstance(value, dict):
        value = {"equals": value}

    conditions = []
    scalar = {k: v for k, v in value.items() if k not in AGGREGATE_KEYS}

    if scalar:
        if field not in by:
            raise QueryValidationError(model_class.model_name, f"'{field}' must be grouped by to filter on it in having")

        conditions.append(compile_scalar_filter(model_class, field, column_of(field), scalar))

    for op in AGGREGATE_KEYS:
        if op in value:
            normalize_fields(model_class, op, [field])
            expr = aggregate_expression(op, field, column_of)
            conditions.append(compile_scalar_filter(model_class, field, expr, value[op]))

    return conditions


def compile_group_order(
    model_class: ModelClass,
    order_by: OrderBy | None,
    by: list[str],
    column_of: ColumnResolver
) -> list[ColumnElement]:
    """Order groups by grouped fields or by aggregates (``{"_sum": {"balance": "desc"}}``)."""
    if order_by is None:
        return []

    entries = [order_by] if isinstance(order_by, dict) else list(order_by)
    clauses = []

    for entry in entries:
        for field, direction in entry.items():
            if field in AGGREGATE_KEYS:
                if not isinstance(direction, dict):
                    raise QueryValidationError(model_class.model_name, f"ordering by {field} expects a dict")

                for agg_field, agg_direction in direction.items():
                    normalize_fields(model_class, field, [agg_field])
                    expr = aggregate_expression(field, agg_field, column_of)
                    clauses.append(apply_direction(model_class, expr, agg_direction))
            elif field in by:
                clauses.append(apply_direction(model_class, column_of(field), direction))
            else:
                raise QueryValidationError(model_class.model_name, f"cannot order groups by '{field}'; it is not in by")

    return clauses
