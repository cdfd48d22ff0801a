import pytest

from cellar.database.models import ModelClass, WineOnConsigned
from cellar.database.crud.aggregates import (
    normalize_fields,
    compile_aggregates,
    compile_having,
    compile_group_order,
    nest_row
)
from cellar.exceptions import QueryValidationError
from tests.utils import render


def column_of(name: str):
    return getattr(WineOnConsigned, name)


def test_count_true_means_all_rows():
    assert normalize_fields(ModelClass.WINE_ON_CONSIGNED, "_count", True) == ["_all"]


def test_selector_dict_keeps_enabled_fields():
    fields = normalize_fields(ModelClass.WINE_ON_CONSIGNED, "_sum", {"balance": True, "count": False})

    assert fields == ["balance"]


def test_true_is_only_valid_for_count():
    with pytest.raises(QueryValidationError):
        normalize_fields(ModelClass.WINE_ON_CONSIGNED, "_sum", True)


def test_sum_requires_numeric_field():
    with pytest.raises(QueryValidationError):
        normalize_fields(ModelClass.WINE, "_avg", ["name"])


def test_min_accepts_any_column():
    assert normalize_fields(ModelClass.WINE, "_min", ["name"]) == ["name"]


def test_unknown_aggregate_field_raises():
    with pytest.raises(QueryValidationError):
        normalize_fields(ModelClass.WINE, "_max", ["vintage"])


def test_compile_aggregates_labels():
    columns = compile_aggregates(
        ModelClass.WINE_ON_CONSIGNED,
        {"_count": True, "_sum": {"balance": True}, "_max": ["count"]},
        column_of
    )

    assert [c.name for c in columns] == ["_count___all", "_sum__balance", "_max__count"]
    assert render(columns[1]).startswith("sum(wine_on_consigned.balance)")


def test_nest_row_groups_aggregates():
    row = {"wine_id": "w1", "_count___all": 3, "_sum__balance": 12, "_avg__balance": 4}

    assert nest_row(row) == {
        "wine_id": "w1",
        "_count": {"_all": 3},
        "_sum": {"balance": 12},
        "_avg": {"balance": 4.0}
    }


def test_having_on_aggregate():
    sql = render(compile_having(ModelClass.WINE_ON_CONSIGNED, {"balance": {"_sum": {"gt": 10}}}, ["wine_id"], column_of))

    assert sql == "sum(wine_on_consigned.balance) > 10"


def test_having_on_grouped_field():
    sql = render(compile_having(ModelClass.WINE_ON_CONSIGNED, {"wine_id": "w1"}, ["wine_id"], column_of))

    assert sql == "wine_on_consigned.wine_id = 'w1'"


def test_having_on_field_outside_by_raises():
    with pytest.raises(QueryValidationError):
        compile_having(ModelClass.WINE_ON_CONSIGNED, {"balance": {"gt": 1}}, ["wine_id"], column_of)


def test_group_order_by_aggregate_and_field():
    clauses = compile_group_order(
        ModelClass.WINE_ON_CONSIGNED,
        [{"_sum": {"balance": "desc"}}, {"wine_id": "asc"}],
        ["wine_id"],
        column_of
    )

    assert [render(c) for c in clauses] == ["sum(wine_on_consigned.balance) DESC", "wine_on_consigned.wine_id ASC"]


def test_group_order_by_field_outside_by_raises():
    with pytest.raises(QueryValidationError):
        compile_group_order(ModelClass.WINE_ON_CONSIGNED, {"balance": "asc"}, ["wine_id"], column_of)
