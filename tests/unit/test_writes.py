import pytest

from cellar.database.models import ModelClass, Wine, Consigned
from cellar.database.crud.writes import column_value, build_instance, apply_data, write_loaders, find_instance
from cellar.exceptions import QueryValidationError
from tests.utils import render

WINE_DATA = {
    "name": "Catena Malbec",
    "type": "Tinto",
    "price": 18990,
    "producer": "Catena Zapata",
    "country": "Argentina",
    "size": "750ml"
}


def test_plain_and_set_values_pass_through():
    assert column_value(ModelClass.WINE, "price", 100) == 100
    assert column_value(ModelClass.WINE, "price", {"set": 250}) == 250
    assert column_value(ModelClass.WINE, "price", {"set": 250}, creating=True) == 250


@pytest.mark.parametrize("op, operand, expected", [
    ("increment", 3, "wine_on_consigned.balance + 3"),
    ("decrement", 2, "wine_on_consigned.balance - 2"),
    ("multiply", 2, "wine_on_consigned.balance * 2"),
])
def test_atomic_updates_render_as_sql(op, operand, expected):
    assert render(column_value(ModelClass.WINE_ON_CONSIGNED, "balance", {op: operand})) == expected


def test_integer_division_floors():
    sql = render(column_value(ModelClass.WINE_ON_CONSIGNED, "balance", {"divide": 2}))

    assert "wine_on_consigned.balance" in sql
    assert "2" in sql


def test_division_by_zero_is_rejected():
    with pytest.raises(QueryValidationError):
        column_value(ModelClass.WINE_ON_CONSIGNED, "balance", {"divide": 0})


def test_atomic_update_rejected_on_create():
    with pytest.raises(QueryValidationError):
        column_value(ModelClass.WINE_ON_CONSIGNED, "balance", {"increment": 1}, creating=True)


@pytest.mark.parametrize("value", [
    {"increment": "1"},
    {"increment": True},
    {"increment": 1, "decrement": 1},
    {"add": 1},
])
def test_malformed_atomic_update(value):
    with pytest.raises(QueryValidationError):
        column_value(ModelClass.WINE_ON_CONSIGNED, "balance", value)


@pytest.mark.asyncio
async def test_build_instance_sets_columns():
    wine = await build_instance(ModelClass.WINE, None, WINE_DATA)

    assert isinstance(wine, Wine)
    assert wine.name == "Catena Malbec"
    assert wine.price == 18990


@pytest.mark.asyncio
async def test_build_instance_requires_required_columns():
    with pytest.raises(QueryValidationError) as exc_info:
        await build_instance(ModelClass.WINE, None, {"name": "Sem preço"})

    assert "price" in exc_info.value.message


@pytest.mark.asyncio
async def test_build_instance_with_nested_to_many_create():
    consigned = await build_instance(ModelClass.CONSIGNED, None, {
        "customer_id": "c1",
        "wines_on_consigned": {
            "create": [
                {"wine_id": "w1", "count": 6, "balance": 6},
                {"wine_id": "w2", "count": 2, "balance": 2}
            ]
        }
    })

    assert isinstance(consigned, Consigned)
    assert [line.wine_id for line in consigned.wines_on_consigned] == ["w1", "w2"]


@pytest.mark.asyncio
async def test_apply_data_rejects_unknown_field():
    with pytest.raises(QueryValidationError):
        await apply_data(ModelClass.WINE, None, Wine(), {"vintage": 2020})


@pytest.mark.asyncio
async def test_update_only_operations_rejected_on_create():
    with pytest.raises(QueryValidationError):
        await build_instance(ModelClass.CONSIGNED, None, {
            "customer_id": "c1",
            "wines_on_consigned": {"set": [{"wine_id": "w1", "consigned_id": "k1"}]}
        })


@pytest.mark.asyncio
async def test_find_instance_unique_requires_unique_where():
    with pytest.raises(QueryValidationError):
        await find_instance(ModelClass.CUSTOMER, None, {"name": "Bistrô"}, unique=True)


def test_write_loaders_cover_touched_relations():
    assert write_loaders(ModelClass.CUSTOMER, {"name": "x"}) == []
    assert len(write_loaders(ModelClass.CUSTOMER, {"name": "x", "address": {"upsert": {"create": {}, "update": {}}}})) == 1
