import pytest
from sqlalchemy.exc import SQLAlchemyError

from cellar.database.enums import ConsignedStatus
from cellar.exceptions import (
    QueryValidationError,
    RecordNotFoundError,
    UniqueConstraintError,
    ForeignKeyConstraintError,
    CheckConstraintError
)
from .conftest import WINE

pytestmark = pytest.mark.asyncio


async def test_create_with_nested_address(db, customer):
    found = await db.customer.find_unique({"id": customer.id}, include={"address": True})

    assert found.email == "rafael@bistrodoporto.com.br"
    assert found.address.city == "Rio de Janeiro"
    assert found.address.street_address == ""


async def test_find_many_filters_orders_and_paginates(db, wines):
    await db.wine.create({**WINE, "name": "Quinta do Crasto", "country": "Portugal", "price": 24500})

    found = await db.wine.find_many(
        where={"name": {"contains": "C", "mode": "insensitive"}, "price": {"gte": 10000}},
        order_by={"price": "desc"},
        take=1
    )
    assert [w.name for w in found] == ["Quinta do Crasto"]

    found = await db.wine.find_many(order_by={"price": "asc"}, skip=1)
    assert [w.price for w in found] == [18990, 24500]


async def test_select_restricts_payload(db, customer):
    found, = await db.customer.find_many(select={"id": True, "name": True})

    assert found.name == "Bistrô do Porto"

    with pytest.raises(SQLAlchemyError):
        _ = found.document

    with pytest.raises(SQLAlchemyError):
        _ = found.address


async def test_distinct_keeps_first_row_per_value(db, wines):
    await db.wine.create({**WINE, "name": "Catena Alta", "price": 35000})

    found = await db.wine.find_many(order_by={"price": "desc"}, distinct=["type"])

    assert [(w.type, w.name) for w in found] == [("Tinto", "Catena Alta"), ("Branco", "Casillero del Diablo")]


async def test_find_unique_rejects_non_unique_where(db):
    with pytest.raises(QueryValidationError):
        await db.wine.find_unique({"name": "Catena Malbec"})


async def test_find_unique_or_raise(db):
    with pytest.raises(RecordNotFoundError):
        await db.wine.find_unique_or_raise({"id": "missing"})


async def test_unique_violation_is_translated(db, customer):
    with pytest.raises(UniqueConstraintError) as exc_info:
        await db.customer.create({"name": "Outro", "document": customer.document, "state_registration": "1"})

    assert exc_info.value.model == "Customer"
    assert exc_info.value.fields == ("document",)


async def test_foreign_key_violation_is_translated(db):
    with pytest.raises(ForeignKeyConstraintError):
        await db.consigned.create({"customer_id": "missing"})


async def test_atomic_decrement(db, consigned, wines):
    line = await db.wine_on_consigned.update(
        {"consigned_id": consigned.id, "wine_id": wines[0].id},
        {"balance": {"decrement": 4}}
    )

    assert line.balance == 2
    assert line.count == 6


async def test_decrement_below_zero_is_translated(db, consigned, wines):
    with pytest.raises(CheckConstraintError) as exc_info:
        await db.wine_on_consigned.update(
            {"consigned_id": consigned.id, "wine_id": wines[1].id},
            {"balance": {"decrement": 3}}
        )

    assert exc_info.value.constraint == "_balance_non_negative_ck"


async def test_update_missing_row(db):
    with pytest.raises(RecordNotFoundError):
        await db.wine.update({"id": "missing"}, {"price": 1})


async def test_nested_upsert_creates_then_updates(db):
    customer = await db.customer.create({"name": "Adega", "document": "1", "state_registration": "2"})

    await db.customer.update({"id": customer.id}, {"address": {"upsert": {"create": {"city": "Bento"}, "update": {"city": "Bento"}}}})
    updated = await db.customer.update(
        {"id": customer.id},
        {"address": {"upsert": {"create": {"city": "x"}, "update": {"city": "Bento Gonçalves"}}}},
        include={"address": True}
    )

    assert updated.address.city == "Bento Gonçalves"
    assert await db.address.count() == 1


async def test_upsert(db):
    created = await db.permission.upsert({"name": "reports:view"}, create={"name": "reports:view"}, update={"description": "x"})
    updated = await db.permission.upsert({"name": "reports:view"}, create={"name": "reports:view"}, update={"description": "Relatórios"})

    assert created.id == updated.id
    assert updated.description == "Relatórios"


async def test_delete_returns_the_row_with_relations(db, consigned):
    deleted = await db.consigned.delete({"id": consigned.id}, include={"wines_on_consigned": True})

    assert len(deleted.wines_on_consigned) == 2
    assert await db.consigned.find_unique({"id": consigned.id}) is None
    assert await db.wine_on_consigned.count() == 0


async def test_update_many_and_delete_many(db, wines):
    assert await db.wine.update_many({"country": "Argentina"}, {"price": {"set": 20000}}) == 1
    assert (await db.wine.find_first({"country": "Argentina"})).price == 20000
    assert await db.wine.delete_many({"price": {"lt": 10000}}) == 1
    assert await db.wine.count() == 1


async def test_create_many_skip_duplicates(db):
    data = [{"name": "a:view"}, {"name": "b:view"}]

    assert await db.permission.create_many(data) == 2
    assert await db.permission.create_many([*data, {"name": "c:view"}], skip_duplicates=True) == 1
    assert await db.permission.count() == 3


async def test_aggregate(db, consigned):
    result = await db.wine_on_consigned.aggregate(
        where={"consigned_id": consigned.id},
        _count=True,
        _sum={"balance": True},
        _avg=["balance"],
        _min=["balance"],
        _max=["balance"]
    )

    assert result == {
        "_count": {"_all": 2},
        "_sum": {"balance": 8},
        "_avg": {"balance": 4.0},
        "_min": {"balance": 2},
        "_max": {"balance": 6}
    }


async def test_group_by_with_having(db, consigned, wines):
    groups = await db.wine_on_consigned.group_by(
        ["wine_id"],
        having={"balance": {"_sum": {"gt": 5}}},
        order_by={"_sum": {"balance": "desc"}},
        _sum=["balance"]
    )

    assert groups == [{"wine_id": wines[0].id, "_sum": {"balance": 6}}]


async def test_transaction_rolls_back(db, customer):
    with pytest.raises(RuntimeError):
        async with db.transaction() as tx:
            await tx.consigned.create({"customer_id": customer.id})
            raise RuntimeError("abort")

    assert await db.consigned.count() == 0


async def test_transaction_commits(db, customer):
    async with db.transaction() as tx:
        consigned = await tx.consigned.create({"customer_id": customer.id})
        await tx.consigned.update({"id": consigned.id}, {"status": ConsignedStatus.CANCELED})

    closed = await db.consigned.find_unique({"id": consigned.id})

    assert closed.status is ConsignedStatus.CANCELED
    assert closed.closed_at is not None


async def test_transaction_reads_narrow_already_loaded_collections(db, customer, wines):
    async with db.transaction() as tx:
        created = await tx.consigned.create(
            {
                "customer_id": customer.id,
                "wines_on_consigned": {
                    "create": [
                        {"wine_id": wines[0].id, "count": 6, "balance": 6},
                        {"wine_id": wines[1].id, "count": 2, "balance": 2}
                    ]
                }
            },
            include={"wines_on_consigned": True}
        )
        found = await tx.consigned.find_unique(
            {"id": created.id},
            include={"wines_on_consigned": {"where": {"balance": {"gt": 3}}}}
        )

    assert found is created
    assert [line.balance for line in found.wines_on_consigned] == [6]


async def test_raw_queries(db, wines):
    rows = await db.query_raw("SELECT name FROM wines WHERE price > :price ORDER BY name", price=10000)

    assert rows == [{"name": "Catena Malbec"}]
    assert await db.execute_raw("UPDATE wines SET size = :size", size="1.5L") == 2


async def test_status(db, consigned):
    summary = await db.status("summary")
    consignments = await db.status("consignments")

    assert summary["customers"] == 1
    assert summary["wine_on_consigned"] == 2
    assert consignments[ConsignedStatus.IN_PROGRESS.value] == 1
    assert consignments["active_customers"] == 1
